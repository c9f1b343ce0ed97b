"""PHP reflector -- tree-sitter based class/method/doc-comment extraction.

Only ``class`` declarations are reflected (interfaces, traits and enums are
not).  Namespaces may be declared either with a trailing ``;`` (applies to
the rest of the file) or with a braced body.
"""

from __future__ import annotations

import logging
from pathlib import Path

import tree_sitter_php
from tree_sitter import Language, Node, Parser

from ..docblock import is_docblock, parse_docblock
from ..errors import ParseError
from ..models import (
    Argument,
    Citation,
    ClassDescriptor,
    DocBlock,
    MethodDescriptor,
    PropertyDescriptor,
    Visibility,
)

logger = logging.getLogger(__name__)

_PARAMETER_TYPES = {"simple_parameter", "variadic_parameter", "property_promotion_parameter"}
_VISIBILITIES = {v.value: v for v in Visibility}

# Cache loaded grammars.
_grammar_cache: dict[str, Language] = {}


def _get_grammar() -> Language:
    if "php" not in _grammar_cache:
        _grammar_cache["php"] = Language(tree_sitter_php.language_php())
    return _grammar_cache["php"]


def _text(node: Node | None) -> str:
    if node is None or node.text is None:
        return ""
    return " ".join(node.text.decode("utf-8", errors="replace").split())


def _citation(node: Node, rel_path: str) -> Citation:
    return Citation(
        file=rel_path,
        line_start=node.start_point[0] + 1,
        line_end=node.end_point[0] + 1,
    )


def _fqn(namespace: str, name: str) -> str:
    namespace = namespace.strip("\\")
    return f"\\{namespace}\\{name}" if namespace else f"\\{name}"


def _first_error_line(root: Node) -> int:
    stack = [root]
    while stack:
        node = stack.pop()
        if node.is_error or node.is_missing:
            return node.start_point[0] + 1
        stack.extend(c for c in reversed(node.children) if c.has_error or c.is_missing)
    return root.start_point[0] + 1


def _docblock_for(node: Node) -> DocBlock | None:
    """Return the doc block written immediately above *node*, if any."""
    prev = node.prev_named_sibling
    if prev is None or prev.type != "comment" or prev.text is None:
        return None
    raw = prev.text.decode("utf-8", errors="replace")
    if not is_docblock(raw):
        return None
    return parse_docblock(raw)


class PhpReflector:
    """Reflects PHP source files into class descriptors."""

    def reflect_file(self, abs_path: Path, rel_path: str) -> list[ClassDescriptor]:
        return self.reflect_source(abs_path.read_bytes(), rel_path)

    def reflect_source(self, source: bytes | str, rel_path: str = "<string>") -> list[ClassDescriptor]:
        if isinstance(source, str):
            source = source.encode("utf-8")

        tree = Parser(_get_grammar()).parse(source)
        root = tree.root_node
        if root.has_error:
            raise ParseError(f"{rel_path}:{_first_error_line(root)}: syntax error")

        classes: list[ClassDescriptor] = []
        self._walk(root.named_children, "", rel_path, classes)
        logger.debug("Reflected %d class(es) from %s", len(classes), rel_path)
        return classes

    # ------------------------------------------------------------------
    # Tree walking
    # ------------------------------------------------------------------

    def _walk(
        self,
        nodes: list[Node],
        namespace: str,
        rel_path: str,
        out: list[ClassDescriptor],
    ) -> None:
        for node in nodes:
            if node.type == "namespace_definition":
                ns = _text(node.child_by_field_name("name"))
                body = node.child_by_field_name("body")
                if body is None:
                    # `namespace Foo;` applies to the following siblings.
                    namespace = ns
                else:
                    self._walk(body.named_children, ns, rel_path, out)
            elif node.type == "class_declaration":
                out.append(self._reflect_class(node, namespace, rel_path))

    def _reflect_class(self, node: Node, namespace: str, rel_path: str) -> ClassDescriptor:
        fqn = _fqn(namespace, _text(node.child_by_field_name("name")))
        doc = _docblock_for(node)

        methods: list[MethodDescriptor] = []
        body = node.child_by_field_name("body")
        if body is not None:
            for member in body.named_children:
                if member.type == "method_declaration":
                    methods.append(self._reflect_method(member, fqn, rel_path))

        properties = (
            [PropertyDescriptor.from_tag(tag) for tag in doc.tags_named("property")]
            if doc else []
        )
        return ClassDescriptor(
            fqn=fqn,
            doc=doc,
            methods=methods,
            properties=properties,
            citation=_citation(node, rel_path),
        )

    def _reflect_method(self, node: Node, class_fqn: str, rel_path: str) -> MethodDescriptor:
        visibility = Visibility.public
        for child in node.children:
            if child.type == "visibility_modifier":
                visibility = _VISIBILITIES.get(_text(child).lower(), Visibility.public)

        arguments: list[Argument] = []
        params = node.child_by_field_name("parameters")
        if params is not None:
            for param in params.named_children:
                if param.type in _PARAMETER_TYPES:
                    arguments.append(self._argument(param))

        return_type = _text(node.child_by_field_name("return_type")) or "mixed"

        return MethodDescriptor(
            name=_text(node.child_by_field_name("name")),
            class_fqn=class_fqn,
            visibility=visibility,
            arguments=arguments,
            return_type=return_type,
            doc=_docblock_for(node),
            citation=_citation(node, rel_path),
        )

    def _argument(self, param: Node) -> Argument:
        type_ = _text(param.child_by_field_name("type")) or "mixed"
        name = _text(param.child_by_field_name("name")).lstrip("&").lstrip("$")
        return Argument(type=type_, name=name)
