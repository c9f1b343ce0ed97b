"""Render engine -- turns matches into size-bounded display documents."""

from __future__ import annotations

from .models import (
    NO_DESCRIPTION,
    ClassDescriptor,
    ClassMatch,
    DisplayDocument,
    MatchResult,
    MethodDescriptor,
    MethodMatch,
    ViewKind,
    Visibility,
)

# Hard limit on labeled fields imposed by the chat display surface.
MAX_FIELDS = 25


def _class_document(cls: ClassDescriptor) -> DisplayDocument:
    return DisplayDocument(
        title=f"`{cls.fqn}`",
        description=cls.summary or NO_DESCRIPTION,
    )


def method_signature(method: MethodDescriptor) -> str:
    """``name(type $arg, ...): returnType`` wrapped in backticks."""
    args = ", ".join(f"{arg.type} ${arg.name}" for arg in method.arguments)
    return f"`{method.name}({args}): {method.return_type}`"


def render_class_methods(cls: ClassDescriptor) -> DisplayDocument:
    """List the public, non-magic methods of *cls*.

    When more than :data:`MAX_FIELDS` methods qualify the list is cut off and
    the footer reports the class's total method count, including the private
    and magic methods that would never have been listed.
    """
    doc = _class_document(cls)

    for method in cls.methods:
        if method.visibility is not Visibility.public:
            continue
        if "__" in method.name:
            continue

        if len(doc.fields) >= MAX_FIELDS:
            doc.footer = f"{len(cls.methods)} method(s) unable to be shown."
            break

        doc.add_field(method_signature(method), method.summary or NO_DESCRIPTION)

    return doc


def render_class_properties(cls: ClassDescriptor) -> DisplayDocument:
    """List the ``@property`` tags of *cls*."""
    doc = _class_document(cls)
    if cls.doc is None:
        return doc

    total = len(cls.properties)
    for prop in cls.properties:
        if len(doc.fields) >= MAX_FIELDS:
            noun = "properties" if total > 1 else "property"
            doc.footer = f"{total} {noun} unable to be shown."
            break

        doc.add_field(f"`{prop.type} {prop.name}`", prop.description or NO_DESCRIPTION)

    return doc


def render_method(method: MethodDescriptor) -> DisplayDocument:
    doc = DisplayDocument(title=method.fqn, description=method.summary or NO_DESCRIPTION)
    if method.doc is None:
        return doc

    for tag in method.doc.tags:
        description = tag.description or NO_DESCRIPTION
        if tag.name == "param":
            doc.add_field(f"`{tag.type or 'mixed'} ${tag.variable or ''}`", description)
        elif tag.name == "return":
            doc.add_field(f"Returns `{tag.type or 'mixed'}`", description)
        elif tag.name == "throws":
            doc.add_field(f"Throws `{tag.type or 'mixed'}`", description)

    return doc


def render(match: MatchResult) -> DisplayDocument:
    """Render *match* with the view it was requested with."""
    if isinstance(match, MethodMatch):
        return render_method(match.descriptor)
    if isinstance(match, ClassMatch):
        if match.view is ViewKind.methods:
            return render_class_methods(match.descriptor)
        return render_class_properties(match.descriptor)
    raise TypeError(f"cannot render {type(match).__name__}")
