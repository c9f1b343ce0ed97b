"""Doc-comment parser -- turns ``/** ... */`` blocks into :class:`DocBlock`.

The summary is the first paragraph of free text.  It ends at a blank line,
at the first tag, or after a line that ends with a full stop.  Everything
between the summary and the first tag is the description.  Tags run from
an ``@name`` line up to the next tag line; wrapped continuation lines are
joined with single spaces.
"""

from __future__ import annotations

import re

from .models import DocBlock, DocTag

_TAG_RE = re.compile(r"^@(?P<name>[A-Za-z][\w-]*)(?:\s+(?P<body>.*))?$")

# Tags whose body starts with a type, e.g. ``@return Foo|null the foo``.
_TYPED_TAGS = {"return", "throws"}


def is_docblock(text: str) -> bool:
    """True for ``/** ... */`` comments (not ``/* */`` or ``//``)."""
    stripped = text.strip()
    return stripped.startswith("/**") and stripped.endswith("*/") and stripped != "/**/"


def _clean_lines(text: str) -> list[str]:
    """Strip comment delimiters and leading ``*`` decoration."""
    text = text.strip()
    if text.startswith("/**"):
        text = text[3:]
    if text.endswith("*/"):
        text = text[:-2]

    lines: list[str] = []
    for line in text.splitlines():
        line = line.strip()
        if line.startswith("*"):
            line = line[1:].strip()
        lines.append(line)
    return lines


def _shift(text: str) -> tuple[str, str]:
    """Split off the first whitespace-delimited word."""
    parts = text.split(None, 1)
    if not parts:
        return "", ""
    return parts[0], parts[1].strip() if len(parts) > 1 else ""


def _is_variable(word: str) -> bool:
    return word.lstrip("&.").startswith("$")


def _type_and_variable(body: str) -> tuple[str | None, str | None, str]:
    """Split ``[type] $var description``; either of the first two may be absent."""
    type_: str | None = None
    variable: str | None = None
    rest = body
    word, remainder = _shift(rest)
    if word and not _is_variable(word):
        type_, rest = word, remainder
        word, remainder = _shift(rest)
    if word and _is_variable(word):
        variable = word.lstrip("&.").lstrip("$")
        rest = remainder
    return type_, variable, rest


def _parse_tag(line: str) -> DocTag | None:
    m = _TAG_RE.match(line)
    if m is None:
        return None
    name = m.group("name")
    body = (m.group("body") or "").strip()

    if name == "param":
        type_, variable, description = _type_and_variable(body)
        return DocTag(name=name, body=body, type=type_, variable=variable, description=description)

    if name == "property":
        # Column-aligned tags are rebuilt as ``type $name description``.
        type_, variable, description = _type_and_variable(body)
        parts = [type_ or "", f"${variable}" if variable is not None else "", description]
        return DocTag(
            name=name,
            body=" ".join(p for p in parts if p),
            type=type_,
            variable=variable,
            description=description,
        )

    if name in _TYPED_TAGS:
        type_, description = _shift(body)
        return DocTag(name=name, body=body, type=type_ or None, description=description)

    return DocTag(name=name, body=body)


def _split_summary(body: list[str]) -> tuple[str, str]:
    i = 0
    while i < len(body) and not body[i]:
        i += 1

    summary_lines: list[str] = []
    while i < len(body) and body[i]:
        summary_lines.append(body[i])
        i += 1
        if summary_lines[-1].endswith("."):
            break

    description = "\n".join(body[i:]).strip()
    return " ".join(summary_lines), description


def parse_docblock(text: str) -> DocBlock:
    """Parse a raw ``/** ... */`` comment into summary, description and tags."""
    body: list[str] = []
    chunks: list[list[str]] = []

    for line in _clean_lines(text):
        if _TAG_RE.match(line):
            chunks.append([line])
        elif chunks:
            if line:
                chunks[-1].append(line)
        else:
            body.append(line)

    summary, description = _split_summary(body)
    tags = [tag for tag in (_parse_tag(" ".join(chunk)) for chunk in chunks) if tag is not None]
    return DocBlock(summary=summary, description=description, tags=tags)
