"""Pydantic models for reflectbot's symbol index, renders and chat events."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


NO_DESCRIPTION = "No description available"

DEFAULT_CORPUS_DIR = Path("vendor/team-reflex/discord-php/src")


# ---------------------------------------------------------------------------
# Shared primitives
# ---------------------------------------------------------------------------

class Citation(BaseModel):
    """Points back to a specific region in the corpus."""

    model_config = ConfigDict(frozen=True)

    file: str
    line_start: int
    line_end: int


class SourceFile(BaseModel):
    """A discovered source file in the corpus."""

    path: str       # corpus-relative path (forward slashes)
    language: str   # "php"


# ---------------------------------------------------------------------------
# Doc comments
# ---------------------------------------------------------------------------

class DocTag(BaseModel):
    """A single ``@name body`` tag from a doc comment."""

    model_config = ConfigDict(frozen=True)

    name: str
    body: str = ""
    type: str | None = None
    variable: str | None = None  # without the ``$`` sigil
    description: str = ""


class DocBlock(BaseModel):
    """A parsed ``/** ... */`` doc comment."""

    model_config = ConfigDict(frozen=True)

    summary: str = ""
    description: str = ""
    tags: list[DocTag] = Field(default_factory=list)

    def tags_named(self, name: str) -> list[DocTag]:
        return [tag for tag in self.tags if tag.name == name]


# ---------------------------------------------------------------------------
# Symbol index
# ---------------------------------------------------------------------------

class Visibility(Enum):
    public = "public"
    protected = "protected"
    private = "private"


class Argument(BaseModel):
    """One ``(type, name)`` pair of a method signature."""

    model_config = ConfigDict(frozen=True)

    type: str = "mixed"
    name: str  # without the ``$`` sigil


class MethodDescriptor(BaseModel):
    """A method owned by exactly one :class:`ClassDescriptor`."""

    model_config = ConfigDict(frozen=True)

    name: str
    class_fqn: str
    visibility: Visibility = Visibility.public
    arguments: list[Argument] = Field(default_factory=list)
    return_type: str = "mixed"
    doc: DocBlock | None = None
    citation: Citation | None = None

    @property
    def fqn(self) -> str:
        return f"{self.class_fqn}::{self.name}"

    @property
    def summary(self) -> str | None:
        return self.doc.summary if self.doc else None


class PropertyDescriptor(BaseModel):
    """A ``@property <type> <name> <description>`` tag on a class doc block."""

    model_config = ConfigDict(frozen=True)

    type: str
    name: str
    description: str = ""

    @classmethod
    def from_tag(cls, tag: DocTag) -> PropertyDescriptor:
        """Split the normalised ``type $name description`` body on single spaces."""
        parts = tag.body.split(" ")
        type_ = parts.pop(0) if parts else ""
        name = parts.pop(0) if parts else ""
        return cls(type=type_, name=name, description=" ".join(parts))


class ClassDescriptor(BaseModel):
    """A reflected class, keyed by its fully-qualified name."""

    model_config = ConfigDict(frozen=True)

    fqn: str
    doc: DocBlock | None = None
    methods: list[MethodDescriptor] = Field(default_factory=list)
    properties: list[PropertyDescriptor] = Field(default_factory=list)
    citation: Citation | None = None

    @property
    def name(self) -> str:
        return self.fqn.rsplit("\\", 1)[-1]

    @property
    def summary(self) -> str | None:
        return self.doc.summary if self.doc else None


# ---------------------------------------------------------------------------
# Query results
# ---------------------------------------------------------------------------

class ViewKind(Enum):
    methods = "methods"
    properties = "properties"


class ClassMatch(BaseModel):
    """A class hit, rendered with the requested view."""

    kind: Literal["class"] = "class"
    descriptor: ClassDescriptor
    view: ViewKind = ViewKind.properties

    @property
    def fqn(self) -> str:
        return self.descriptor.fqn


class MethodMatch(BaseModel):
    """A method hit; always rendered as a single-method view."""

    kind: Literal["method"] = "method"
    descriptor: MethodDescriptor

    @property
    def fqn(self) -> str:
        return self.descriptor.fqn


MatchResult = Annotated[Union[ClassMatch, MethodMatch], Field(discriminator="kind")]


# ---------------------------------------------------------------------------
# Display documents
# ---------------------------------------------------------------------------

class DocumentField(BaseModel):
    label: str
    value: str


class DisplayDocument(BaseModel):
    """Size-bounded structured render sent to the chat transport."""

    title: str
    description: str = ""
    fields: list[DocumentField] = Field(default_factory=list)
    footer: str | None = None

    def add_field(self, label: str, value: str) -> None:
        self.fields.append(DocumentField(label=label, value=value))


# ---------------------------------------------------------------------------
# Chat events
# ---------------------------------------------------------------------------

class MessageHandle(BaseModel):
    """Identity of a message the transport sent or received."""

    model_config = ConfigDict(frozen=True)

    id: str
    channel_id: str


class IncomingMessage(MessageHandle):
    """A chat message delivered to the bot."""

    author_id: str
    content: str


class ReactionAdded(BaseModel):
    """A reaction marker added to a message by some user."""

    model_config = ConfigDict(frozen=True)

    message_id: str
    actor_id: str
    marker: str


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

class BotConfig(BaseModel):
    """Bot configuration, read from the environment (and ``.env``)."""

    token: str
    """Discord bot token."""

    log_file: str
    """``stdout`` or a path to append log records to."""

    logger_level: str = "INFO"
    """One of DEBUG, INFO, WARNING, ERROR, CRITICAL."""

    corpus_dir: Path = DEFAULT_CORPUS_DIR
    """Root of the source tree the symbol index is built from."""

    help_title: str = "DiscordPHP"
    """Title of the help document."""

    selection_timeout: float | None = None
    """Seconds before an unanswered choice prompt is abandoned; unset waits forever."""
