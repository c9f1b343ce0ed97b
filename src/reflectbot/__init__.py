"""Reflectbot - chat-driven documentation lookup for reflected source trees."""

from .models import (  # noqa: F401 -- public re-exports
    ClassDescriptor,
    ClassMatch,
    DisplayDocument,
    MatchResult,
    MethodDescriptor,
    MethodMatch,
    PropertyDescriptor,
    ViewKind,
)
from .errors import IndexBuildError, ParseError, ReflectbotError, SendFailure
from .index import SymbolIndex, build_index
from .render import render
from .resolver import resolve
from .session import DisambiguationSession, SessionRegistry

__version__ = "0.1.0"

__all__ = [
    "build_index",
    "render",
    "resolve",
    "ClassDescriptor",
    "ClassMatch",
    "DisambiguationSession",
    "DisplayDocument",
    "IndexBuildError",
    "MatchResult",
    "MethodDescriptor",
    "MethodMatch",
    "ParseError",
    "PropertyDescriptor",
    "ReflectbotError",
    "SendFailure",
    "SessionRegistry",
    "SymbolIndex",
    "ViewKind",
]
