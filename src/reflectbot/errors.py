"""Exceptions raised by reflectbot."""

from __future__ import annotations


class ReflectbotError(Exception):
    """Base class for every reflectbot error."""


class ParseError(ReflectbotError):
    """A source file could not be reflected."""


class IndexBuildError(ReflectbotError):
    """The corpus could not be enumerated or parsed into a symbol index."""


class SendFailure(ReflectbotError):
    """The chat transport failed to deliver a message or reaction."""


class ConfigError(ReflectbotError):
    """Required configuration is missing or invalid."""
