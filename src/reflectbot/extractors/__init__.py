"""Reflection engine -- routes files to the right reflector by language."""

from __future__ import annotations

from .base import Reflector

__all__ = [
    "Reflector",
    "get_reflector",
    "register",
    "setup_reflectors",
]

# Registry populated at startup via setup_reflectors().
_REGISTRY: dict[str, Reflector] = {}


def register(language: str, reflector: Reflector) -> None:
    """Register a reflector instance for a language."""
    _REGISTRY[language] = reflector


def get_reflector(language: str) -> Reflector | None:
    """Return the reflector for *language*, or ``None`` if unsupported."""
    return _REGISTRY.get(language)


def setup_reflectors() -> None:
    """Register all built-in reflectors.  Safe to call more than once."""
    from .php_reflector import PhpReflector

    if "php" not in _REGISTRY:
        register("php", PhpReflector())
