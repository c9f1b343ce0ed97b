"""Base protocol for source-file reflectors."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable

from ..models import ClassDescriptor


@runtime_checkable
class Reflector(Protocol):
    """Interface that every language reflector must satisfy.

    Implementations:
      - PhpReflector (tree-sitter PHP grammar)
    """

    def reflect_file(self, abs_path: Path, rel_path: str) -> list[ClassDescriptor]:
        """Return the classes declared in a single file, in declaration order.

        Raises ``ParseError`` when the file is not valid source.
        """
        ...
