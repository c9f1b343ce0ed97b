"""In-memory symbol index built once from a reflected corpus.

The index is keyed by fully-qualified class name and iterates classes in
corpus order (files sorted by path, classes in declaration order).  Nothing
mutates it after :func:`build_index` returns.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from pathlib import Path

from .errors import IndexBuildError, ParseError
from .extractors import get_reflector, setup_reflectors
from .models import ClassDescriptor, MethodDescriptor
from .scanner import scan_corpus

logger = logging.getLogger(__name__)


class SymbolIndex:
    """Read-only collection of class descriptors keyed by FQN."""

    def __init__(self, classes: Iterable[ClassDescriptor] = ()) -> None:
        self._classes: dict[str, ClassDescriptor] = {}
        for cls in classes:
            if cls.fqn in self._classes:
                logger.warning("Duplicate class %s ignored (first definition kept)", cls.fqn)
                continue
            self._classes[cls.fqn] = cls

    def __len__(self) -> int:
        return len(self._classes)

    def __iter__(self) -> Iterator[ClassDescriptor]:
        return iter(self._classes.values())

    def __contains__(self, fqn: object) -> bool:
        return fqn in self._classes

    def all_classes(self) -> tuple[ClassDescriptor, ...]:
        """Every class, in stable corpus order."""
        return tuple(self._classes.values())

    def get_class(self, fqn: str) -> ClassDescriptor | None:
        return self._classes.get(fqn)

    def methods(self) -> Iterator[MethodDescriptor]:
        for cls in self._classes.values():
            yield from cls.methods

    def owner_of(self, method: MethodDescriptor) -> ClassDescriptor | None:
        """Return the class that owns *method*, or ``None`` if it is not indexed."""
        owner = self._classes.get(method.class_fqn)
        if owner is None or method not in owner.methods:
            return None
        return owner

    @property
    def method_count(self) -> int:
        return sum(len(cls.methods) for cls in self._classes.values())

    @property
    def property_count(self) -> int:
        return sum(len(cls.properties) for cls in self._classes.values())


def build_index(corpus_root: Path) -> SymbolIndex:
    """Reflect every source file under *corpus_root* into a :class:`SymbolIndex`.

    Raises :class:`IndexBuildError` if the corpus cannot be enumerated, a file
    cannot be read, or a file fails to parse.
    """
    setup_reflectors()

    try:
        scan = scan_corpus(corpus_root)
    except OSError as exc:
        raise IndexBuildError(f"cannot enumerate corpus: {exc}") from exc

    classes: list[ClassDescriptor] = []
    for sf in scan.source_files:
        reflector = get_reflector(sf.language)
        if reflector is None:
            logger.debug("No reflector for %s (%s)", sf.path, sf.language)
            continue
        try:
            classes.extend(reflector.reflect_file(scan.root / sf.path, sf.path))
        except ParseError as exc:
            raise IndexBuildError(f"cannot parse {sf.path}: {exc}") from exc
        except OSError as exc:
            raise IndexBuildError(f"cannot read {sf.path}: {exc}") from exc

    index = SymbolIndex(classes)
    logger.info(
        "Indexed %d class(es), %d method(s) from %d file(s) under %s",
        len(index), index.method_count, len(scan.source_files), scan.root,
    )
    return index
