"""Corpus scanner -- walks the source tree and classifies reflectable files."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import SourceFile

# Directories to skip unconditionally.
SKIP_DIRS: set[str] = {
    ".git", ".svn", ".hg", ".idea", ".vscode",
    "node_modules", ".cache", ".phpunit.cache",
    "coverage",
}

# Extension -> language name mapping.
LANGUAGE_EXTENSIONS: dict[str, str] = {
    ".php": "php",
}


@dataclass
class ScanResult:
    """Collected information about a corpus."""

    root: Path
    source_files: list[SourceFile] = field(default_factory=list)  # reflectable files
    languages: list[str] = field(default_factory=list)            # detected languages


def scan_corpus(root: Path) -> ScanResult:
    """Walk *root* recursively and return every reflectable source file.

    Paths are returned **relative to root** using forward slashes and sorted,
    so repeated scans of an unchanged tree yield the same order.

    Raises ``FileNotFoundError`` / ``NotADirectoryError`` when *root* cannot
    be enumerated.
    """
    from .models import SourceFile

    root = Path(root).resolve()
    if not root.exists():
        raise FileNotFoundError(f"corpus root does not exist: {root}")
    if not root.is_dir():
        raise NotADirectoryError(f"corpus root is not a directory: {root}")

    result = ScanResult(root=root)
    seen_languages: set[str] = set()

    for dirpath, dirnames, filenames in os.walk(root):
        # Prune excluded directories in-place so os.walk skips them.
        dirnames[:] = [d for d in dirnames if d not in SKIP_DIRS]

        rel_dir = Path(dirpath).resolve().relative_to(root).as_posix()
        if rel_dir == ".":
            rel_dir = ""

        for fname in filenames:
            ext = os.path.splitext(fname)[1].lower()
            language = LANGUAGE_EXTENSIONS.get(ext)
            if not language:
                continue

            rel_path = f"{rel_dir}/{fname}" if rel_dir else fname
            result.source_files.append(SourceFile(path=rel_path, language=language))
            seen_languages.add(language)

    result.source_files.sort(key=lambda sf: sf.path)
    result.languages = sorted(seen_languages)
    return result
