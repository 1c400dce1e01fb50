from __future__ import annotations

from collections.abc import Iterable, Iterator
import os
from pathlib import Path
import sys

from tweetlex.errors import CorpusIOError


def _normalize_extensions(extensions: Iterable[str] | None) -> set[str]:
    if not extensions:
        return set()
    return {
        extension.lower() if extension.startswith(".") else f".{extension.lower()}"
        for extension in extensions
    }


def _warn_unreadable(exc: OSError) -> None:
    print(
        f"[tweetlex] warning: skipping unreadable directory {exc.filename}: {exc.strerror or exc}",
        file=sys.stderr,
        flush=True,
    )


def _walk(source_dir: Path, extensions: set[str]) -> Iterator[Path]:
    for dirpath, dirnames, filenames in os.walk(source_dir, onerror=_warn_unreadable):
        # sorted in place so os.walk descends in a stable order
        dirnames.sort()
        directory = Path(dirpath)
        for filename in sorted(filenames):
            path = directory / filename
            if extensions and path.suffix.lower() not in extensions:
                continue
            if not path.is_file():
                continue
            yield path


def discover_files(
    source_dir: Path,
    extensions: Iterable[str] | None = None,
) -> Iterator[Path]:
    """Yield every file below ``source_dir``, depth first, in sorted order.

    The root is validated immediately; the walk itself is lazy. Directories
    that cannot be listed are reported and skipped.
    """
    if not source_dir.exists():
        raise CorpusIOError(f"Source directory not found: {source_dir}")
    if not source_dir.is_dir():
        raise CorpusIOError(f"Source path is not a directory: {source_dir}")
    if not os.access(source_dir, os.R_OK | os.X_OK):
        raise CorpusIOError(f"Source directory is not readable: {source_dir}")

    return _walk(source_dir, _normalize_extensions(extensions))
