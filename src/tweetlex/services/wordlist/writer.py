from __future__ import annotations

from collections.abc import Iterable
import os
from pathlib import Path
import sys
from typing import TextIO

from tweetlex.errors import OutputWriteError
from tweetlex.services.wordlist.aggregator import FrequencyTable, LanguageTables
from tweetlex.services.wordlist.types import WordCount

STDOUT_PATH = "-"


def format_line(entry: WordCount, *, separator: str = "\t") -> str:
    return f"{entry.token}{separator}{entry.count}\n"


def write_entries(stream: TextIO, entries: Iterable[WordCount], *, separator: str = "\t") -> int:
    written = 0
    for entry in entries:
        stream.write(format_line(entry, separator=separator))
        written += 1
    return written


def write_wordlist(output_path: Path, table: FrequencyTable, *, separator: str = "\t") -> Path:
    """Write ``table`` sorted by frequency, replacing ``output_path`` atomically."""
    if str(output_path) == STDOUT_PATH:
        write_entries(sys.stdout, table.emit(), separator=separator)
        sys.stdout.flush()
        return output_path

    tmp_path = output_path.with_name(f"{output_path.name}.tmp")
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(tmp_path, "w", encoding="utf-8", newline="\n") as handle:
            write_entries(handle, table.emit(), separator=separator)
        os.replace(tmp_path, output_path)
    except OSError as exc:
        raise OutputWriteError(f"Cannot write word list to {output_path}: {exc}") from exc
    finally:
        if tmp_path.exists():
            tmp_path.unlink()

    return output_path


def language_output_path(output_dir: Path, prefix: str, lang: str) -> Path:
    return output_dir / f"{prefix}_{lang}.txt"


def write_language_wordlists(
    output_dir: Path,
    tables: LanguageTables,
    *,
    prefix: str,
    separator: str = "\t",
) -> list[Path]:
    written: list[Path] = []
    for lang, table in tables.items():
        written.append(
            write_wordlist(
                language_output_path(output_dir, prefix, lang),
                table,
                separator=separator,
            )
        )
    return written
