from __future__ import annotations

import bz2
from collections.abc import Callable, Iterator
import gzip
from pathlib import Path
from typing import BinaryIO

from pydantic import BaseModel, ConfigDict, ValidationError

from tweetlex.errors import RecordDecodeError
from tweetlex.services.wordlist.types import Record

_LANG_CHARS = frozenset("abcdefghijklmnopqrstuvwxyz0123456789-_")


class TweetPayload(BaseModel):
    # archive lines carry dozens of other fields we do not need
    model_config = ConfigDict(extra="ignore")

    text: str
    lang: str | None = None


def open_source(path: Path) -> BinaryIO:
    suffix = path.suffix.lower()
    if suffix == ".bz2":
        return bz2.open(path, "rb")
    if suffix == ".gz":
        return gzip.open(path, "rb")
    return open(path, "rb")


def _normalize_lang(lang: str | None) -> str | None:
    if lang is None:
        return None
    normalized = lang.strip().lower()
    # language codes end up in output file names
    if not normalized or not all(char in _LANG_CHARS for char in normalized):
        return None
    return normalized


def _is_invalid_json(exc: ValidationError) -> bool:
    return any(error["type"] == "json_invalid" for error in exc.errors())


def decode_record(raw: bytes, *, record_format: str = "auto") -> Record | None:
    """Decode one raw line into a ``Record``; blank lines give ``None``."""
    try:
        line = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise RecordDecodeError(f"line is not valid UTF-8: {exc}") from exc

    line = line.rstrip("\r\n")
    if not line.strip():
        return None

    is_json = record_format == "json" or (
        record_format == "auto" and line.lstrip().startswith("{")
    )
    if not is_json:
        return Record(text=line)

    try:
        payload = TweetPayload.model_validate_json(line)
    except ValidationError as exc:
        # "{lol} that was funny" is prose, not a broken tweet
        if record_format == "auto" and _is_invalid_json(exc):
            return Record(text=line)
        raise RecordDecodeError(
            f"line is not a tweet record: {exc.error_count()} validation error(s)"
        ) from exc

    return Record(text=payload.text, lang=_normalize_lang(payload.lang))


def iter_records(
    path: Path,
    *,
    record_format: str = "auto",
    on_skip: Callable[[RecordDecodeError], None] | None = None,
) -> Iterator[Record]:
    """Stream the records of one source file, closing it when exhausted.

    Open and read failures (``OSError``, ``EOFError`` from truncated archives,
    ``zlib.error`` from corrupt gzip data) propagate; undecodable lines are
    handed to ``on_skip`` and dropped.
    """
    with open_source(path) as handle:
        for raw in handle:
            try:
                record = decode_record(raw, record_format=record_format)
            except RecordDecodeError as exc:
                if on_skip is not None:
                    on_skip(exc)
                continue
            if record is not None:
                yield record
