from __future__ import annotations

from collections.abc import Iterable
from concurrent.futures import (
    FIRST_COMPLETED,
    Executor,
    Future,
    ProcessPoolExecutor,
    ThreadPoolExecutor,
    wait,
)
from dataclasses import dataclass
from itertools import islice
from pathlib import Path
import sys
import zlib

from tweetlex.errors import RecordDecodeError
from tweetlex.services.wordlist.aggregator import FrequencyTable, LanguageTables
from tweetlex.services.wordlist.discovery import discover_files
from tweetlex.services.wordlist.reader import iter_records
from tweetlex.services.wordlist.tokenizer import tokenize
from tweetlex.services.wordlist.types import CompileSummary, FileTally

# zlib.error (corrupt deflate data in .gz files) is not an OSError
FILE_READ_ERRORS = (OSError, EOFError, zlib.error)
PENDING_PER_WORKER = 2


@dataclass(frozen=True)
class CompiledWordlist:
    combined: FrequencyTable
    by_language: LanguageTables | None
    summary: CompileSummary


def count_file(path: Path, *, record_format: str = "auto") -> tuple[FileTally, LanguageTables]:
    """Count one file into a fresh, file-local set of tables."""
    tables = LanguageTables()
    skipped = 0
    record_count = 0
    token_count = 0

    def _on_skip(_: RecordDecodeError) -> None:
        nonlocal skipped
        skipped += 1

    for record in iter_records(path, record_format=record_format, on_skip=_on_skip):
        record_count += 1
        token_count += tables.table(record.lang).record_many(tokenize(record.text))

    tally = FileTally(
        path=str(path),
        record_count=record_count,
        skipped_records=skipped,
        token_count=token_count,
    )
    return tally, tables


def _create_executor(executor: str, workers: int) -> Executor:
    if executor == "process":
        return ProcessPoolExecutor(max_workers=workers)
    if executor == "thread":
        return ThreadPoolExecutor(max_workers=workers, thread_name_prefix="tweetlex")
    raise ValueError(f"executor must be 'process' or 'thread', got {executor!r}")


class _Progress:
    def __init__(self, total: int, every: int) -> None:
        self._total = total
        self._every = max(1, every)
        self._done = 0

    def advance(self) -> None:
        self._done += 1
        if self._done % self._every == 0 or self._done == self._total:
            percentage = (self._done / self._total) * 100
            print(
                f"[tweetlex] progress {self._done}/{self._total} ({percentage:.2f}%)",
                file=sys.stderr,
                flush=True,
            )


def _warn_failed_file(path: Path, exc: BaseException) -> None:
    print(f"[tweetlex] warning: skipping {path}: {exc}", file=sys.stderr, flush=True)


def compile_corpus(
    *,
    source_dir: Path,
    extensions: Iterable[str] | None = None,
    record_format: str = "auto",
    workers: int = 1,
    executor: str = "process",
    min_count: int = 1,
    split_by_language: bool = False,
    progress_every: int = 100,
) -> CompiledWordlist:
    files = list(discover_files(source_dir, extensions))
    progress = _Progress(len(files), progress_every)

    result = LanguageTables()
    failed_files = 0
    record_count = 0
    skipped_records = 0
    token_count = 0

    def _absorb(tally: FileTally, tables: LanguageTables) -> None:
        nonlocal record_count, skipped_records, token_count
        result.merge(tables)
        record_count += tally.record_count
        skipped_records += tally.skipped_records
        token_count += tally.token_count

    if workers <= 1 or len(files) <= 1:
        for path in files:
            try:
                tally, tables = count_file(path, record_format=record_format)
            except FILE_READ_ERRORS as exc:
                _warn_failed_file(path, exc)
                failed_files += 1
            else:
                _absorb(tally, tables)
            progress.advance()
    else:
        pool_size = min(workers, len(files))
        remaining = iter(files)
        # a bounded window keeps at most a few unmerged file tables alive
        pending: dict[Future[tuple[FileTally, LanguageTables]], Path] = {}
        with _create_executor(executor, pool_size) as pool:

            def _submit(path: Path) -> None:
                pending[pool.submit(count_file, path, record_format=record_format)] = path

            for path in islice(remaining, pool_size * PENDING_PER_WORKER):
                _submit(path)

            while pending:
                done, _ = wait(pending, return_when=FIRST_COMPLETED)
                for future in done:
                    path = pending.pop(future)
                    try:
                        tally, tables = future.result()
                    except FILE_READ_ERRORS as exc:
                        _warn_failed_file(path, exc)
                        failed_files += 1
                    else:
                        _absorb(tally, tables)
                    progress.advance()

                    next_path = next(remaining, None)
                    if next_path is not None:
                        _submit(next_path)

    if split_by_language:
        # the threshold applies to each language list on its own
        purged_tokens = result.purge(min_count)
        by_language: LanguageTables | None = result
        combined = result.flatten()
    else:
        by_language = None
        combined = result.flatten()
        purged_tokens = combined.purge(min_count)
    languages = result.languages()

    summary = CompileSummary(
        file_count=len(files),
        failed_files=failed_files,
        record_count=record_count,
        skipped_records=skipped_records,
        token_count=token_count,
        distinct_tokens=len(combined),
        purged_tokens=purged_tokens,
        languages=languages,
    )
    return CompiledWordlist(combined=combined, by_language=by_language, summary=summary)
