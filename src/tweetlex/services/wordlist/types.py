from dataclasses import dataclass


@dataclass(frozen=True)
class Record:
    text: str
    lang: str | None = None


@dataclass(frozen=True)
class WordCount:
    token: str
    count: int


@dataclass(frozen=True)
class FileTally:
    path: str
    record_count: int
    skipped_records: int
    token_count: int


@dataclass(frozen=True)
class CompileSummary:
    file_count: int
    failed_files: int
    record_count: int
    skipped_records: int
    token_count: int
    distinct_tokens: int
    purged_tokens: int
    languages: tuple[str, ...]
