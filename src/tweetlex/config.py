from dataclasses import dataclass
from functools import lru_cache
import os

RECORD_FORMATS = {"auto", "text", "json"}
EXECUTORS = {"process", "thread"}


def _to_bool(value: str | None, *, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _to_int(value: str | None, *, default: int, minimum: int) -> int:
    if value is None:
        return default
    parsed = int(value)
    return max(minimum, parsed)


def _to_choice(value: str | None, *, default: str, choices: set[str], name: str) -> str:
    if value is None or not value.strip():
        return default
    normalized = value.strip().lower()
    if normalized not in choices:
        raise ValueError(f"{name} must be one of {sorted(choices)}, got {value!r}")
    return normalized


def _to_extensions(value: str | None) -> tuple[str, ...]:
    if value is None:
        return ()
    extensions: list[str] = []
    for item in value.split(","):
        normalized = item.strip().lower()
        if not normalized:
            continue
        if not normalized.startswith("."):
            normalized = f".{normalized}"
        extensions.append(normalized)
    return tuple(sorted(set(extensions)))


def _to_separator(value: str | None) -> str:
    if value is None or value == "":
        return "\t"
    # env files cannot carry a literal tab easily
    return value.replace("\\t", "\t")


@dataclass(frozen=True)
class Settings:
    source_dir: str
    output_dir: str
    output_prefix: str
    output_path: str
    file_extensions: tuple[str, ...]
    record_format: str
    workers: int
    executor: str
    min_count: int
    separator: str
    split_by_language: bool
    progress_every: int


@lru_cache
def get_settings() -> Settings:
    output_dir = os.getenv("TWEETLEX_OUTPUT_DIR", "output")
    output_prefix = os.getenv("TWEETLEX_OUTPUT_PREFIX", "twitter_corpus")
    output_path = os.getenv("TWEETLEX_OUTPUT_PATH") or os.path.join(
        output_dir, f"{output_prefix}.txt"
    )

    return Settings(
        source_dir=os.getenv("TWEETLEX_SOURCE_DIR", "sources"),
        output_dir=output_dir,
        output_prefix=output_prefix,
        output_path=output_path,
        file_extensions=_to_extensions(os.getenv("TWEETLEX_FILE_EXTENSIONS")),
        record_format=_to_choice(
            os.getenv("TWEETLEX_RECORD_FORMAT"),
            default="auto",
            choices=RECORD_FORMATS,
            name="TWEETLEX_RECORD_FORMAT",
        ),
        workers=_to_int(os.getenv("TWEETLEX_WORKERS"), default=os.cpu_count() or 1, minimum=1),
        executor=_to_choice(
            os.getenv("TWEETLEX_EXECUTOR"),
            default="process",
            choices=EXECUTORS,
            name="TWEETLEX_EXECUTOR",
        ),
        min_count=_to_int(os.getenv("TWEETLEX_MIN_COUNT"), default=1, minimum=1),
        separator=_to_separator(os.getenv("TWEETLEX_SEPARATOR")),
        split_by_language=_to_bool(os.getenv("TWEETLEX_SPLIT_BY_LANGUAGE"), default=False),
        progress_every=_to_int(os.getenv("TWEETLEX_PROGRESS_EVERY"), default=100, minimum=1),
    )
