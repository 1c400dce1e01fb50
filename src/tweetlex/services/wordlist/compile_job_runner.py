from __future__ import annotations

import argparse
import json
from pathlib import Path
import sys
from time import perf_counter
from typing import TypedDict

from tweetlex.config import get_settings
from tweetlex.services.wordlist.compiler import CompiledWordlist, compile_corpus
from tweetlex.services.wordlist.writer import write_language_wordlists, write_wordlist


class CompileResult(TypedDict):
    files: int
    failed_files: int
    records: int
    skipped_records: int
    tokens: int
    distinct_tokens: int
    purged_tokens: int
    languages: list[str]
    outputs: list[str]
    duration_ms: int


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tweetlex-compile-runner",
        description="Run one word list compile and print its metrics as JSON",
    )
    parser.add_argument(
        "--payload-json",
        default=None,
        help=(
            "Optional JSON object payload with runtime overrides "
            "(source_dir/output_path/output_dir/workers/executor/min_count/split_by_language)"
        ),
    )
    return parser


def _self_check(compiled: CompiledWordlist) -> None:
    summary = compiled.summary
    emitted = compiled.combined.total()
    if summary.purged_tokens == 0 and emitted != summary.token_count:
        raise ValueError(
            f"compile self-check failed: emitted {emitted} counts for {summary.token_count} tokens"
        )
    if emitted > summary.token_count:
        raise ValueError(
            f"compile self-check failed: emitted {emitted} counts exceed {summary.token_count} tokens"
        )


def run_compile_job(
    *,
    source_dir: Path,
    output_path: Path,
    output_dir: Path | None = None,
    output_prefix: str = "twitter_corpus",
    extensions: tuple[str, ...] = (),
    record_format: str = "auto",
    workers: int = 1,
    executor: str = "process",
    min_count: int = 1,
    split_by_language: bool = False,
    separator: str = "\t",
    progress_every: int = 100,
) -> CompileResult:
    start = perf_counter()

    compiled = compile_corpus(
        source_dir=source_dir,
        extensions=extensions,
        record_format=record_format,
        workers=workers,
        executor=executor,
        min_count=min_count,
        split_by_language=split_by_language,
        progress_every=progress_every,
    )
    _self_check(compiled)

    if compiled.by_language is not None:
        outputs = write_language_wordlists(
            output_dir if output_dir is not None else output_path.parent,
            compiled.by_language,
            prefix=output_prefix,
            separator=separator,
        )
    else:
        outputs = [write_wordlist(output_path, compiled.combined, separator=separator)]

    summary = compiled.summary
    duration_ms = int((perf_counter() - start) * 1000)
    return {
        "files": summary.file_count,
        "failed_files": summary.failed_files,
        "records": summary.record_count,
        "skipped_records": summary.skipped_records,
        "tokens": summary.token_count,
        "distinct_tokens": summary.distinct_tokens,
        "purged_tokens": summary.purged_tokens,
        "languages": list(summary.languages),
        "outputs": [str(path) for path in outputs],
        "duration_ms": duration_ms,
    }


def _resolve_payload(payload_json_raw: str | None) -> dict[str, object]:
    if payload_json_raw is None:
        return {}
    parsed = json.loads(payload_json_raw)
    if not isinstance(parsed, dict):
        raise ValueError("payload_json must be a JSON object")
    return parsed


def _payload_int(payload: dict[str, object], key: str, default: int) -> int:
    value = payload.get(key, default)
    if isinstance(value, bool):
        raise ValueError(f"{key} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        return int(value)
    raise ValueError(f"{key} must be an integer")


def _payload_bool(payload: dict[str, object], key: str, default: bool) -> bool:
    value = payload.get(key, default)
    if isinstance(value, bool):
        return value
    raise ValueError(f"{key} must be a boolean")


def main() -> None:
    parser = _build_parser()
    args = parser.parse_args()

    try:
        settings = get_settings()
        payload = _resolve_payload(args.payload_json)
        metrics = run_compile_job(
            source_dir=Path(str(payload.get("source_dir", settings.source_dir))),
            output_path=Path(str(payload.get("output_path", settings.output_path))),
            output_dir=Path(str(payload.get("output_dir", settings.output_dir))),
            output_prefix=str(payload.get("output_prefix", settings.output_prefix)),
            extensions=settings.file_extensions,
            record_format=str(payload.get("record_format", settings.record_format)),
            workers=_payload_int(payload, "workers", settings.workers),
            executor=str(payload.get("executor", settings.executor)),
            min_count=_payload_int(payload, "min_count", settings.min_count),
            split_by_language=_payload_bool(
                payload, "split_by_language", settings.split_by_language
            ),
            separator=settings.separator,
            progress_every=settings.progress_every,
        )
    except Exception as exc:
        print(f"[tweetlex-compile-runner] failed: {exc}", file=sys.stderr, flush=True)
        raise SystemExit(1) from exc

    print(json.dumps(metrics), flush=True)


if __name__ == "__main__":
    main()
