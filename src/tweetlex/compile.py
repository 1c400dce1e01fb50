from __future__ import annotations

import argparse
from pathlib import Path
import sys

from tweetlex.config import EXECUTORS, RECORD_FORMATS, get_settings
from tweetlex.services.wordlist.compile_job_runner import run_compile_job
from tweetlex.services.wordlist.writer import STDOUT_PATH


def _build_parser() -> argparse.ArgumentParser:
    settings = get_settings()

    parser = argparse.ArgumentParser(
        prog="tweetlex",
        description="Compile a word frequency list from a directory of tweet archives",
    )
    parser.add_argument(
        "--source-dir",
        default=settings.source_dir,
        help="Corpus root, searched recursively (default: %(default)s)",
    )
    parser.add_argument(
        "--output",
        default=settings.output_path,
        help="Output word list path, '-' for stdout (default: %(default)s)",
    )
    parser.add_argument(
        "--output-dir",
        default=settings.output_dir,
        help="Directory for per-language word lists (default: %(default)s)",
    )
    parser.add_argument(
        "--output-prefix",
        default=settings.output_prefix,
        help="File name prefix for per-language word lists (default: %(default)s)",
    )
    parser.add_argument(
        "--extensions",
        default=",".join(settings.file_extensions),
        help="Comma separated file suffixes to read, empty for all files",
    )
    parser.add_argument(
        "--record-format",
        choices=sorted(RECORD_FORMATS),
        default=settings.record_format,
        help="How each line is decoded (default: %(default)s)",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=settings.workers,
        help="Number of parallel workers (default: %(default)s)",
    )
    parser.add_argument(
        "--executor",
        choices=sorted(EXECUTORS),
        default=settings.executor,
        help="Worker pool type (default: %(default)s)",
    )
    parser.add_argument(
        "--min-count",
        type=int,
        default=settings.min_count,
        help="Drop words seen fewer times than this (default: %(default)s)",
    )
    parser.add_argument(
        "--split-by-language",
        action=argparse.BooleanOptionalAction,
        default=settings.split_by_language,
        help="Write one word list per tweet language",
    )
    return parser


def _parse_extensions(raw: str) -> tuple[str, ...]:
    return tuple(item.strip() for item in raw.split(",") if item.strip())


def main() -> None:
    try:
        # bad TWEETLEX_* values surface while the flag defaults are built
        parser = _build_parser()
        args = parser.parse_args()
        settings = get_settings()
        metrics = run_compile_job(
            source_dir=Path(args.source_dir),
            output_path=Path(args.output),
            output_dir=Path(args.output_dir),
            output_prefix=args.output_prefix,
            extensions=_parse_extensions(args.extensions),
            record_format=args.record_format,
            workers=max(1, args.workers),
            executor=args.executor,
            min_count=max(1, args.min_count),
            split_by_language=args.split_by_language,
            separator=settings.separator,
            progress_every=settings.progress_every,
        )
    except Exception as exc:
        print(f"[tweetlex] failed: {exc}", file=sys.stderr, flush=True)
        raise SystemExit(1) from exc

    stream = sys.stderr if args.output == STDOUT_PATH else sys.stdout
    print(
        "[tweetlex] completed "
        f"files={metrics['files']} "
        f"failed_files={metrics['failed_files']} "
        f"tokens={metrics['tokens']} "
        f"distinct={metrics['distinct_tokens']} "
        f"outputs={','.join(metrics['outputs'])}",
        file=stream,
        flush=True,
    )


if __name__ == "__main__":
    main()
