import bz2
import gc
import gzip
import json
from pathlib import Path

import pytest

from tweetlex.errors import CorpusIOError
from tweetlex.services.wordlist import compiler
from tweetlex.services.wordlist.aggregator import LanguageTables
from tweetlex.services.wordlist.compiler import compile_corpus, count_file
from tweetlex.services.wordlist.types import WordCount


def _write_tweets(path: Path, tweets: list[dict[str, object]]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with bz2.open(path, "wt", encoding="utf-8") as handle:
        for tweet in tweets:
            handle.write(json.dumps(tweet) + "\n")


def _synthetic_corpus(root: Path) -> dict[str, int]:
    expected: dict[str, int] = {}
    vocabulary = ["alpha", "beta", "gamma", "delta", "epsilon"]
    for file_index in range(6):
        lines = []
        for line_index in range(5):
            words = vocabulary[: (file_index + line_index) % len(vocabulary) + 1]
            lines.append(" ".join(word.upper() if line_index % 2 else word for word in words))
            for word in words:
                expected[word] = expected.get(word, 0) + 1
        path = root / f"part-{file_index % 2}" / f"{file_index:02d}.txt"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return expected


def test_compile_corpus_two_file_scenario(tmp_path: Path) -> None:
    (tmp_path / "a.txt").write_text("hello world hello\n", encoding="utf-8")
    (tmp_path / "b.txt").write_text("world WORLD #hello\n", encoding="utf-8")

    compiled = compile_corpus(source_dir=tmp_path)

    assert compiled.combined.emit() == [
        WordCount(token="hello", count=3),
        WordCount(token="world", count=3),
    ]
    assert compiled.summary.file_count == 2
    assert compiled.summary.token_count == 6


def test_compile_corpus_counts_are_exact(tmp_path: Path) -> None:
    expected = _synthetic_corpus(tmp_path)

    compiled = compile_corpus(source_dir=tmp_path)

    assert compiled.combined.as_dict() == expected
    assert compiled.combined.total() == sum(expected.values())
    assert compiled.summary.token_count == sum(expected.values())
    assert compiled.summary.record_count == 30


@pytest.mark.parametrize(
    ("executor", "workers"),
    [("thread", 2), ("thread", 4), ("process", 2)],
)
def test_parallel_compile_matches_sequential(tmp_path: Path, executor: str, workers: int) -> None:
    _synthetic_corpus(tmp_path)

    sequential = compile_corpus(source_dir=tmp_path, workers=1)
    parallel = compile_corpus(source_dir=tmp_path, workers=workers, executor=executor)

    assert parallel.combined.as_dict() == sequential.combined.as_dict()
    assert parallel.combined.emit() == sequential.combined.emit()
    assert parallel.summary == sequential.summary


def test_compile_corpus_on_empty_directory_is_empty(tmp_path: Path) -> None:
    compiled = compile_corpus(source_dir=tmp_path, workers=4, executor="thread")

    assert compiled.combined.emit() == []
    assert compiled.summary.file_count == 0
    assert compiled.summary.token_count == 0


def test_punctuation_only_file_yields_no_tokens(tmp_path: Path) -> None:
    (tmp_path / "noise.txt").write_text("!!! ... 1234 5,6\n:-) ???\n", encoding="utf-8")

    tally, tables = count_file(tmp_path / "noise.txt")

    assert tally.record_count == 2
    assert tally.token_count == 0
    assert tables.total() == 0


def test_compile_corpus_rejects_missing_root(tmp_path: Path) -> None:
    with pytest.raises(CorpusIOError, match="Source directory not found"):
        compile_corpus(source_dir=tmp_path / "sources")


@pytest.mark.parametrize("workers", [1, 3])
def test_unreadable_file_is_skipped_and_run_continues(
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
    workers: int,
) -> None:
    (tmp_path / "good.txt").write_text("still counted\n", encoding="utf-8")
    (tmp_path / "broken.bz2").write_bytes(b"definitely not bzip2")
    (tmp_path / "other.txt").write_text("counted too\n", encoding="utf-8")

    compiled = compile_corpus(source_dir=tmp_path, workers=workers, executor="thread")

    assert compiled.summary.file_count == 3
    assert compiled.summary.failed_files == 1
    assert compiled.combined.as_dict() == {"still": 1, "counted": 2, "too": 1}
    err = capsys.readouterr().err
    assert "skipping" in err
    assert "broken.bz2" in err


@pytest.mark.parametrize("workers", [1, 3])
def test_corrupt_gzip_stream_is_skipped_and_run_continues(
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
    workers: int,
) -> None:
    archive = bytearray(gzip.compress(b"lost words\n" * 50))
    # a valid gzip header followed by a deflate block of the reserved type
    archive[10] = 0x07
    (tmp_path / "bad.gz").write_bytes(bytes(archive))
    (tmp_path / "good.txt").write_text("still counted\n", encoding="utf-8")
    (tmp_path / "other.txt").write_text("counted too\n", encoding="utf-8")

    compiled = compile_corpus(source_dir=tmp_path, workers=workers, executor="thread")

    assert compiled.summary.file_count == 3
    assert compiled.summary.failed_files == 1
    assert compiled.combined.as_dict() == {"still": 1, "counted": 2, "too": 1}
    err = capsys.readouterr().err
    assert "skipping" in err
    assert "bad.gz" in err


def test_brace_prefixed_prose_is_counted_as_text(tmp_path: Path) -> None:
    (tmp_path / "posts.txt").write_text(
        '{lol} that was funny\n{"delete": {"status": {"id": 1}}}\n',
        encoding="utf-8",
    )

    compiled = compile_corpus(source_dir=tmp_path)

    assert compiled.combined.as_dict() == {"lol": 1, "that": 1, "was": 1, "funny": 1}
    assert compiled.summary.record_count == 1
    assert compiled.summary.skipped_records == 1


def test_parallel_compile_keeps_few_file_tables_alive(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    for index in range(24):
        (tmp_path / f"{index:02d}.txt").write_text(f"word{index} shared\n", encoding="utf-8")

    def _live_tables() -> int:
        gc.collect()
        return sum(isinstance(obj, LanguageTables) for obj in gc.get_objects())

    baseline = _live_tables()
    observed: list[int] = []
    advance = compiler._Progress.advance

    def _advance(self: compiler._Progress) -> None:
        observed.append(_live_tables() - baseline)
        advance(self)

    monkeypatch.setattr(compiler._Progress, "advance", _advance)

    workers = 2
    compiled = compile_corpus(source_dir=tmp_path, workers=workers, executor="thread")

    assert compiled.combined["shared"] == 24
    assert len(observed) == 24
    # the merged result, the table just merged, and the submission window
    # (completed futures still held by the current wait() batch count twice)
    assert max(observed) <= 2 + 2 * workers * compiler.PENDING_PER_WORKER


def test_compile_corpus_reads_tweet_archives_and_counts_skips(tmp_path: Path) -> None:
    _write_tweets(
        tmp_path / "2021" / "01" / "00.json.bz2",
        [
            {"text": "RT @someone: Good morning world", "lang": "en"},
            {"delete": {"status": {"id": 1}}},
            {"text": "Buenos días mundo", "lang": "es"},
        ],
    )

    compiled = compile_corpus(source_dir=tmp_path, extensions={".bz2"})

    assert compiled.combined.as_dict() == {
        "good": 1,
        "morning": 1,
        "world": 1,
        "buenos": 1,
        "días": 1,
        "mundo": 1,
    }
    assert compiled.summary.record_count == 2
    assert compiled.summary.skipped_records == 1
    assert compiled.summary.languages == ("en", "es")


def test_compile_corpus_splits_by_language(tmp_path: Path) -> None:
    _write_tweets(
        tmp_path / "00.json.bz2",
        [
            {"text": "hello hello amigo", "lang": "en"},
            {"text": "hola amigo", "lang": "es"},
            {"text": "amigo"},
        ],
    )

    compiled = compile_corpus(source_dir=tmp_path, split_by_language=True)

    assert compiled.by_language is not None
    assert compiled.by_language.languages() == ("en", "es", "und")
    assert compiled.by_language.table("en").as_dict() == {"hello": 2, "amigo": 1}
    assert compiled.combined["amigo"] == 3


def test_min_count_applies_to_combined_totals(tmp_path: Path) -> None:
    _write_tweets(
        tmp_path / "00.json.bz2",
        [
            {"text": "shared shared solo", "lang": "en"},
            {"text": "shared", "lang": "es"},
        ],
    )

    flat = compile_corpus(source_dir=tmp_path, min_count=3)
    split = compile_corpus(source_dir=tmp_path, min_count=3, split_by_language=True)

    assert flat.combined.as_dict() == {"shared": 3}
    assert flat.summary.purged_tokens == 1
    assert split.combined.as_dict() == {}
    assert split.summary.purged_tokens == 3
    assert split.summary.languages == ()


def test_languages_report_only_lists_that_survive_the_purge(tmp_path: Path) -> None:
    _write_tweets(
        tmp_path / "00.json.bz2",
        [
            {"text": "hello hello", "lang": "en"},
            {"text": "hola", "lang": "es"},
        ],
    )

    compiled = compile_corpus(source_dir=tmp_path, min_count=2, split_by_language=True)

    assert compiled.by_language is not None
    assert compiled.by_language.languages() == ("en",)
    assert compiled.summary.languages == ("en",)


def test_compile_corpus_reports_progress(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    for index in range(3):
        (tmp_path / f"{index}.txt").write_text("word\n", encoding="utf-8")

    compile_corpus(source_dir=tmp_path, progress_every=2)

    err = capsys.readouterr().err
    assert "[tweetlex] progress 2/3 (66.67%)" in err
    assert "[tweetlex] progress 3/3 (100.00%)" in err
