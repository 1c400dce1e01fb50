from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Iterator, Mapping

from tweetlex.services.wordlist.types import WordCount

UNDETERMINED_LANGUAGE = "und"


def _emit_key(item: tuple[str, int]) -> tuple[int, str]:
    token, count = item
    return (-count, token)


class FrequencyTable:
    """Exact token counter.

    One instance is owned by a compile run; workers fill their own instances
    and the run merges them, so no table is ever shared between threads.
    """

    def __init__(self, counts: Mapping[str, int] | None = None) -> None:
        self._counts: Counter[str] = Counter()
        if counts:
            self.merge(counts)

    def record(self, token: str) -> None:
        self._counts[token] += 1

    def record_many(self, tokens: Iterable[str]) -> int:
        recorded = 0
        for token in tokens:
            self._counts[token] += 1
            recorded += 1
        return recorded

    def merge(self, other: FrequencyTable | Mapping[str, int]) -> None:
        counts = other._counts if isinstance(other, FrequencyTable) else other
        for token, count in counts.items():
            if count < 0:
                raise ValueError(f"count for {token!r} must be >= 0")
            self._counts[token] += count

    def purge(self, min_count: int) -> int:
        if min_count <= 1:
            return 0
        infrequent = [token for token, count in self._counts.items() if count < min_count]
        for token in infrequent:
            del self._counts[token]
        return len(infrequent)

    def emit(self) -> list[WordCount]:
        return [
            WordCount(token=token, count=count)
            for token, count in sorted(self._counts.items(), key=_emit_key)
        ]

    def total(self) -> int:
        return sum(self._counts.values())

    def as_dict(self) -> dict[str, int]:
        return dict(self._counts)

    def __len__(self) -> int:
        return len(self._counts)

    def __contains__(self, token: object) -> bool:
        return token in self._counts

    def __getitem__(self, token: str) -> int:
        return self._counts.get(token, 0)

    def __iter__(self) -> Iterator[str]:
        return iter(self._counts)


class LanguageTables:
    """One ``FrequencyTable`` per language code."""

    def __init__(self) -> None:
        self._tables: dict[str, FrequencyTable] = {}

    def table(self, lang: str | None) -> FrequencyTable:
        key = lang or UNDETERMINED_LANGUAGE
        table = self._tables.get(key)
        if table is None:
            table = FrequencyTable()
            self._tables[key] = table
        return table

    def merge(self, other: LanguageTables) -> None:
        for lang, table in other.items():
            self.table(lang).merge(table)

    def flatten(self) -> FrequencyTable:
        combined = FrequencyTable()
        for _, table in self.items():
            combined.merge(table)
        return combined

    def purge(self, min_count: int) -> int:
        purged = sum(table.purge(min_count) for table in self._tables.values())
        for lang in [lang for lang, table in self._tables.items() if len(table) == 0]:
            del self._tables[lang]
        return purged

    def items(self) -> list[tuple[str, FrequencyTable]]:
        return sorted(self._tables.items())

    def languages(self) -> tuple[str, ...]:
        return tuple(sorted(self._tables))

    def total(self) -> int:
        return sum(table.total() for table in self._tables.values())

    def __len__(self) -> int:
        return len(self._tables)
