from __future__ import annotations


class WordlistError(RuntimeError):
    pass


class CorpusIOError(WordlistError):
    """The corpus root, or a single source file, could not be read."""


class RecordDecodeError(WordlistError):
    """A line could not be decoded as text or validated as a record."""


class OutputWriteError(WordlistError):
    """The word list could not be written to its destination."""
