from __future__ import annotations

from collections.abc import Iterator
import unicodedata

import regex

# letters keep their combining marks; apostrophes and hyphens only join
# two word runs, so "don't" and "e-mail" survive but "--" and quote marks do not
WORD_PATTERN = regex.compile(r"[\p{L}\p{M}\p{N}]+(?:['\-][\p{L}\p{M}\p{N}]+)*")

URL_PREFIXES = ("www.", "data:")
RETWEET_MARKER = "RT"
ZALGO_MIN_RATIO = 0.75

_QUOTE_FOLDS = str.maketrans({"’": "'", "‘": "'"})


def _is_url(fragment: str) -> bool:
    lowered = fragment.lower()
    if "://" in lowered:
        return True
    # a bare "data:" ending a sentence is still a word
    return any(
        lowered.startswith(prefix) and len(lowered) > len(prefix) for prefix in URL_PREFIXES
    )


def _is_html_escape(fragment: str) -> bool:
    return len(fragment) > 2 and fragment.startswith("&") and fragment.endswith(";")


def _is_zalgo(fragment: str) -> bool:
    marks = sum(1 for char in fragment if unicodedata.combining(char))
    return marks / len(fragment) > ZALGO_MIN_RATIO


def _skip_fragment(fragment: str) -> bool:
    return (
        fragment == RETWEET_MARKER
        or fragment.startswith("@")
        or _is_url(fragment)
        or _is_html_escape(fragment)
        or _is_zalgo(fragment)
    )


def _has_letter(token: str) -> bool:
    return any(char.isalpha() for char in token)


def tokenize(text: str) -> Iterator[str]:
    """Yield the normalized word tokens of ``text``.

    Mentions, URLs, HTML escapes, zalgo runs and the ``RT`` marker are dropped
    whole. Hashtags lose their ``#`` and are kept. Words are lower-cased and
    must contain at least one letter.
    """
    for fragment in unicodedata.normalize("NFC", text).split():
        if _skip_fragment(fragment):
            continue

        fragment = fragment.lstrip("#").lower().translate(_QUOTE_FOLDS)
        for match in WORD_PATTERN.finditer(fragment):
            token = match.group(0)
            if _has_letter(token):
                yield token
