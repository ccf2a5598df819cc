from __future__ import annotations

import re
from typing import Iterable, Iterator, List, Mapping, Tuple

from .models import Token, TokenType, normalize_language_code

_HAN = r"\u3400-\u4dbf\u4e00-\u9fff\uf900-\ufaff"

_DEFAULT_WORD = r"\w+(?:['’]\w+)*(?:-\w+)*"
_FRENCH_WORD = r"\w+['’](?=\w)|\w+(?:-\w+)*"
_CJK_WORD = rf"[{_HAN}]|(?:(?![{_HAN}])\w)+"


def _segmenter(word_pattern: str) -> re.Pattern[str]:
    return re.compile(
        rf"(?P<word>{word_pattern})|(?P<whitespace>\s+)|(?P<punctuation>[^\w\s]+)",
        re.UNICODE,
    )


SEGMENTERS: Mapping[str, re.Pattern[str]] = {
    "": _segmenter(_DEFAULT_WORD),
    "en": _segmenter(_DEFAULT_WORD),
    "fr": _segmenter(_FRENCH_WORD),
    "zh": _segmenter(_CJK_WORD),
    "ja": _segmenter(_CJK_WORD),
}

_GROUP_TYPES = {
    "word": TokenType.WORD,
    "whitespace": TokenType.WHITESPACE,
    "punctuation": TokenType.PUNCTUATION,
}

ProtectedSpan = Tuple[int, int, TokenType]


def tokenize(
    text: str,
    language: str | None = None,
    protected: Iterable[ProtectedSpan] = (),
) -> Iterator[Token]:
    """Lazily split text into word, whitespace and punctuation tokens.

    The produced tokens cover ``text`` with no gaps or overlaps. ``protected``
    spans (start, end, type) are emitted verbatim as single tokens of the given
    type; they must not overlap each other.
    """
    if not text:
        return
    segmenter = SEGMENTERS.get(normalize_language_code(language), SEGMENTERS[""])
    cursor = 0
    for start, end, token_type in sorted(protected):
        if start < cursor or end <= start or end > len(text):
            continue
        yield from _segment(text, cursor, start, segmenter)
        yield Token(text=text[start:end], type=token_type, start=start, end=end)
        cursor = end
    yield from _segment(text, cursor, len(text), segmenter)


def _segment(
    text: str, start: int, end: int, segmenter: re.Pattern[str]
) -> Iterator[Token]:
    for match in segmenter.finditer(text, start, end):
        group = match.lastgroup or "punctuation"
        yield Token(
            text=match.group(),
            type=_GROUP_TYPES[group],
            start=match.start(),
            end=match.end(),
        )


def tokenize_words(text: str, language: str | None = None) -> List[Token]:
    """Tokenize text and keep only word tokens with their character offsets."""
    return [token for token in tokenize(text, language) if token.type is TokenType.WORD]


def reconstruct(tokens: Iterable[Token]) -> str:
    """Concatenate token texts back into the source string."""
    return "".join(token.text for token in tokens)
