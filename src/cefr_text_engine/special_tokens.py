from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Iterator, List, Mapping, Tuple

from .models import Token, TokenType


class SpecialCategory(str, Enum):
    NUMBER = "number"
    EMAIL = "email"
    URL = "url"
    DATE_TIME = "dateTime"
    REPEATED_PUNCTUATION = "repeatedPunctuation"
    EMOJI = "emoji"


SPECIAL_PATTERNS: Mapping[SpecialCategory, re.Pattern[str]] = {
    SpecialCategory.NUMBER: re.compile(r"[-+]?\d*\.?\d+(?:[eE][-+]?\d+)?"),
    SpecialCategory.EMAIL: re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}"),
    SpecialCategory.URL: re.compile(
        r"https?://(?:www\.)?[-a-zA-Z0-9@:%._\+~#=]{1,256}\.[a-zA-Z0-9()]{1,6}\b"
        r"(?:[-a-zA-Z0-9()@:%_\+.~#?&/=]*)"
    ),
    SpecialCategory.DATE_TIME: re.compile(r"\d{4}[-/年]\d{1,2}[-/月]\d{1,2}日?"),
    SpecialCategory.REPEATED_PUNCTUATION: re.compile(r"[!?！？]{2,}"),
    SpecialCategory.EMOJI: re.compile(r"[\U0001F300-\U0001F9FF]"),
}

# Numbers embedded in words ("mp3") or trailing a dot are not standalone spans.
_STANDALONE_NUMBER = re.compile(r"(?<![\w.])[-+]?\d*\.?\d+(?:[eE][-+]?\d+)?(?![\w])")

# Sentence punctuation right after a link or address is not part of it.
_TRIMMED_CATEGORIES = frozenset({SpecialCategory.URL, SpecialCategory.EMAIL})
_TRAILING_PUNCTUATION = ".,!?;:"

# Overlapping spans are resolved in this order when tokenizing.
SPAN_PRIORITY: Tuple[SpecialCategory, ...] = (
    SpecialCategory.URL,
    SpecialCategory.EMAIL,
    SpecialCategory.DATE_TIME,
    SpecialCategory.NUMBER,
    SpecialCategory.EMOJI,
    SpecialCategory.REPEATED_PUNCTUATION,
)

CATEGORY_TOKEN_TYPES: Mapping[SpecialCategory, TokenType] = {
    SpecialCategory.NUMBER: TokenType.NUMBER,
    SpecialCategory.EMAIL: TokenType.EMAIL,
    SpecialCategory.URL: TokenType.URL,
    SpecialCategory.DATE_TIME: TokenType.DATE_TIME,
    SpecialCategory.REPEATED_PUNCTUATION: TokenType.PUNCTUATION,
    SpecialCategory.EMOJI: TokenType.EMOJI,
}


@dataclass(frozen=True, slots=True)
class SpecialMatch:
    category: SpecialCategory
    text: str
    start: int
    end: int


@dataclass(frozen=True, slots=True)
class SpecialTokenScan:
    """Every special-pattern hit in a passage, grouped by category."""

    matches: Tuple[SpecialMatch, ...] = field(default_factory=tuple)

    @property
    def categories(self) -> FrozenSet[SpecialCategory]:
        return frozenset(match.category for match in self.matches)

    def count(self, category: SpecialCategory) -> int:
        return sum(1 for match in self.matches if match.category is category)

    def of(self, category: SpecialCategory) -> List[SpecialMatch]:
        return [match for match in self.matches if match.category is category]


class SpecialTokenClassifier:
    """Flags numbers, emails, URLs, dates, repeated punctuation and emoji.

    Works independently of lexical tagging, either over a whole passage
    (:meth:`scan`) or as a per-token override (:meth:`classify_token`).
    """

    def __init__(
        self, patterns: Mapping[SpecialCategory, re.Pattern[str]] | None = None
    ) -> None:
        self._patterns = dict(patterns or SPECIAL_PATTERNS)

    def scan(self, text: str) -> SpecialTokenScan:
        """Return all matches per category; categories may overlap each other."""
        if not text:
            return SpecialTokenScan()
        matches: list[SpecialMatch] = []
        for category, pattern in self._patterns.items():
            for match in pattern.finditer(text):
                if not match.group():
                    continue
                matches.append(
                    SpecialMatch(category, match.group(), match.start(), match.end())
                )
        matches.sort(key=lambda m: (m.start, m.end, m.category.value))
        return SpecialTokenScan(tuple(matches))

    def categories_in(self, text: str) -> FrozenSet[SpecialCategory]:
        """Return the set of pattern categories found anywhere in the text."""
        return self.scan(text).categories

    def matching_categories(self, value: str) -> FrozenSet[SpecialCategory]:
        """Return the categories whose pattern matches the whole of ``value``."""
        return frozenset(
            category
            for category, pattern in self._patterns.items()
            if value and pattern.fullmatch(value)
        )

    def classify_token(self, token: Token) -> TokenType | None:
        """Return the override type for a token, or None to keep the default."""
        categories = self.matching_categories(token.text)
        for category in SPAN_PRIORITY:
            if category in categories:
                return CATEGORY_TOKEN_TYPES[category]
        return None

    def find_spans(self, text: str) -> List[Tuple[int, int, TokenType]]:
        """Non-overlapping special spans for the tokenizer, earliest first."""
        candidates: list[tuple[int, int, int, TokenType]] = []
        for rank, category in enumerate(SPAN_PRIORITY):
            pattern = self._patterns.get(category)
            if pattern is None:
                continue
            if category is SpecialCategory.NUMBER:
                pattern = _STANDALONE_NUMBER
            for match in pattern.finditer(text):
                end = match.end()
                if category in _TRIMMED_CATEGORIES:
                    end = match.start() + len(match.group().rstrip(_TRAILING_PUNCTUATION))
                if end > match.start():
                    candidates.append(
                        (match.start(), rank, end, CATEGORY_TOKEN_TYPES[category])
                    )
        candidates.sort()
        spans: list[tuple[int, int, TokenType]] = []
        cursor = 0
        for start, _rank, end, token_type in candidates:
            if start < cursor:
                continue
            spans.append((start, end, token_type))
            cursor = end
        return spans

    def iter_overrides(self, tokens: list[Token]) -> Iterator[Token]:
        """Yield tokens with special types applied where a pattern fully matches."""
        for token in tokens:
            override = self.classify_token(token)
            if override is None or override is token.type:
                yield token
                continue
            yield Token(
                text=token.text,
                type=override,
                start=token.start,
                end=token.end,
                lemma=token.lemma,
                metadata=dict(token.metadata),
            )
