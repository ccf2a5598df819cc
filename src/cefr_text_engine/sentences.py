from __future__ import annotations

import re
from typing import Iterable, Iterator, List, Sequence, Tuple

from .models import (
    ComplexityLevel,
    ComponentType,
    SentenceComponent,
    SentenceStructure,
    Token,
    TokenType,
)
from .tokenization import ProtectedSpan, tokenize

SENTENCE_TERMINATORS = ".!?。！？…"

_TERMINATOR_RE = re.compile(f"[{re.escape(SENTENCE_TERMINATORS)}]")

# Special spans whose inner terminators do not end a sentence.
SENTENCE_PROTECTED_TYPES = frozenset(
    {TokenType.URL, TokenType.EMAIL, TokenType.DATE_TIME, TokenType.NUMBER}
)


def iter_sentence_spans(
    text: str, protected: Iterable[ProtectedSpan] = ()
) -> Iterator[Tuple[int, int]]:
    """
    Yield trimmed ``(start, end)`` ranges of the sentences in ``text``.

    Every terminator character is a boundary except those falling inside a
    URL, email, date or number span. Empty segments are dropped.
    """
    if not text:
        return
    guarded = sorted(
        (start, end)
        for start, end, token_type in protected
        if token_type in SENTENCE_PROTECTED_TYPES
    )
    cursor = 0
    for match in _TERMINATOR_RE.finditer(text):
        position = match.start()
        if _inside(position, guarded):
            continue
        yield from _trimmed(text, cursor, position)
        cursor = match.end()
    yield from _trimmed(text, cursor, len(text))


def split_into_sentences(
    text: str, protected: Iterable[ProtectedSpan] = ()
) -> List[str]:
    return [text[start:end] for start, end in iter_sentence_spans(text, protected)]


def classify_complexity(component_count: int) -> ComplexityLevel:
    """Component-count heuristic: <=2 simple, <=4 compound, else complex."""
    if component_count <= 2:
        return ComplexityLevel.SIMPLE
    if component_count <= 4:
        return ComplexityLevel.COMPOUND
    return ComplexityLevel.COMPLEX


class SentenceAnalyzer:
    """
    Two-phase subject/predicate segmentation of tagged sentences.

    Tokens before the first verb form the subject, the verb and everything
    after it form the predicate. Object, complement and modifier components
    are part of the data model but are never produced here.
    """

    def analyze(
        self, text: str, tokens: Sequence[Token], start: int = 0, end: int | None = None
    ) -> SentenceStructure:
        """Build the structure of one sentence from its tokens.

        ``text`` is the full source the token offsets refer to; ``start`` and
        ``end`` bound the sentence within it.
        """
        end = len(text) if end is None else end
        components: List[SentenceComponent] = []
        current: List[Token] = []
        current_type = ComponentType.SUBJECT
        for token in tokens:
            if token.type in (TokenType.WHITESPACE, TokenType.PUNCTUATION):
                continue
            if token.type is TokenType.VERB and current_type is ComponentType.SUBJECT:
                if current:
                    components.append(_component(text, current, current_type))
                current = []
                current_type = ComponentType.PREDICATE
            current.append(token)
        if current:
            components.append(_component(text, current, current_type))
        return SentenceStructure(
            text=text[start:end],
            components=tuple(components),
            complexity=classify_complexity(len(components)),
            start=start,
            end=end,
        )

    def iter_structures(
        self,
        text: str,
        tokens: Sequence[Token],
        protected: Iterable[ProtectedSpan] = (),
    ) -> Iterator[SentenceStructure]:
        """Yield one structure per sentence, in order, as they are built."""
        index = 0
        for start, end in iter_sentence_spans(text, protected):
            while index < len(tokens) and tokens[index].start < start:
                index += 1
            sentence_tokens: List[Token] = []
            while index < len(tokens) and tokens[index].start < end:
                sentence_tokens.append(tokens[index])
                index += 1
            yield self.analyze(text, sentence_tokens, start, end)

    def analyze_text(
        self, text: str, language: str | None = None
    ) -> List[SentenceStructure]:
        """Segment untagged text; every sentence becomes a single subject."""
        tokens = list(tokenize(text, language))
        return list(self.iter_structures(text, tokens))


def iter_sentence_structures(
    text: str,
    tokens: Sequence[Token],
    protected: Iterable[ProtectedSpan] = (),
) -> Iterator[SentenceStructure]:
    return SentenceAnalyzer().iter_structures(text, tokens, protected)


def _component(
    text: str, tokens: Sequence[Token], component_type: ComponentType
) -> SentenceComponent:
    return SentenceComponent(
        text=text[tokens[0].start : tokens[-1].end],
        type=component_type,
        tokens=tuple(tokens),
    )


def _trimmed(text: str, start: int, end: int) -> Iterator[Tuple[int, int]]:
    while start < end and text[start].isspace():
        start += 1
    while end > start and text[end - 1].isspace():
        end -= 1
    if end > start:
        yield (start, end)


def _inside(position: int, spans: Sequence[Tuple[int, int]]) -> bool:
    for start, end in spans:
        if start > position:
            return False
        if start <= position < end:
            return True
    return False
