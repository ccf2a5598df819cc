from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping, Sequence, Tuple

from .models import (
    CEFRLevel,
    ComplexityLevel,
    DifficultyFactor,
    FactorType,
    LearningDifficulty,
    SentenceStructure,
    Token,
    TokenType,
    clamp_unit,
)

# Inclusive upper bound of each bucket; anything above the last is C2.
CEFR_UPPER_BOUNDS: Tuple[Tuple[float, CEFRLevel], ...] = (
    (0.2, CEFRLevel.BEGINNER),
    (0.4, CEFRLevel.ELEMENTARY),
    (0.6, CEFRLevel.INTERMEDIATE),
    (0.8, CEFRLevel.UPPER_INTERMEDIATE),
    (0.9, CEFRLevel.ADVANCED),
)

FACTOR_ORDER: Tuple[FactorType, ...] = (
    FactorType.VOCABULARY,
    FactorType.GRAMMAR,
    FactorType.SENTENCE_STRUCTURE,
    FactorType.CONTEXTUAL_COMPLEXITY,
)

# Representative score of each ratio bucket (below t0, t0..t1, t1..t2, above t2).
_BUCKET_SCORES = (0.1, 0.3, 0.5, 0.85)
_BUCKET_LABELS = ("basic", "elementary", "intermediate", "advanced")


@dataclass(frozen=True, slots=True)
class TextFeatures:
    """Counts extracted once per text and shared by every factor."""

    words: Tuple[str, ...] = ()
    lexical_classes: Tuple[TokenType, ...] = ()
    sentence_lengths: Tuple[int, ...] = ()
    non_simple_sentences: int = 0
    special_token_count: int = 0

    @property
    def word_count(self) -> int:
        return len(self.words)

    @property
    def is_empty(self) -> bool:
        return not self.words


@dataclass(frozen=True, slots=True)
class FactorSettings:
    vocabulary_thresholds: Tuple[float, float, float] = (0.3, 0.5, 0.8)
    grammar_structure_norm: float = 10.0
    sentence_length_floor: float = 5.0
    sentence_length_span: float = 25.0
    long_word_length: int = 7


FactorFn = Callable[[TextFeatures, FactorSettings], DifficultyFactor]


def extract_features(
    tokens: Sequence[Token],
    sentences: Sequence[SentenceStructure] = (),
    special_token_count: int = 0,
) -> TextFeatures:
    words = tuple(token.text.lower() for token in tokens if token.is_word)
    classes = tuple(
        token.type
        for token in tokens
        if token.is_word and token.type is not TokenType.UNKNOWN
    )
    lengths = tuple(
        sum(1 for component in sentence.components for t in component.tokens if t.is_word)
        for sentence in sentences
    )
    non_simple = sum(
        1 for sentence in sentences if sentence.complexity is not ComplexityLevel.SIMPLE
    )
    return TextFeatures(
        words=words,
        lexical_classes=classes,
        sentence_lengths=lengths,
        non_simple_sentences=non_simple,
        special_token_count=special_token_count,
    )


def level_for_score(score: float) -> CEFRLevel:
    """Bucket an average factor score into a CEFR level."""
    value = clamp_unit(score)
    for upper, level in CEFR_UPPER_BOUNDS:
        if value <= upper:
            return level
    return CEFRLevel.MASTERY


def level_for_factors(factors: Sequence[DifficultyFactor]) -> CEFRLevel:
    if not factors:
        return CEFRLevel.BEGINNER
    return level_for_score(sum(f.score for f in factors) / len(factors))


def vocabulary_factor(features: TextFeatures, settings: FactorSettings) -> DifficultyFactor:
    """Lexical diversity (unique / total words) bucketed against fixed thresholds."""
    if features.is_empty:
        return DifficultyFactor(FactorType.VOCABULARY, 0.0, "No words to assess")
    diversity = len(set(features.words)) / features.word_count
    bucket = _bucket(diversity, settings.vocabulary_thresholds)
    return DifficultyFactor(
        FactorType.VOCABULARY,
        _BUCKET_SCORES[bucket],
        f"{_BUCKET_LABELS[bucket].capitalize()} vocabulary: "
        f"{len(set(features.words))} unique of {features.word_count} words",
    )


def grammar_factor(features: TextFeatures, settings: FactorSettings) -> DifficultyFactor:
    """Variety of lexical-class trigrams, normalized and bucketed like vocabulary."""
    classes = features.lexical_classes
    if len(classes) < 3:
        return DifficultyFactor(
            FactorType.GRAMMAR, 0.0, "Too few tagged words for grammar patterns"
        )
    structures = {
        "-".join(t.value for t in classes[i : i + 3]) for i in range(len(classes) - 2)
    }
    complexity = len(structures) / max(settings.grammar_structure_norm, 1e-9)
    bucket = _bucket(complexity, settings.vocabulary_thresholds)
    return DifficultyFactor(
        FactorType.GRAMMAR,
        _BUCKET_SCORES[bucket],
        f"{_BUCKET_LABELS[bucket].capitalize()} grammar: "
        f"{len(structures)} distinct word-class sequences",
    )


def structure_factor(features: TextFeatures, settings: FactorSettings) -> DifficultyFactor:
    """Average sentence length, nudged up by compound and complex sentences."""
    lengths = [length for length in features.sentence_lengths if length > 0]
    if not lengths:
        return DifficultyFactor(FactorType.SENTENCE_STRUCTURE, 0.0, "No sentences")
    average = sum(lengths) / len(lengths)
    span = max(settings.sentence_length_span, 1e-9)
    length_score = clamp_unit((average - settings.sentence_length_floor) / span)
    non_simple_ratio = features.non_simple_sentences / len(features.sentence_lengths)
    score = 0.8 * length_score + 0.2 * non_simple_ratio
    return DifficultyFactor(
        FactorType.SENTENCE_STRUCTURE,
        score,
        f"{len(lengths)} sentences averaging {average:.1f} words",
    )


def context_factor(features: TextFeatures, settings: FactorSettings) -> DifficultyFactor:
    """Share of long words plus density of numbers, links and other symbols."""
    if features.is_empty:
        return DifficultyFactor(
            FactorType.CONTEXTUAL_COMPLEXITY, 0.0, "No words to assess"
        )
    long_words = sum(1 for w in features.words if len(w) >= settings.long_word_length)
    long_ratio = long_words / features.word_count
    special_density = features.special_token_count / (
        features.word_count + features.special_token_count
    )
    score = 0.7 * min(1.0, long_ratio / 0.4) + 0.3 * min(1.0, special_density / 0.1)
    return DifficultyFactor(
        FactorType.CONTEXTUAL_COMPLEXITY,
        score,
        f"{long_ratio:.0%} long words, {features.special_token_count} special tokens",
    )


DEFAULT_FACTORS: Mapping[FactorType, FactorFn] = {
    FactorType.VOCABULARY: vocabulary_factor,
    FactorType.GRAMMAR: grammar_factor,
    FactorType.SENTENCE_STRUCTURE: structure_factor,
    FactorType.CONTEXTUAL_COMPLEXITY: context_factor,
}


class DifficultyScorer:
    """
    Computes the four difficulty factors of a text and buckets their
    unweighted average into a CEFR level.

    Individual factor functions can be swapped through ``factors``; the
    averaging and the bucket bounds are fixed.
    """

    def __init__(
        self,
        factors: Mapping[FactorType, FactorFn] | None = None,
        settings: FactorSettings | None = None,
    ) -> None:
        merged: Dict[FactorType, FactorFn] = dict(DEFAULT_FACTORS)
        merged.update(factors or {})
        self._factors = merged
        self._settings = settings or FactorSettings()

    @property
    def settings(self) -> FactorSettings:
        return self._settings

    def assess(self, features: TextFeatures) -> LearningDifficulty:
        if features.is_empty:
            return LearningDifficulty(
                level=CEFRLevel.BEGINNER,
                factors=tuple(
                    DifficultyFactor(factor_type, 0.0, "No content to analyze")
                    for factor_type in FACTOR_ORDER
                ),
            )
        computed: List[DifficultyFactor] = []
        for factor_type in FACTOR_ORDER:
            factor = self._factors[factor_type](features, self._settings)
            if factor.type is not factor_type:
                factor = DifficultyFactor(factor_type, factor.score, factor.description)
            computed.append(factor)
        return LearningDifficulty(
            level=level_for_factors(computed), factors=tuple(computed)
        )

    def assess_tokens(
        self,
        tokens: Sequence[Token],
        sentences: Sequence[SentenceStructure] = (),
        special_token_count: int = 0,
    ) -> LearningDifficulty:
        return self.assess(extract_features(tokens, sentences, special_token_count))


def _bucket(value: float, thresholds: Sequence[float]) -> int:
    for index, threshold in enumerate(thresholds):
        if value < threshold:
            return index
    return len(thresholds)
