import pytest

from cefr_text_engine.difficulty import (
    DifficultyScorer,
    FactorSettings,
    TextFeatures,
    context_factor,
    extract_features,
    level_for_factors,
    level_for_score,
    structure_factor,
    vocabulary_factor,
)
from cefr_text_engine.models import (
    CEFRLevel,
    DifficultyFactor,
    FactorType,
    Token,
    TokenType,
)
from cefr_text_engine.sentences import SentenceAnalyzer
from cefr_text_engine.tokenization import tokenize

LEVEL_ORDER = list(CEFRLevel)


def _fixed(score):
    def factor(features, settings):
        return DifficultyFactor(FactorType.VOCABULARY, score, "fixed")

    return factor


def test_average_of_factor_scores_selects_the_level():
    """Scores 0.3/0.5/0.5/0.5 average to 0.45, which falls in the B1 bucket."""
    scorer = DifficultyScorer(
        factors={
            FactorType.VOCABULARY: _fixed(0.3),
            FactorType.GRAMMAR: _fixed(0.5),
            FactorType.SENTENCE_STRUCTURE: _fixed(0.5),
            FactorType.CONTEXTUAL_COMPLEXITY: _fixed(0.5),
        }
    )
    difficulty = scorer.assess(TextFeatures(words=("un", "mot")))

    assert difficulty.level is CEFRLevel.INTERMEDIATE
    assert difficulty.level.value == "B1"
    assert difficulty.average_score == pytest.approx(0.45)
    assert [f.type for f in difficulty.factors] == [
        FactorType.VOCABULARY,
        FactorType.GRAMMAR,
        FactorType.SENTENCE_STRUCTURE,
        FactorType.CONTEXTUAL_COMPLEXITY,
    ]


@pytest.mark.parametrize(
    "score, level",
    [
        (0.0, "A1"),
        (0.2, "A1"),
        (0.21, "A2"),
        (0.4, "A2"),
        (0.6, "B1"),
        (0.8, "B2"),
        (0.9, "C1"),
        (0.95, "C2"),
        (1.0, "C2"),
    ],
)
def test_bucket_bounds_are_inclusive(score, level):
    assert level_for_score(score).value == level


def test_level_is_monotone_in_the_average_score():
    levels = [LEVEL_ORDER.index(level_for_score(step / 100)) for step in range(101)]
    assert levels == sorted(levels)


def test_out_of_range_scores_are_clamped():
    assert level_for_score(-3.0) is CEFRLevel.BEGINNER
    assert level_for_score(7.0) is CEFRLevel.MASTERY
    assert DifficultyFactor(FactorType.GRAMMAR, 1.7, "").score == 1.0
    assert DifficultyFactor(FactorType.GRAMMAR, -0.2, "").score == 0.0


def test_no_factors_is_the_lowest_level():
    assert level_for_factors([]) is CEFRLevel.BEGINNER


def test_empty_text_reports_zero_factors():
    difficulty = DifficultyScorer().assess_tokens([])
    assert difficulty.level is CEFRLevel.BEGINNER
    assert len(difficulty.factors) == 4
    assert all(f.score == 0.0 for f in difficulty.factors)
    assert difficulty.factors[0].description == "No content to analyze"


def test_vocabulary_diversity_is_bucketed():
    settings = FactorSettings()
    repetitive = vocabulary_factor(TextFeatures(words=("the",) * 10), settings)
    varied = vocabulary_factor(TextFeatures(words=tuple("abcdefghij")), settings)
    assert repetitive.score == pytest.approx(0.1)
    assert varied.score == pytest.approx(0.85)


def test_longer_sentences_score_higher():
    short_text = "I run. You run. We run."
    long_text = (
        "The committee carefully reviewed every single proposal that had been "
        "submitted before the deadline and then published a detailed summary."
    )
    analyzer = SentenceAnalyzer()

    def score(text):
        tokens = list(tokenize(text, "en"))
        sentences = list(analyzer.iter_structures(text, tokens))
        return structure_factor(extract_features(tokens, sentences), FactorSettings()).score

    assert score(long_text) > score(short_text)


def test_special_tokens_raise_contextual_complexity():
    words = ("see", "the", "page")
    plain = context_factor(TextFeatures(words=words), FactorSettings())
    linked = context_factor(
        TextFeatures(words=words, special_token_count=2), FactorSettings()
    )
    assert linked.score > plain.score


def test_extract_features_ignores_punctuation_and_unknown_classes():
    tokens = [
        Token("Hi", TokenType.INTERJECTION, 0, 2),
        Token("!", TokenType.PUNCTUATION, 2, 3),
        Token(" ", TokenType.WHITESPACE, 3, 4),
        Token("zorp", TokenType.UNKNOWN, 4, 8),
    ]
    features = extract_features(tokens)
    assert features.words == ("hi", "zorp")
    assert features.lexical_classes == (TokenType.INTERJECTION,)


def test_custom_settings_change_the_outcome():
    features = TextFeatures(words=("a", "b", "c", "d", "a"))
    default = vocabulary_factor(features, FactorSettings())
    strict = vocabulary_factor(
        features, FactorSettings(vocabulary_thresholds=(0.9, 0.95, 0.99))
    )
    assert strict.score < default.score
