import pytest

from cefr_text_engine.models import Token, TokenType
from cefr_text_engine.special_tokens import SpecialTokenClassifier
from cefr_text_engine.tokenization import reconstruct, tokenize, tokenize_words


def test_tokenize_words_returns_offsets():
    text = "Hello, world! It's sunny today."
    tokens = tokenize_words(text, "en")

    assert [token.text for token in tokens] == ["Hello", "world", "It's", "sunny", "today"]
    assert tokens[0].start == 0
    assert tokens[0].end == 5
    assert text[tokens[-1].start : tokens[-1].end] == "today"


@pytest.mark.parametrize(
    "text",
    [
        "Hello, world! It's sunny today.",
        "  leading and trailing  ",
        "Qu'est-ce que l'homme fait ?",
        "我喜欢学习中文。",
        "Mixed: café 2024-01-05, a@b.com!!! 🎉",
        "\n\ttabs\r\nand newlines\n",
    ],
)
def test_tokens_reconstruct_the_source_exactly(text):
    """Concatenating every token (whitespace and punctuation included) gives the input back."""
    for language in (None, "en", "fr", "zh"):
        tokens = list(tokenize(text, language))
        assert reconstruct(tokens) == text
        for previous, current in zip(tokens, tokens[1:]):
            assert previous.end == current.start
        assert all(0 <= t.start < t.end <= len(text) for t in tokens)


def test_empty_input_yields_no_tokens():
    assert list(tokenize("")) == []
    assert tokenize_words("") == []


def test_whitespace_and_punctuation_are_separate_tokens():
    tokens = list(tokenize("Hi, you.", "en"))
    assert [(t.text, t.type) for t in tokens] == [
        ("Hi", TokenType.WORD),
        (",", TokenType.PUNCTUATION),
        (" ", TokenType.WHITESPACE),
        ("you", TokenType.WORD),
        (".", TokenType.PUNCTUATION),
    ]


def test_tokenize_is_lazy():
    stream = tokenize("one two three")
    assert next(stream).text == "one"


def test_french_segmentation_splits_elisions():
    words = [t.text for t in tokenize_words("L'homme qu'il aime", "fr-FR")]
    assert words == ["L'", "homme", "qu'", "il", "aime"]


def test_english_segmentation_keeps_contractions():
    words = [t.text for t in tokenize_words("It's John's dog", "en")]
    assert words == ["It's", "John's", "dog"]


def test_chinese_segmentation_emits_one_token_per_character():
    words = [t.text for t in tokenize_words("我爱Python", "zh")]
    assert words == ["我", "爱", "Python"]


def test_protected_spans_are_emitted_whole():
    text = "See https://x.com/a.b today."
    spans = SpecialTokenClassifier().find_spans(text)
    tokens = list(tokenize(text, "en", spans))

    url = [t for t in tokens if t.type is TokenType.URL]
    assert [t.text for t in url] == ["https://x.com/a.b"]
    assert reconstruct(tokens) == text


def test_token_rejects_empty_range():
    with pytest.raises(ValueError):
        Token(text="", type=TokenType.WORD, start=3, end=3)
