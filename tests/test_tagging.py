import asyncio
import logging
from pathlib import Path

import pytest

from cefr_text_engine.models import TokenType
from cefr_text_engine.tagging import (
    LexiconTagger,
    NltkTagger,
    TagResult,
    TaggerAdapter,
    build_lexicon_tagger,
    build_tagger_from_config,
    coerce_tag_result,
    create_tagger,
    load_lexicon,
)
from cefr_text_engine.tagging import nltk_tagger
from cefr_text_engine.tagging.nltk_tagger import penn_to_lexical_class
from cefr_text_engine.config import AnalyzerConfig
from tests.utils import AsyncDictTagger, DictTagger, FailingTagger


def _span(text, word):
    start = text.index(word)
    return (start, start + len(word))


def test_builtin_lexicons_tag_common_words():
    tagger = build_lexicon_tagger()
    text = "Je suis ici"
    assert tagger.tag(text, _span(text, "suis"), language="fr") == TagResult(
        TokenType.VERB, "être"
    )
    text = "She speaks"
    assert tagger.tag(text, _span(text, "speaks"), language="en") == TagResult(
        TokenType.VERB, "speak"
    )


def test_lexicon_miss_is_a_generic_word():
    tagger = build_lexicon_tagger()
    text = "zorblax"
    assert tagger.tag(text, (0, 7), language="en") == TagResult(TokenType.WORD, None)


def test_lexicon_language_restricts_lookup():
    tagger = LexiconTagger(
        {"en": {"chat": TagResult(TokenType.VERB, "chat")},
         "fr": {"chat": TagResult(TokenType.NOUN, "chat")}},
        default_language="en",
    )
    assert tagger.tag("chat", (0, 4), language="fr").lexical_class is TokenType.NOUN
    assert tagger.tag("chat", (0, 4)).lexical_class is TokenType.VERB
    assert tagger.tag("chat", (0, 4), language="zh").lexical_class is TokenType.WORD


def test_extra_lexicon_files_are_keyed_by_stem_suffix(tmp_path: Path):
    path = tmp_path / "terms_fr.tsv"
    path.write_text(
        "token\tlexical_class\tlemma\nordinateur\tnoun\tordinateur\n", encoding="utf-8"
    )
    tagger = build_lexicon_tagger([path], include_builtin=False)
    assert tagger.languages == ("fr",)
    assert tagger.tag("ordinateur", (0, 10), language="fr").lemma == "ordinateur"


def test_lexicon_rejects_unknown_classes(tmp_path: Path):
    path = tmp_path / "bad.tsv"
    path.write_text("token\tlexical_class\tlemma\nfoo\tgerund\tfoo\n", encoding="utf-8")
    with pytest.raises(ValueError, match="gerund"):
        load_lexicon(path)


def test_lexicon_rejects_structural_types(tmp_path: Path):
    path = tmp_path / "bad.tsv"
    path.write_text("token\tlexical_class\tlemma\n,\tpunctuation\t\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_lexicon(path)


def test_empty_lemma_column_reads_as_none(tmp_path: Path):
    path = tmp_path / "x_en.tsv"
    path.write_text("token\tlexical_class\tlemma\nwow\tinterjection\t\n", encoding="utf-8")
    assert load_lexicon(path)["wow"] == TagResult(TokenType.INTERJECTION, None)


def test_adapter_without_tagger_degrades_to_unknown():
    adapter = TaggerAdapter(None)
    assert not adapter.available
    assert adapter.tag("word", (0, 4)) == TagResult.unknown()


def test_adapter_logs_and_absorbs_tagger_failures(caplog):
    adapter = TaggerAdapter(FailingTagger())
    with caplog.at_level(logging.WARNING):
        result = adapter.tag("word", (0, 4))
    assert result.lexical_class is TokenType.UNKNOWN
    assert "tagger offline" in caplog.text


def test_adapter_forwards_language_only_when_accepted():
    seen = []

    class LanguageAware:
        def tag(self, text, span, language=None):
            seen.append(language)
            return (TokenType.NOUN, "x")

    TaggerAdapter(LanguageAware()).tag("x", (0, 1), language="fr")
    assert seen == ["fr"]

    plain = DictTagger({"x": (TokenType.NOUN, "x")})
    assert TaggerAdapter(plain).tag("x", (0, 1), language="fr").lexical_class is TokenType.NOUN


def test_async_tagger_needs_the_async_entry_point():
    adapter = TaggerAdapter(AsyncDictTagger({"chat": (TokenType.NOUN, "chat")}))
    assert adapter.is_async
    with pytest.raises(TypeError):
        adapter.tag("chat", (0, 4))
    result = asyncio.run(adapter.tag_async("chat", (0, 4)))
    assert result == TagResult(TokenType.NOUN, "chat")


def test_adapter_rejects_objects_without_tag():
    with pytest.raises(TypeError):
        TaggerAdapter(object())


@pytest.mark.parametrize(
    "raw, expected",
    [
        (TagResult(TokenType.VERB, "go"), TagResult(TokenType.VERB, "go")),
        (("noun", "cat"), TagResult(TokenType.NOUN, "cat")),
        (("nonsense", "cat"), TagResult(TokenType.UNKNOWN, "cat")),
        ((TokenType.PUNCTUATION, None), TagResult.unknown()),
        (None, TagResult.unknown()),
        ("verb", TagResult.unknown()),
    ],
)
def test_coerce_tag_result(raw, expected):
    assert coerce_tag_result(raw) == expected


def test_create_tagger_factory():
    assert create_tagger("none") is None
    assert isinstance(create_tagger("lexicon"), LexiconTagger)
    with pytest.raises(ValueError, match="Unknown tagger"):
        create_tagger("oracle")


def test_build_tagger_from_config_uses_lexicon_paths(tmp_path: Path):
    path = tmp_path / "extra_en.tsv"
    path.write_text("token\tlexical_class\tlemma\nzorblax\tnoun\tzorblax\n", encoding="utf-8")
    tagger = build_tagger_from_config(AnalyzerConfig(lexicon_paths=[str(path)]))
    assert tagger.tag("zorblax", (0, 7), language="en").lexical_class is TokenType.NOUN
    assert build_tagger_from_config(AnalyzerConfig(tagger_name="none")) is None


def test_penn_tags_map_to_lexical_classes():
    assert penn_to_lexical_class("VBZ") is TokenType.VERB
    assert penn_to_lexical_class("NNS") is TokenType.NOUN
    assert penn_to_lexical_class("PRP$") is TokenType.DETERMINER
    assert penn_to_lexical_class("PRP") is TokenType.PRONOUN
    assert penn_to_lexical_class("SYM") is TokenType.WORD


def test_nltk_tagger_with_stubbed_backend(monkeypatch):
    class FakeLemmatizer:
        def lemmatize(self, word, pos):
            return word[:-1] if word.endswith("s") else word

    calls = []

    def fake_pos_tag(words):
        calls.append(words)
        return [(words[0], "VBZ")]

    monkeypatch.setattr(nltk_tagger, "_nltk_cache", (fake_pos_tag, FakeLemmatizer))
    tagger = NltkTagger()
    text = "runs runs"

    assert tagger.tag(text, (0, 4)) == TagResult(TokenType.VERB, "run")
    assert tagger.tag(text, (5, 9), language="en-GB") == TagResult(TokenType.VERB, "run")
    assert len(calls) == 1
    assert tagger.tag(text, (0, 4), language="fr") == TagResult.unknown()
