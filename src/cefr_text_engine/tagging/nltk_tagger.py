from __future__ import annotations

from functools import lru_cache
from importlib import import_module
from typing import Any, Callable, Mapping, Tuple

from ..models import TokenType, normalize_language_code
from .base import LexicalTagger, TagResult

_nltk_cache: Tuple[Callable[..., list[tuple[str, str]]], type[Any]] | None = None

# Penn Treebank tag prefixes, longest first.
PENN_TAG_CLASSES: Tuple[Tuple[str, TokenType], ...] = (
    ("PRP$", TokenType.DETERMINER),
    ("WP$", TokenType.DETERMINER),
    ("PDT", TokenType.DETERMINER),
    ("WDT", TokenType.DETERMINER),
    ("WRB", TokenType.ADVERB),
    ("PRP", TokenType.PRONOUN),
    ("WP", TokenType.PRONOUN),
    ("NN", TokenType.NOUN),
    ("VB", TokenType.VERB),
    ("MD", TokenType.VERB),
    ("JJ", TokenType.ADJECTIVE),
    ("RB", TokenType.ADVERB),
    ("DT", TokenType.DETERMINER),
    ("RP", TokenType.PARTICLE),
    ("IN", TokenType.PREPOSITION),
    ("TO", TokenType.PREPOSITION),
    ("CD", TokenType.NUMBER),
    ("CC", TokenType.CONJUNCTION),
    ("UH", TokenType.INTERJECTION),
)

_WORDNET_POS: Mapping[TokenType, str] = {
    TokenType.NOUN: "n",
    TokenType.VERB: "v",
    TokenType.ADJECTIVE: "a",
    TokenType.ADVERB: "r",
}


def penn_to_lexical_class(tag: str) -> TokenType:
    for prefix, lexical_class in PENN_TAG_CLASSES:
        if tag.startswith(prefix):
            return lexical_class
    return TokenType.WORD


class NltkTagger(LexicalTagger):
    """
    English tagger backed by NLTK's averaged perceptron and WordNet.

    Each span is tagged in isolation, so results are context free. Texts in
    other languages are reported as unknown rather than mis-tagged with an
    English model. Requires the ``averaged_perceptron_tagger`` and
    ``wordnet`` NLTK data packages.
    """

    def __init__(self, cache_size: int = 4096) -> None:
        pos_tag, lemmatizer_cls = _ensure_nltk()
        self._pos_tag = pos_tag
        self._lemmatizer = lemmatizer_cls()
        self._lookup = lru_cache(maxsize=cache_size)(self._tag_word)

    def tag(
        self, text: str, span: Tuple[int, int], language: str | None = None
    ) -> TagResult:
        if language and normalize_language_code(language) != "en":
            return TagResult.unknown()
        surface = text[span[0] : span[1]]
        if not surface.strip():
            return TagResult.unknown()
        return self._lookup(surface)

    def _tag_word(self, word: str) -> TagResult:
        tagged = self._pos_tag([word])
        if not tagged:
            return TagResult.unknown()
        lexical_class = penn_to_lexical_class(tagged[0][1])
        wordnet_pos = _WORDNET_POS.get(lexical_class)
        lemma = (
            self._lemmatizer.lemmatize(word.lower(), wordnet_pos)
            if wordnet_pos
            else word.lower()
        )
        return TagResult(lexical_class, lemma)


def _ensure_nltk() -> Tuple[Callable[..., list[tuple[str, str]]], type[Any]]:
    global _nltk_cache
    if _nltk_cache is None:
        try:
            tag_module = import_module("nltk.tag")
            stem_module = import_module("nltk.stem")
        except ModuleNotFoundError as exc:  # pragma: no cover - informative
            raise ImportError(
                "nltk is required for the 'nltk' tagger. "
                "Install the 'nltk' extra (e.g., `pip install .[nltk]`)."
            ) from exc
        _nltk_cache = (
            getattr(tag_module, "pos_tag"),
            getattr(stem_module, "WordNetLemmatizer"),
        )
    return _nltk_cache
