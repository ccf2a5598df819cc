from __future__ import annotations

import logging
from typing import Iterable, List, Mapping, Sequence, Tuple, Union

from .models import (
    AdjectiveFeatures,
    AdjectiveForm,
    Degree,
    MorphologyResult,
    NominalFeatures,
    NominalForm,
    SupportedLanguage,
    Token,
    TokenType,
    VerbFeatures,
    VerbForm,
    normalize_language_code,
)
from .rules import RuleCategory, RuleEngine, RuleMatch

LOGGER = logging.getLogger(__name__)

MorphologicalForm = Union[VerbForm, NominalForm, AdjectiveForm]

# (degree adverbs, articles that may precede them) per language.
DEGREE_MARKERS: Mapping[str, Tuple[frozenset[str], frozenset[str]]] = {
    "fr": (frozenset({"plus", "moins"}), frozenset({"le", "la", "les"})),
    "en": (frozenset({"more", "most"}), frozenset({"the"})),
}

_NOMINAL_CLASSES = frozenset({TokenType.NOUN, TokenType.PRONOUN})


class MorphologicalClassifier:
    """
    Routes tagged tokens to the verb, nominal or adjective rule tables of
    their language and builds typed morphological records.

    Only languages listed in ``supported_languages`` (and known to
    :class:`SupportedLanguage`) are analyzed; anything else yields no
    record. A token that no rule matches contributes nothing.
    """

    def __init__(
        self,
        engine: RuleEngine,
        supported_languages: Iterable[str] = ("en", "fr"),
    ) -> None:
        self._engine = engine
        self._supported = frozenset(
            normalize_language_code(code) for code in supported_languages
        )

    @property
    def engine(self) -> RuleEngine:
        return self._engine

    def supports(self, language: str | None) -> bool:
        return self._language(language) is not None

    def analyze_verb(
        self, word: str, lemma: str | None, language: str | None
    ) -> VerbForm | None:
        """Classify a verb form and attach the regularity heuristic."""
        supported = self._language(language)
        if supported is None:
            return None
        match = self._engine.classify(supported.value, RuleCategory.VERB, word.lower())
        if match is None:
            return None
        features: VerbFeatures = match.result
        return VerbForm(
            text=word,
            lemma=lemma,
            tense=features.tense,
            person=features.person,
            number=features.number,
            mood=features.mood,
            language=supported,
            is_regular=self._engine.verb_lexicon(supported.value).is_regular(lemma),
            alternatives=tuple(match.alternatives),
        )

    def analyze_nominal(
        self, word: str, lemma: str | None, language: str | None
    ) -> NominalForm | None:
        supported = self._language(language)
        if supported is None:
            return None
        match = self._engine.classify(supported.value, RuleCategory.NOUN, word.lower())
        if match is None:
            return None
        features: NominalFeatures = match.result
        return NominalForm(
            text=word,
            lemma=lemma,
            gender=features.gender,
            number=features.number,
            case=features.case,
            language=supported,
            alternatives=tuple(match.alternatives),
        )

    def analyze_adjective(
        self,
        word: str,
        lemma: str | None,
        language: str | None,
        preceding: Sequence[str] = (),
    ) -> AdjectiveForm | None:
        """
        Classify an adjective, taking a preceding degree phrase into account.

        ``preceding`` holds the words right before the adjective, nearest
        last. When they form a degree phrase ("la plus", "the most") the
        phrase decides the degree while the bare adjective still decides
        gender and number.
        """
        supported = self._language(language)
        if supported is None:
            return None
        bare = self._engine.classify(
            supported.value, RuleCategory.ADJECTIVE, word.lower()
        )
        phrase = degree_phrase(supported.value, word, preceding)
        phrased: RuleMatch | None = None
        if phrase is not None:
            phrased = self._engine.classify(
                supported.value, RuleCategory.ADJECTIVE, phrase
            )
            if phrased is not None and phrased.result.degree is Degree.POSITIVE:
                phrased = None

        if bare is None and phrased is None:
            return None
        base: AdjectiveFeatures = (bare or phrased).result  # type: ignore[union-attr]
        degree = phrased.result.degree if phrased is not None else base.degree
        return AdjectiveForm(
            text=word,
            lemma=lemma,
            gender=base.gender,
            number=base.number,
            degree=degree,
            language=supported,
            alternatives=tuple(bare.alternatives) if bare is not None else (),
        )

    def classify_token(
        self,
        token: Token,
        language: str | None,
        preceding: Sequence[str] = (),
    ) -> MorphologicalForm | None:
        """Dispatch on the token's lexical class; other classes yield None."""
        if token.type is TokenType.VERB:
            return self.analyze_verb(token.text, token.lemma, language)
        if token.type in _NOMINAL_CLASSES:
            return self.analyze_nominal(token.text, token.lemma, language)
        if token.type is TokenType.ADJECTIVE:
            return self.analyze_adjective(token.text, token.lemma, language, preceding)
        return None

    def analyze_tokens(
        self, tokens: Iterable[Token], language: str | None
    ) -> MorphologyResult:
        """Classify every tagged word token of a text."""
        if self._language(language) is None:
            LOGGER.debug("Skipping morphology for unsupported language %r", language)
            return MorphologyResult()
        verbs: List[VerbForm] = []
        nominals: List[NominalForm] = []
        adjectives: List[AdjectiveForm] = []
        previous_words: List[str] = []
        for token in tokens:
            if not token.is_word or token.type is TokenType.UNKNOWN:
                if token.type is not TokenType.WHITESPACE:
                    previous_words.clear()
                continue
            form = self.classify_token(token, language, previous_words[-2:])
            if isinstance(form, VerbForm):
                verbs.append(form)
            elif isinstance(form, NominalForm):
                nominals.append(form)
            elif isinstance(form, AdjectiveForm):
                adjectives.append(form)
            previous_words.append(token.text.lower())
        return MorphologyResult(tuple(verbs), tuple(nominals), tuple(adjectives))

    def _language(self, language: str | None) -> SupportedLanguage | None:
        code = normalize_language_code(language)
        if code not in self._supported:
            return None
        return SupportedLanguage.from_code(code)


def degree_phrase(language: str, word: str, preceding: Sequence[str]) -> str | None:
    """Join ``word`` with a directly preceding degree adverb (and article)."""
    markers = DEGREE_MARKERS.get(normalize_language_code(language))
    if markers is None or not preceding:
        return None
    adverbs, articles = markers
    words = [value.lower() for value in preceding]
    if words[-1] not in adverbs:
        return None
    parts = [words[-1], word.lower()]
    if len(words) >= 2 and words[-2] in articles:
        parts.insert(0, words[-2])
    return " ".join(parts)
