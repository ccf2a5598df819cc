from __future__ import annotations

import asyncio
import logging
from collections import Counter
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, Iterator, List, Sequence, Tuple

from .config import AnalyzerConfig
from .difficulty import DifficultyScorer, extract_features
from .language import HypothesisAdapter, LanguageConfidenceModel, create_hypotheses
from .models import (
    Document,
    LanguageConfidence,
    LanguagePattern,
    LearningDifficulty,
    MorphologyResult,
    SentenceStructure,
    SupportedLanguage,
    Token,
    TokenType,
)
from .morphology import MorphologicalClassifier
from .patterns import PatternDetector
from .rules import RuleEngine, load_rule_engine
from .sentences import SentenceAnalyzer, iter_sentence_spans
from .special_tokens import SpecialTokenClassifier, SpecialTokenScan
from .tagging import TaggerAdapter, build_tagger_from_config
from .tokenization import ProtectedSpan, tokenize

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TextAnalysis:
    """Everything the engine derives from one text."""

    text: str
    language: LanguageConfidence
    tokens: Tuple[Token, ...]
    morphology: MorphologyResult
    sentences: Tuple[SentenceStructure, ...]
    difficulty: LearningDifficulty
    patterns: Tuple[LanguagePattern, ...]
    special_tokens: SpecialTokenScan = field(default_factory=SpecialTokenScan)
    tagged: bool = True
    doc_id: str | None = None

    @property
    def token_counts(self) -> Dict[str, int]:
        counts = Counter(token.type.value for token in self.tokens)
        return dict(sorted(counts.items()))

    @property
    def word_count(self) -> int:
        return sum(1 for token in self.tokens if token.is_word)


class TextAnalyzer:
    """
    Runs tokenization, tagging, morphology, sentence segmentation, pattern
    detection and difficulty scoring over a text.

    The rule engine and every helper are read-only after construction, so
    one analyzer can serve concurrent calls. Taggers and hypothesis
    providers may be synchronous or asynchronous; with an asynchronous one
    the synchronous entry points drive the event loop themselves and must
    not be called from inside a running loop.
    """

    def __init__(
        self,
        engine: RuleEngine,
        tagger: Any | None = None,
        hypotheses: Any | None = None,
        *,
        language_model: LanguageConfidenceModel | None = None,
        scorer: DifficultyScorer | None = None,
        special_tokens: SpecialTokenClassifier | None = None,
        supported_languages: Iterable[str] = ("en", "fr"),
        max_concurrency: int = 4,
    ) -> None:
        self._engine = engine
        self._tagger = tagger if isinstance(tagger, TaggerAdapter) else TaggerAdapter(tagger)
        self._hypotheses = (
            hypotheses
            if isinstance(hypotheses, HypothesisAdapter)
            else HypothesisAdapter(hypotheses)
        )
        self._language_model = language_model or LanguageConfidenceModel()
        self._scorer = scorer or DifficultyScorer()
        self._special = special_tokens or SpecialTokenClassifier()
        self._morphology = MorphologicalClassifier(engine, supported_languages)
        self._sentences = SentenceAnalyzer()
        self._patterns = PatternDetector(engine)
        self._max_concurrency = max(1, max_concurrency)

    @classmethod
    def from_config(cls, config: AnalyzerConfig | None = None) -> "TextAnalyzer":
        """Build the engine and its collaborators once, before any analysis."""
        config = config or AnalyzerConfig()
        engine = load_rule_engine(config.rule_paths, config.extra_irregular_verbs)
        missing = sorted(
            code for code in config.supported_languages if code not in engine.languages
        )
        if missing:
            LOGGER.warning("No rule tables loaded for supported languages %s", missing)
        return cls(
            engine,
            tagger=build_tagger_from_config(config),
            hypotheses=create_hypotheses(config.hypotheses_name),
            language_model=LanguageConfidenceModel(
                default_language=config.default_language,
                min_confidence=config.min_confidence,
                max_alternatives=config.max_alternatives,
                candidate_languages=config.candidate_languages,
            ),
            scorer=DifficultyScorer(settings=config.factor_settings()),
            supported_languages=config.supported_languages,
            max_concurrency=config.max_concurrency,
        )

    @property
    def engine(self) -> RuleEngine:
        return self._engine

    @property
    def is_async(self) -> bool:
        return self._tagger.is_async or self._hypotheses.is_async

    # -- language ---------------------------------------------------------

    def detect_language(self, text: str, language: str | None = None) -> LanguageConfidence:
        if language:
            return _forced_language(language)
        if self._hypotheses.is_async:
            return asyncio.run(self.detect_language_async(text))
        return self._language_model.detect(text, self._hypotheses)

    async def detect_language_async(
        self, text: str, language: str | None = None
    ) -> LanguageConfidence:
        if language:
            return _forced_language(language)
        return await self._language_model.detect_async(text, self._hypotheses)

    # -- tokens -----------------------------------------------------------

    def special_spans(self, text: str) -> List[ProtectedSpan]:
        return self._special.find_spans(text) if text else []

    def tokenize(self, text: str, language: str | None = None) -> Iterator[Token]:
        """Untagged tokens with special tokens (URLs, numbers, ...) kept whole."""
        return tokenize(text, language, self.special_spans(text))

    def tag_tokens(
        self, text: str, tokens: Sequence[Token], language: str | None
    ) -> List[Token]:
        """Replace generic word tokens with tagged ones; unknown without a tagger."""
        if self._tagger.is_async:
            return asyncio.run(self.tag_tokens_async(text, tokens, language))
        tagged: List[Token] = []
        for token in tokens:
            if token.type is not TokenType.WORD:
                tagged.append(token)
                continue
            result = self._tagger.tag(text, token.span, language)
            tagged.append(replace(token, type=result.lexical_class, lemma=result.lemma))
        return tagged

    async def tag_tokens_async(
        self, text: str, tokens: Sequence[Token], language: str | None
    ) -> List[Token]:
        tagged: List[Token] = []
        for token in tokens:
            if token.type is not TokenType.WORD:
                tagged.append(token)
                continue
            result = await self._tagger.tag_async(text, token.span, language)
            tagged.append(replace(token, type=result.lexical_class, lemma=result.lemma))
        return tagged

    # -- analysis ---------------------------------------------------------

    def analyze(
        self, text: str, language: str | None = None, doc_id: str | None = None
    ) -> TextAnalysis:
        """Run the full pipeline over one text.

        A forced ``language`` must name English, French or Chinese (regional
        variants such as ``fr-FR`` are accepted); any other code raises
        ``ValueError``. Detected text in an unsupported language instead falls
        back to the configured default language at minimum confidence.
        """
        if self.is_async:
            return asyncio.run(self.analyze_async(text, language, doc_id))
        text = text or ""
        detected = self.detect_language(text, language)
        spans = self.special_spans(text)
        tokens = list(tokenize(text, detected.language.value, spans))
        tokens = self.tag_tokens(text, tokens, detected.language.value)
        return self._assemble(text, doc_id, detected, spans, tokens)

    async def analyze_async(
        self, text: str, language: str | None = None, doc_id: str | None = None
    ) -> TextAnalysis:
        text = text or ""
        detected = await self.detect_language_async(text, language)
        spans = self.special_spans(text)
        tokens = list(tokenize(text, detected.language.value, spans))
        tokens = await self.tag_tokens_async(text, tokens, detected.language.value)
        return self._assemble(text, doc_id, detected, spans, tokens)

    def iter_sentences(
        self, text: str, language: str | None = None
    ) -> Iterator[SentenceStructure]:
        """
        Stream sentence structures one at a time, tagging each sentence only
        when it is requested. Stop iterating to stop the work.
        """
        text = text or ""
        detected = self.detect_language(text, language)
        code = detected.language.value
        spans = self.special_spans(text)
        tokens = list(tokenize(text, code, spans))
        index = 0
        for start, end in iter_sentence_spans(text, spans):
            while index < len(tokens) and tokens[index].start < start:
                index += 1
            first = index
            while index < len(tokens) and tokens[index].start < end:
                index += 1
            sentence_tokens = self.tag_tokens(text, tokens[first:index], code)
            yield self._sentences.analyze(text, sentence_tokens, start, end)

    def analyze_document(self, document: Document, language: str | None = None) -> TextAnalysis:
        return self.analyze(document.text, language, doc_id=document.doc_id)

    def analyze_corpus(
        self, documents: Iterable[Document], language: str | None = None
    ) -> Dict[str, TextAnalysis]:
        """Analyze all documents and return the per-document results."""
        if self.is_async:
            return asyncio.run(self.analyze_corpus_async(documents, language))
        results: Dict[str, TextAnalysis] = {}
        for document in documents:
            results[document.doc_id] = self.analyze_document(document, language)
        return results

    async def analyze_corpus_async(
        self, documents: Iterable[Document], language: str | None = None
    ) -> Dict[str, TextAnalysis]:
        """Analyze documents concurrently, at most ``max_concurrency`` at a time."""
        docs = list(documents)
        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def _run(document: Document) -> TextAnalysis:
            async with semaphore:
                return await self.analyze_async(
                    document.text, language, doc_id=document.doc_id
                )

        analyses = await asyncio.gather(*(_run(document) for document in docs))
        return {document.doc_id: analysis for document, analysis in zip(docs, analyses)}

    def _assemble(
        self,
        text: str,
        doc_id: str | None,
        detected: LanguageConfidence,
        spans: Sequence[ProtectedSpan],
        tokens: List[Token],
    ) -> TextAnalysis:
        code = detected.language.value
        tagged = self._tagger.available
        morphology = (
            self._morphology.analyze_tokens(tokens, code) if tagged else MorphologyResult()
        )
        sentences = tuple(self._sentences.iter_structures(text, tokens, spans))
        difficulty = self._scorer.assess(extract_features(tokens, sentences, len(spans)))
        LOGGER.debug(
            "Analyzed %s: %d tokens, %d sentences, level %s",
            doc_id or "<text>",
            len(tokens),
            len(sentences),
            difficulty.level.value,
        )
        return TextAnalysis(
            text=text,
            language=detected,
            tokens=tuple(tokens),
            morphology=morphology,
            sentences=sentences,
            difficulty=difficulty,
            patterns=tuple(self._patterns.detect(text, code)),
            special_tokens=self._special.scan(text),
            tagged=tagged,
            doc_id=doc_id,
        )


def _forced_language(code: str) -> LanguageConfidence:
    language = SupportedLanguage.from_code(code)
    if language is None:
        raise ValueError(f"Unsupported language '{code}'.")
    return LanguageConfidence(language, 1.0, ())


def analyze_text(
    text: str, config: AnalyzerConfig | None = None, language: str | None = None
) -> TextAnalysis:
    """One-off convenience wrapper; build a TextAnalyzer to analyze many texts."""
    return TextAnalyzer.from_config(config).analyze(text, language)
