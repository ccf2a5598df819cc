from __future__ import annotations

import inspect
import logging
import math
import re
from importlib import import_module
from typing import Any, Dict, Iterable, List, Mapping, Tuple

from .models import LanguageConfidence, SupportedLanguage, normalize_language_code
from .textutils import iter_words

LOGGER = logging.getLogger(__name__)

_langdetect_cache: Tuple[Any, Any] | None = None

Hypotheses = Dict[str, float]

_HAN_RE = re.compile(r"[\u3400-\u4dbf\u4e00-\u9fff\uf900-\ufaff]")
_LETTER_RE = re.compile(r"[^\W\d_]")
_FRENCH_DIACRITICS_RE = re.compile(r"[àâçéèêëîïôûùüÿœæ]", re.IGNORECASE)

_EN_MARKERS = frozenset(
    {
        "the", "and", "is", "are", "was", "were", "this", "that", "with",
        "from", "have", "has", "had", "will", "would", "could", "should",
        "not", "been", "they", "their", "there", "what", "you", "of", "to",
        "it", "in", "for", "my", "be", "but", "we", "he", "she", "which",
    }
)

_FR_MARKERS = frozenset(
    {
        "le", "la", "les", "un", "une", "des", "du", "de", "et", "est",
        "je", "tu", "il", "elle", "nous", "vous", "ils", "elles", "que",
        "qui", "dans", "pour", "avec", "sur", "pas", "ne", "ce", "cette",
        "suis", "sont", "mais", "très", "aussi", "au", "aux",
    }
)


class HypothesisAdapter:
    """Boundary around a caller-supplied ``hypotheses(text)`` capability.

    Failures are logged and turned into an empty hypothesis map, which the
    confidence model resolves to the default language.
    """

    def __init__(self, provider: Any | None = None) -> None:
        if provider is not None and not callable(getattr(provider, "hypotheses", None)):
            raise TypeError(
                f"{type(provider).__name__} does not provide a hypotheses() method."
            )
        self._provider = provider

    @property
    def available(self) -> bool:
        return self._provider is not None

    @property
    def is_async(self) -> bool:
        return self._provider is not None and inspect.iscoroutinefunction(
            self._provider.hypotheses
        )

    def hypotheses(self, text: str) -> Hypotheses:
        if self._provider is None or not text.strip():
            return {}
        if self.is_async:
            raise TypeError("Asynchronous hypothesis provider requires hypotheses_async().")
        try:
            raw = self._provider.hypotheses(text)
        except Exception as exc:
            LOGGER.warning("Language hypothesis provider failed: %s", exc)
            return {}
        return _coerce_hypotheses(raw)

    async def hypotheses_async(self, text: str) -> Hypotheses:
        if self._provider is None or not text.strip():
            return {}
        try:
            raw = self._provider.hypotheses(text)
            if inspect.isawaitable(raw):
                raw = await raw
        except Exception as exc:
            LOGGER.warning("Language hypothesis provider failed: %s", exc)
            return {}
        return _coerce_hypotheses(raw)


class LanguageConfidenceModel:
    """
    Ranks candidate languages from a hypothesis distribution.

    Codes are normalized (``fr-FR`` -> ``fr``) and merged by maximum; codes
    outside the candidate set and non-finite values are dropped. The
    dominant language is the most probable candidate, ties broken by
    candidate order. An empty distribution yields the default language at
    the minimum confidence.
    """

    def __init__(
        self,
        default_language: str = "en",
        min_confidence: float = 0.3,
        max_alternatives: int = 3,
        candidate_languages: Iterable[str] = ("en", "fr", "zh"),
    ) -> None:
        default = SupportedLanguage.from_code(default_language)
        if default is None:
            raise ValueError(f"Unsupported default language '{default_language}'.")
        candidates: List[SupportedLanguage] = []
        for code in candidate_languages:
            language = SupportedLanguage.from_code(code)
            if language is None:
                raise ValueError(f"Unsupported candidate language '{code}'.")
            if language not in candidates:
                candidates.append(language)
        if max_alternatives < 0:
            raise ValueError("max_alternatives must be >= 0.")
        self.default_language = default
        self.min_confidence = min(1.0, max(0.0, float(min_confidence)))
        self.max_alternatives = max_alternatives
        self.candidates: Tuple[SupportedLanguage, ...] = tuple(candidates)

    def fallback(self) -> LanguageConfidence:
        return LanguageConfidence(self.default_language, self.min_confidence, ())

    def rank(self, hypotheses: Mapping[str, float]) -> LanguageConfidence:
        scores: Dict[SupportedLanguage, float] = {}
        for code, probability in hypotheses.items():
            language = SupportedLanguage.from_code(code)
            if language is None or language not in self.candidates:
                continue
            try:
                value = float(probability)
            except (TypeError, ValueError):
                continue
            if not math.isfinite(value) or value <= 0.0:
                continue
            scores[language] = max(scores.get(language, 0.0), min(1.0, value))
        if not scores:
            return self.fallback()
        order = {language: index for index, language in enumerate(self.candidates)}
        ranked = sorted(scores.items(), key=lambda item: (-item[1], order[item[0]]))
        dominant, confidence = ranked[0]
        return LanguageConfidence(
            language=dominant,
            confidence=confidence,
            alternatives=tuple(ranked[1 : 1 + self.max_alternatives]),
        )

    def detect(self, text: str, adapter: HypothesisAdapter) -> LanguageConfidence:
        return self.rank(adapter.hypotheses(text))

    async def detect_async(
        self, text: str, adapter: HypothesisAdapter
    ) -> LanguageConfidence:
        return self.rank(await adapter.hypotheses_async(text))


class MarkerWordHypotheses:
    """
    Dependency-free hypotheses from Han-character share, marker words and
    French diacritics.

    The Han share of letters goes to Chinese; the remainder is split
    between English and French by marker evidence. Text with no evidence at
    all produces no hypotheses.
    """

    def hypotheses(self, text: str) -> Hypotheses:
        letters = _LETTER_RE.findall(text)
        if not letters:
            return {}
        han_share = len(_HAN_RE.findall(text)) / len(letters)
        words = [word.replace("’", "'") for word in iter_words(text)]
        en_hits = sum(1 for word in words if word in _EN_MARKERS)
        fr_hits = sum(1 for word in words if word in _FR_MARKERS)
        fr_hits += len(_FRENCH_DIACRITICS_RE.findall(text)) * 0.5
        fr_hits += sum(1 for word in words if re.match(r"^[ldjnqs]'", word))

        result: Hypotheses = {}
        if han_share > 0:
            result["zh"] = han_share
        latin_share = 1.0 - han_share
        evidence = en_hits + fr_hits
        if latin_share > 0 and evidence > 0:
            if en_hits:
                result["en"] = latin_share * en_hits / evidence
            if fr_hits:
                result["fr"] = latin_share * fr_hits / evidence
        return result


class LangdetectHypotheses:
    """Hypotheses from the ``langdetect`` package, seeded for repeatability."""

    def __init__(self, seed: int = 0) -> None:
        detect_langs, factory = _ensure_langdetect()
        factory.seed = seed
        self._detect_langs = detect_langs

    def hypotheses(self, text: str) -> Hypotheses:
        result: Hypotheses = {}
        for guess in self._detect_langs(text):
            code = normalize_language_code(str(guess.lang))
            result[code] = max(result.get(code, 0.0), float(guess.prob))
        return result


def create_hypotheses(name: str, **kwargs: Any) -> Any | None:
    """Factory for hypothesis providers by name; ``none`` disables detection."""
    normalized = name.lower().strip()
    if normalized in {"none", ""}:
        return None
    if normalized == "markers":
        return MarkerWordHypotheses()
    if normalized == "langdetect":
        return LangdetectHypotheses(**kwargs)
    raise ValueError(f"Unknown language hypotheses provider '{name}'.")


def _coerce_hypotheses(raw: Any) -> Hypotheses:
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        LOGGER.debug("Ignoring unexpected hypotheses payload %r", raw)
        return {}
    result: Hypotheses = {}
    for code, value in raw.items():
        try:
            result[str(code)] = float(value)
        except (TypeError, ValueError):
            continue
    return result


def _ensure_langdetect() -> Tuple[Any, Any]:
    global _langdetect_cache
    if _langdetect_cache is None:
        try:
            module = import_module("langdetect")
        except ModuleNotFoundError as exc:  # pragma: no cover - informative
            raise ImportError(
                "langdetect is required for the 'langdetect' hypotheses provider. "
                "Install the 'langdetect' extra (e.g., `pip install .[langdetect]`)."
            ) from exc
        _langdetect_cache = (
            getattr(module, "detect_langs"),
            getattr(module, "DetectorFactory"),
        )
    return _langdetect_cache
