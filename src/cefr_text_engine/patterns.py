from __future__ import annotations

from typing import Dict, List, Tuple

from .models import LanguagePattern, PatternCategory, normalize_language_code
from .rules import PhraseFeatures, RuleCategory, RuleEngine

MAX_EXAMPLES = 3


class PatternDetector:
    """Counts grammar constructions, collocations, idioms and common phrases.

    Every phrase rule of the text's language is applied across the whole
    text; rules sharing a label are aggregated into one pattern.
    """

    def __init__(self, engine: RuleEngine, min_frequency: int = 1) -> None:
        self._engine = engine
        self._min_frequency = max(1, min_frequency)

    def detect(self, text: str, language: str | None) -> List[LanguagePattern]:
        if not text or not text.strip():
            return []
        table = self._engine.table(normalize_language_code(language), RuleCategory.PHRASE)
        counts: Dict[Tuple[str, PatternCategory], int] = {}
        examples: Dict[Tuple[str, PatternCategory], List[str]] = {}
        for rule in table:
            features: PhraseFeatures = rule.result
            key = (features.label, features.category)
            for match in rule.pattern.finditer(text):
                if not match.group():
                    continue
                counts[key] = counts.get(key, 0) + 1
                bucket = examples.setdefault(key, [])
                if len(bucket) < MAX_EXAMPLES:
                    bucket.append(match.group())
        return [
            LanguagePattern(
                pattern=label,
                category=category,
                frequency=count,
                examples=tuple(examples.get((label, category), ())),
            )
            for (label, category), count in counts.items()
            if count >= self._min_frequency
        ]

    def by_category(
        self, text: str, language: str | None
    ) -> Dict[PatternCategory, List[LanguagePattern]]:
        grouped: Dict[PatternCategory, List[LanguagePattern]] = {
            category: [] for category in PatternCategory
        }
        for pattern in self.detect(text, language):
            grouped[pattern.category].append(pattern)
        return grouped
