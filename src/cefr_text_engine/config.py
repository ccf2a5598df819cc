from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Mapping, MutableMapping

import yaml

from .difficulty import FactorSettings


@dataclass(slots=True)
class AnalyzerConfig:
    """Configuration options for the text analysis engine."""

    default_language: str = "en"
    min_confidence: float = 0.3
    max_alternatives: int = 3
    candidate_languages: List[str] = field(default_factory=lambda: ["en", "fr", "zh"])
    supported_languages: List[str] = field(default_factory=lambda: ["en", "fr"])
    rule_paths: List[str] = field(default_factory=list)
    extra_irregular_verbs: Dict[str, List[str]] = field(default_factory=dict)
    tagger_name: str = "lexicon"
    lexicon_paths: List[str] = field(default_factory=list)
    hypotheses_name: str = "markers"
    max_concurrency: int = 4
    vocabulary_thresholds: List[float] = field(default_factory=lambda: [0.3, 0.5, 0.8])
    grammar_structure_norm: float = 10.0
    sentence_length_floor: float = 5.0
    sentence_length_span: float = 25.0
    long_word_length: int = 7

    def to_dict(self) -> dict[str, Any]:
        """Return a mutable dictionary representation of the configuration."""
        return dict(asdict(self))

    def factor_settings(self) -> FactorSettings:
        """Validate the factor knobs and pack them for the difficulty scorer."""
        thresholds = tuple(float(value) for value in self.vocabulary_thresholds)
        if len(thresholds) != 3 or list(thresholds) != sorted(thresholds):
            raise ValueError(
                "vocabulary_thresholds must list three ascending ratios."
            )
        if self.grammar_structure_norm <= 0 or self.sentence_length_span <= 0:
            raise ValueError(
                "grammar_structure_norm and sentence_length_span must be positive."
            )
        return FactorSettings(
            vocabulary_thresholds=(thresholds[0], thresholds[1], thresholds[2]),
            grammar_structure_norm=float(self.grammar_structure_norm),
            sentence_length_floor=float(self.sentence_length_floor),
            sentence_length_span=float(self.sentence_length_span),
            long_word_length=int(self.long_word_length),
        )


def _build_kwargs(data: Mapping[str, Any]) -> dict[str, Any]:
    allowed = {field.name for field in fields(AnalyzerConfig)}
    kwargs = {key: data[key] for key in data if key in allowed}
    irregular = kwargs.get("extra_irregular_verbs")
    if irregular is not None:
        if not isinstance(irregular, Mapping):
            raise ValueError("extra_irregular_verbs must map language codes to lists.")
        kwargs["extra_irregular_verbs"] = {
            str(language): [str(verb) for verb in verbs or []]
            for language, verbs in irregular.items()
        }
    return kwargs


def config_from_dict(data: Mapping[str, Any] | None) -> AnalyzerConfig:
    """Build an AnalyzerConfig from a dictionary-like input."""
    if data is None:
        return AnalyzerConfig()
    return AnalyzerConfig(**_build_kwargs(data))


def config_from_yaml(path: str | Path) -> AnalyzerConfig:
    """Load configuration from a YAML file."""
    contents = Path(path).read_text(encoding="utf-8")
    parsed = yaml.safe_load(contents) or {}
    if not isinstance(parsed, MutableMapping):
        raise ValueError("Configuration YAML must define a mapping.")
    return config_from_dict(parsed)


def load_config(path: str | Path | None = None) -> AnalyzerConfig:
    """Load configuration from YAML when provided, otherwise return defaults."""
    if path is None:
        return AnalyzerConfig()
    return config_from_yaml(path)
