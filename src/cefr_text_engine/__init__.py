"""
cefr_text_engine package exports convenience helpers for library consumers.
"""

from __future__ import annotations

from .config import AnalyzerConfig, config_from_dict, config_from_yaml, load_config
from .language import LanguageConfidenceModel, create_hypotheses
from .pipeline import TextAnalysis, TextAnalyzer, analyze_text
from .rules import RuleEngine, RuleEngineBuilder, RuleTableError, load_rule_engine
from .tagging import build_tagger_from_config, create_tagger

__all__ = [
    "AnalyzerConfig",
    "config_from_dict",
    "config_from_yaml",
    "load_config",
    "LanguageConfidenceModel",
    "create_hypotheses",
    "TextAnalysis",
    "TextAnalyzer",
    "analyze_text",
    "RuleEngine",
    "RuleEngineBuilder",
    "RuleTableError",
    "load_rule_engine",
    "build_tagger_from_config",
    "create_tagger",
]

__version__ = "0.1.0"
