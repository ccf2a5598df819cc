from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .adapter import TaggerAdapter, coerce_tag_result
from .base import AsyncLexicalTagger, LexicalTagger, TagResult
from .lexicon import LexiconTagger, build_lexicon_tagger, load_lexicon
from .nltk_tagger import NltkTagger

if TYPE_CHECKING:  # pragma: no cover - import for typing only
    from ..config import AnalyzerConfig

__all__ = [
    "AsyncLexicalTagger",
    "LexicalTagger",
    "LexiconTagger",
    "NltkTagger",
    "TagResult",
    "TaggerAdapter",
    "build_lexicon_tagger",
    "build_tagger_from_config",
    "coerce_tag_result",
    "create_tagger",
    "load_lexicon",
]


def create_tagger(name: str, **kwargs: Any) -> LexicalTagger | None:
    """Factory for building taggers by name; ``none`` selects degraded mode."""
    normalized = name.lower().strip()
    if normalized in {"none", ""}:
        return None
    if normalized == "lexicon":
        return build_lexicon_tagger(**kwargs)
    if normalized == "nltk":
        return NltkTagger(**kwargs)
    raise ValueError(f"Unknown tagger '{name}'.")


def build_tagger_from_config(config: "AnalyzerConfig") -> LexicalTagger | None:
    """Convenience helper to build a tagger from AnalyzerConfig."""
    normalized = config.tagger_name.lower().strip()
    if normalized == "lexicon":
        return create_tagger(
            config.tagger_name,
            extra_paths=list(config.lexicon_paths),
            default_language=config.default_language,
        )
    return create_tagger(config.tagger_name)
