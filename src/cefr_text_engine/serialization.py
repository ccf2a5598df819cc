from __future__ import annotations

import json
from dataclasses import fields, is_dataclass
from enum import Enum
from typing import Any, Dict

from .models import LanguageConfidence, Token
from .pipeline import TextAnalysis


def to_payload(value: Any) -> Any:
    """Convert result records into JSON-compatible builtins.

    Dataclasses become dicts keyed by field name, enums their values and
    tuples lists. Token ranges are emitted as ``start``/``end`` pairs.
    """
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, LanguageConfidence):
        return {
            "language": value.language.value,
            "confidence": value.confidence,
            "alternatives": [
                {"language": language.value, "confidence": confidence}
                for language, confidence in value.alternatives
            ],
        }
    if isinstance(value, TextAnalysis):
        return analysis_payload(value)
    if is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_payload(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, dict):
        return {str(to_payload(key)): to_payload(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        items = [to_payload(item) for item in value]
        return sorted(items, key=str) if isinstance(value, (set, frozenset)) else items
    return value


def token_payload(token: Token) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "text": token.text,
        "type": token.type.value,
        "start": token.start,
        "end": token.end,
    }
    if token.lemma is not None:
        payload["lemma"] = token.lemma
    if token.metadata:
        payload["metadata"] = dict(token.metadata)
    return payload


def analysis_payload(analysis: TextAnalysis, include_tokens: bool = False) -> Dict[str, Any]:
    """Structured view of an analysis; tokens are opt-in since they dominate size."""
    payload: Dict[str, Any] = {
        "doc_id": analysis.doc_id,
        "language": to_payload(analysis.language),
        "tagged": analysis.tagged,
        "word_count": analysis.word_count,
        "token_counts": analysis.token_counts,
        "difficulty": {
            "level": analysis.difficulty.level.value,
            "average_score": analysis.difficulty.average_score,
            "factors": to_payload(analysis.difficulty.factors),
        },
        "morphology": to_payload(analysis.morphology),
        "sentences": [
            {
                "text": sentence.text,
                "start": sentence.start,
                "end": sentence.end,
                "complexity": sentence.complexity.value,
                "components": [
                    {"type": component.type.value, "text": component.text}
                    for component in sentence.components
                ],
            }
            for sentence in analysis.sentences
        ],
        "patterns": to_payload(analysis.patterns),
        "special_tokens": {
            category.value: analysis.special_tokens.count(category)
            for category in sorted(analysis.special_tokens.categories, key=lambda c: c.value)
        },
    }
    if include_tokens:
        payload["tokens"] = [token_payload(token) for token in analysis.tokens]
    return payload


def to_json(value: Any, indent: int | None = 2) -> str:
    if isinstance(value, Token):
        return json.dumps(token_payload(value), indent=indent, ensure_ascii=False)
    return json.dumps(to_payload(value), indent=indent, ensure_ascii=False)
