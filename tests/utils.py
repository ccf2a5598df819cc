from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Dict, Mapping, Tuple

from cefr_text_engine.models import TokenType
from cefr_text_engine.tagging import TagResult


class DictTagger:
    """Synchronous tagger answering from a fixed word -> (class, lemma) map."""

    def __init__(self, entries: Mapping[str, Tuple[TokenType, str | None]]) -> None:
        self.entries = {key.lower(): value for key, value in entries.items()}
        self.calls = 0

    def tag(self, text: str, span: Tuple[int, int]) -> TagResult:
        self.calls += 1
        word = text[span[0] : span[1]].lower()
        lexical_class, lemma = self.entries.get(word, (TokenType.WORD, None))
        return TagResult(lexical_class, lemma)


class AsyncDictTagger(DictTagger):
    """Same lookups, awaited, tracking how many lookups overlap in time."""

    def __init__(self, entries: Mapping[str, Tuple[TokenType, str | None]]) -> None:
        super().__init__(entries)
        self.in_flight = 0
        self.max_in_flight = 0

    async def tag(self, text: str, span: Tuple[int, int]) -> TagResult:  # type: ignore[override]
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
            return DictTagger.tag(self, text, span)
        finally:
            self.in_flight -= 1


class FailingTagger:
    def tag(self, text: str, span: Tuple[int, int]) -> TagResult:
        raise RuntimeError("tagger offline")


class StaticHypotheses:
    def __init__(self, values: Dict[str, float]) -> None:
        self.values = dict(values)

    def hypotheses(self, text: str) -> Dict[str, float]:
        return dict(self.values)


class FailingHypotheses:
    def hypotheses(self, text: str) -> Dict[str, float]:
        raise TimeoutError("detector timed out")


def write_text_corpus(root: Path, files: Mapping[str, str]) -> Path:
    """Create ``root`` with the given relative text files and return it."""
    root.mkdir(parents=True, exist_ok=True)
    for relative, body in files.items():
        target = root / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(body, encoding="utf-8")
    return root
