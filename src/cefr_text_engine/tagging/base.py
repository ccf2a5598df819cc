from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Tuple

from ..models import TokenType


@dataclass(frozen=True, slots=True)
class TagResult:
    """Coarse lexical class and optional lemma for one token span."""

    lexical_class: TokenType
    lemma: str | None = None

    @classmethod
    def unknown(cls) -> "TagResult":
        return cls(TokenType.UNKNOWN, None)


class LexicalTagger(ABC):
    """Assigns a lexical class and lemma to a character range of a text.

    Implementations may also accept a ``language`` keyword; the adapter then
    forwards the dominant language of the text being analyzed.
    """

    @abstractmethod
    def tag(self, text: str, span: Tuple[int, int]) -> TagResult:
        """Return the best-effort class for ``text[span[0]:span[1]]``."""
        raise NotImplementedError


class AsyncLexicalTagger(ABC):
    """Tagger backed by something that must be awaited (e.g. a remote service)."""

    @abstractmethod
    async def tag(self, text: str, span: Tuple[int, int]) -> TagResult:
        raise NotImplementedError
