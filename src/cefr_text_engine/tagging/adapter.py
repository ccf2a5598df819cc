from __future__ import annotations

import inspect
import logging
from typing import Any, Tuple

from ..models import LEXICAL_CLASSES, TokenType
from .base import TagResult

LOGGER = logging.getLogger(__name__)


class TaggerAdapter:
    """Boundary around a caller-supplied tagger.

    The wrapped object only needs a ``tag(text, span)`` method, sync or async,
    returning a :class:`TagResult` or a ``(lexical_class, lemma)`` pair. Any
    exception it raises is logged and converted to an unknown classification
    so that one failing lookup never aborts an analysis pass.
    """

    def __init__(self, tagger: Any | None = None) -> None:
        if tagger is not None and not callable(getattr(tagger, "tag", None)):
            raise TypeError(f"{type(tagger).__name__} does not provide a tag() method.")
        self._tagger = tagger
        self._accepts_language = tagger is not None and _accepts_language(tagger.tag)

    @property
    def available(self) -> bool:
        return self._tagger is not None

    @property
    def is_async(self) -> bool:
        return self._tagger is not None and inspect.iscoroutinefunction(self._tagger.tag)

    def tag(
        self, text: str, span: Tuple[int, int], language: str | None = None
    ) -> TagResult:
        if self._tagger is None:
            return TagResult.unknown()
        if self.is_async:
            raise TypeError("Asynchronous tagger requires tag_async().")
        try:
            raw = self._call(text, span, language)
        except Exception as exc:
            LOGGER.warning("Tagger failed on span %s: %s", span, exc)
            return TagResult.unknown()
        return coerce_tag_result(raw)

    async def tag_async(
        self, text: str, span: Tuple[int, int], language: str | None = None
    ) -> TagResult:
        if self._tagger is None:
            return TagResult.unknown()
        try:
            raw = self._call(text, span, language)
            if inspect.isawaitable(raw):
                raw = await raw
        except Exception as exc:
            LOGGER.warning("Tagger failed on span %s: %s", span, exc)
            return TagResult.unknown()
        return coerce_tag_result(raw)

    def _call(self, text: str, span: Tuple[int, int], language: str | None) -> Any:
        assert self._tagger is not None
        if self._accepts_language:
            return self._tagger.tag(text, span, language=language)
        return self._tagger.tag(text, span)


def _accepts_language(method: Any) -> bool:
    try:
        parameters = inspect.signature(method).parameters
    except (TypeError, ValueError):
        return False
    return "language" in parameters or any(
        p.kind is inspect.Parameter.VAR_KEYWORD for p in parameters.values()
    )


def coerce_tag_result(raw: Any) -> TagResult:
    """Normalize whatever a tagger returned into a :class:`TagResult`."""
    if isinstance(raw, TagResult):
        lexical_class, lemma = raw.lexical_class, raw.lemma
    elif isinstance(raw, tuple) and len(raw) == 2:
        lexical_class, lemma = raw
    elif raw is None:
        return TagResult.unknown()
    else:
        LOGGER.debug("Ignoring unexpected tagger output %r", raw)
        return TagResult.unknown()

    if lexical_class is None:
        token_type = TokenType.UNKNOWN
    else:
        try:
            token_type = TokenType(lexical_class)
        except ValueError:
            token_type = TokenType.UNKNOWN
    if token_type not in LEXICAL_CLASSES:
        token_type = TokenType.UNKNOWN
    return TagResult(token_type, str(lemma) if lemma else None)
