from __future__ import annotations

import csv
import io
import logging
from importlib import resources
from pathlib import Path
from typing import Dict, Iterable, Mapping, Sequence, Tuple

from ..models import LEXICAL_CLASSES, TokenType, normalize_language_code
from .base import LexicalTagger, TagResult

LOGGER = logging.getLogger(__name__)

BUILTIN_LEXICONS: Mapping[str, str] = {
    "en": "lexicon_en.tsv",
    "fr": "lexicon_fr.tsv",
}

LexiconTable = Dict[str, TagResult]


def _lookup_key(value: str) -> str:
    return value.replace("’", "'").lower()


def read_lexicon(handle: Iterable[str], origin: str = "<lexicon>") -> LexiconTable:
    """
    Parse a tab-separated lexicon with ``token``, ``lexical_class`` and
    ``lemma`` columns.

    Rows with an unknown lexical class raise ``ValueError``; an empty lemma
    column is read as "no lemma".
    """
    table: LexiconTable = {}
    reader = csv.DictReader(handle, delimiter="\t")
    for line_no, row in enumerate(reader, start=2):
        token = (row.get("token") or "").strip()
        if not token:
            continue
        raw_class = (row.get("lexical_class") or "").strip()
        try:
            lexical_class = TokenType(raw_class)
        except ValueError as exc:
            raise ValueError(
                f"{origin}:{line_no}: unknown lexical class {raw_class!r}"
            ) from exc
        if lexical_class not in LEXICAL_CLASSES:
            raise ValueError(
                f"{origin}:{line_no}: {raw_class!r} is not a lexical class"
            )
        lemma = (row.get("lemma") or "").strip() or None
        table[_lookup_key(token)] = TagResult(lexical_class, lemma)
    return table


def load_lexicon(path: str | Path) -> LexiconTable:
    path = Path(path)
    with path.open("r", encoding="utf-8", newline="") as handle:
        return read_lexicon(handle, origin=str(path))


def load_builtin_lexicon(language: str) -> LexiconTable:
    name = BUILTIN_LEXICONS.get(normalize_language_code(language))
    if name is None:
        return {}
    contents = (
        resources.files("cefr_text_engine").joinpath("data").joinpath(name).read_text(
            encoding="utf-8"
        )
    )
    return read_lexicon(io.StringIO(contents, newline=""), origin=name)


class LexiconTagger(LexicalTagger):
    """Dictionary lookup tagger keyed by language.

    Words missing from the lexicon are tagged as a generic ``word`` without a
    lemma. When no language is passed, the default language's table is
    consulted first and the remaining tables after it.
    """

    def __init__(
        self,
        lexicons: Mapping[str, LexiconTable],
        default_language: str = "en",
    ) -> None:
        self._lexicons = {
            normalize_language_code(language): dict(table)
            for language, table in lexicons.items()
        }
        self._default_language = normalize_language_code(default_language)

    @property
    def languages(self) -> Tuple[str, ...]:
        return tuple(sorted(self._lexicons))

    def __len__(self) -> int:
        return sum(len(table) for table in self._lexicons.values())

    def tag(
        self, text: str, span: Tuple[int, int], language: str | None = None
    ) -> TagResult:
        start, end = span
        surface = text[start:end]
        if not surface.strip():
            return TagResult.unknown()
        key = _lookup_key(surface)
        for table in self._tables_for(language):
            hit = table.get(key)
            if hit is not None:
                return hit
        return TagResult(TokenType.WORD, None)

    def _tables_for(self, language: str | None) -> Iterable[LexiconTable]:
        preferred = normalize_language_code(language) or self._default_language
        if language:
            table = self._lexicons.get(preferred)
            return [table] if table is not None else []
        ordered = [self._lexicons[preferred]] if preferred in self._lexicons else []
        ordered.extend(
            table for code, table in self._lexicons.items() if code != preferred
        )
        return ordered


def build_lexicon_tagger(
    extra_paths: Sequence[str | Path] = (),
    default_language: str = "en",
    *,
    include_builtin: bool = True,
) -> LexiconTagger:
    """
    Build a tagger from the bundled seed lexicons plus any extra TSV files.

    Extra files are keyed by the language code in their file stem suffix
    (``terms_fr.tsv`` is French); files without one extend the default
    language. Later entries override earlier ones.
    """
    lexicons: Dict[str, LexiconTable] = {}
    if include_builtin:
        for language in BUILTIN_LEXICONS:
            lexicons[language] = load_builtin_lexicon(language)
    for path in extra_paths:
        path = Path(path)
        language = _language_from_stem(path.stem) or normalize_language_code(
            default_language
        )
        lexicons.setdefault(language, {}).update(load_lexicon(path))
    tagger = LexiconTagger(lexicons, default_language=default_language)
    LOGGER.info(
        "Loaded lexicon tagger with %d entries across %s", len(tagger), tagger.languages
    )
    return tagger


def _language_from_stem(stem: str) -> str | None:
    _, sep, suffix = stem.rpartition("_")
    if not sep or not suffix.isalpha() or len(suffix) not in (2, 3):
        return None
    return suffix.lower()
