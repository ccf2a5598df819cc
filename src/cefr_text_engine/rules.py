from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from importlib import resources
from pathlib import Path
from types import MappingProxyType
from typing import (
    Any,
    Callable,
    Dict,
    FrozenSet,
    Generic,
    Iterable,
    List,
    Mapping,
    Sequence,
    Tuple,
    TypeVar,
)

import yaml

from .models import (
    AdjectiveFeatures,
    Degree,
    Gender,
    GrammaticalCase,
    GrammaticalNumber,
    Mood,
    NominalFeatures,
    PatternCategory,
    Person,
    Tense,
    VerbFeatures,
    normalize_language_code,
)

LOGGER = logging.getLogger(__name__)

R = TypeVar("R")

BUILTIN_RULE_FILES = ("en.yaml", "fr.yaml")


class RuleTableError(ValueError):
    """Raised when a rule table cannot be built; fatal at startup."""


class RuleCategory(str, Enum):
    VERB = "verb"
    NOUN = "noun"
    ADJECTIVE = "adjective"
    PHRASE = "phrase"


@dataclass(frozen=True, slots=True)
class PhraseFeatures:
    label: str
    category: PatternCategory


@dataclass(frozen=True, slots=True)
class PatternRule(Generic[R]):
    """A compiled pattern and the classification it yields."""

    pattern: re.Pattern[str]
    result: R

    @property
    def source(self) -> str:
        return self.pattern.pattern


@dataclass(frozen=True, slots=True)
class RuleMatch(Generic[R]):
    """The winning rule plus readings of later rules with the identical pattern."""

    rule: PatternRule[R]
    index: int
    alternatives: Tuple[R, ...] = ()

    @property
    def result(self) -> R:
        return self.rule.result


class RuleTable(Generic[R]):
    """An ordered, immutable list of rules evaluated first-match-wins."""

    def __init__(self, rules: Iterable[PatternRule[R]]) -> None:
        self._rules: Tuple[PatternRule[R], ...] = tuple(rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self):
        return iter(self._rules)

    @property
    def rules(self) -> Tuple[PatternRule[R], ...]:
        return self._rules

    def first_match(self, candidate: str) -> RuleMatch[R] | None:
        """Return the first rule whose pattern matches, or None."""
        if not candidate:
            return None
        for index, rule in enumerate(self._rules):
            if rule.pattern.search(candidate):
                alternatives = tuple(
                    dict.fromkeys(
                        later.result
                        for later in self._rules[index + 1 :]
                        if later.source == rule.source and later.result != rule.result
                    )
                )
                return RuleMatch(rule=rule, index=index, alternatives=alternatives)
        return None


@dataclass(frozen=True, slots=True)
class VerbLexicon:
    """Regular-verb endings and the curated irregular exclusion set."""

    regular_endings: Tuple[str, ...] = ()
    irregular_verbs: FrozenSet[str] = frozenset()

    def is_regular(self, lemma: str | None) -> bool:
        """Heuristic: lemma present, regular ending (if any listed), not excluded."""
        if not lemma:
            return False
        key = lemma.lower()
        if key in self.irregular_verbs:
            return False
        if self.regular_endings and not key.endswith(self.regular_endings):
            return False
        return True


TableKey = Tuple[str, RuleCategory]


class RuleEngine:
    """Read-only registry of per-(language, category) rule tables."""

    def __init__(
        self,
        tables: Mapping[TableKey, RuleTable[Any]],
        verb_lexicons: Mapping[str, VerbLexicon] | None = None,
    ) -> None:
        self._tables = MappingProxyType(dict(tables))
        self._verb_lexicons = MappingProxyType(dict(verb_lexicons or {}))

    @property
    def languages(self) -> FrozenSet[str]:
        return frozenset(language for language, _ in self._tables)

    def table(self, language: str, category: RuleCategory) -> RuleTable[Any]:
        return self._tables.get(
            (normalize_language_code(language), category), RuleTable(())
        )

    def classify(
        self, language: str, category: RuleCategory, candidate: str
    ) -> RuleMatch[Any] | None:
        """Evaluate ``candidate`` against the table for (language, category)."""
        return self.table(language, category).first_match(candidate)

    def verb_lexicon(self, language: str) -> VerbLexicon:
        return self._verb_lexicons.get(normalize_language_code(language), VerbLexicon())

    def summary(self) -> Dict[str, int]:
        return {
            f"{language}.{category.value}": len(table)
            for (language, category), table in sorted(
                self._tables.items(), key=lambda item: (item[0][0], item[0][1].value)
            )
        }


class RuleEngineBuilder:
    """Accumulates rules at configuration time; ``build`` freezes them."""

    def __init__(self) -> None:
        self._rules: Dict[TableKey, List[PatternRule[Any]]] = {}
        self._regular_endings: Dict[str, List[str]] = {}
        self._irregular: Dict[str, set[str]] = {}
        self._built = False

    def add_rule(
        self,
        language: str,
        category: RuleCategory,
        pattern: str,
        result: Any,
        *,
        flags: int = 0,
    ) -> "RuleEngineBuilder":
        self._check_open()
        try:
            compiled = re.compile(pattern, flags)
        except re.error as exc:
            raise RuleTableError(
                f"Invalid {language}/{category.value} pattern {pattern!r}: {exc}"
            ) from exc
        key = (normalize_language_code(language), category)
        self._rules.setdefault(key, []).append(PatternRule(compiled, result))
        return self

    def add_regular_endings(self, language: str, endings: Iterable[str]) -> "RuleEngineBuilder":
        self._check_open()
        bucket = self._regular_endings.setdefault(normalize_language_code(language), [])
        bucket.extend(str(ending).lower() for ending in endings)
        return self

    def add_irregular_verbs(self, language: str, verbs: Iterable[str]) -> "RuleEngineBuilder":
        self._check_open()
        bucket = self._irregular.setdefault(normalize_language_code(language), set())
        bucket.update(str(verb).lower() for verb in verbs)
        return self

    def extend_from_mapping(self, data: Mapping[str, Any], origin: str = "<mapping>") -> "RuleEngineBuilder":
        """Append every table described by a parsed rule document."""
        if not isinstance(data, Mapping):
            raise RuleTableError(f"{origin}: rule document must be a mapping.")
        language = data.get("language")
        if not isinstance(language, str) or not language.strip():
            raise RuleTableError(f"{origin}: missing 'language' key.")

        for category, parse in _PARSERS.items():
            entries = data.get(category.value) or []
            if not isinstance(entries, list):
                raise RuleTableError(f"{origin}: '{category.value}' must be a list.")
            flags = re.IGNORECASE if category is RuleCategory.PHRASE else 0
            for position, entry in enumerate(entries):
                if not isinstance(entry, Mapping) or "pattern" not in entry:
                    raise RuleTableError(
                        f"{origin}: {category.value}[{position}] needs a 'pattern'."
                    )
                try:
                    result = parse(entry)
                except (KeyError, ValueError) as exc:
                    raise RuleTableError(
                        f"{origin}: {category.value}[{position}] is invalid: {exc}"
                    ) from exc
                self.add_rule(language, category, str(entry["pattern"]), result, flags=flags)

        verbs = data.get("verb_lexicon") or {}
        if not isinstance(verbs, Mapping):
            raise RuleTableError(f"{origin}: 'verb_lexicon' must be a mapping.")
        self.add_regular_endings(language, verbs.get("regular_endings") or [])
        self.add_irregular_verbs(language, verbs.get("irregular") or [])
        return self

    def extend_from_yaml(self, path: str | Path) -> "RuleEngineBuilder":
        path = Path(path)
        try:
            parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
        except yaml.YAMLError as exc:
            raise RuleTableError(f"{path}: malformed YAML: {exc}") from exc
        return self.extend_from_mapping(parsed or {}, origin=str(path))

    def extend_from_builtin(self, name: str) -> "RuleEngineBuilder":
        contents = resources.files("cefr_text_engine").joinpath("data").joinpath(name).read_text(
            encoding="utf-8"
        )
        return self.extend_from_mapping(yaml.safe_load(contents) or {}, origin=name)

    def build(self) -> RuleEngine:
        self._built = True
        tables = {key: RuleTable(rules) for key, rules in self._rules.items()}
        languages = set(self._regular_endings) | set(self._irregular)
        lexicons = {
            language: VerbLexicon(
                regular_endings=tuple(self._regular_endings.get(language, ())),
                irregular_verbs=frozenset(self._irregular.get(language, ())),
            )
            for language in languages
        }
        engine = RuleEngine(tables, lexicons)
        LOGGER.info("Built rule engine with tables %s", engine.summary())
        return engine

    def _check_open(self) -> None:
        if self._built:
            raise RuleTableError("Rule tables are frozen once the engine is built.")


def load_rule_engine(
    extra_paths: Sequence[str | Path] = (),
    extra_irregular_verbs: Mapping[str, Iterable[str]] | None = None,
    *,
    include_builtin: bool = True,
) -> RuleEngine:
    """Build the engine from bundled tables, then append any extra rule files."""
    builder = RuleEngineBuilder()
    if include_builtin:
        for name in BUILTIN_RULE_FILES:
            builder.extend_from_builtin(name)
    for path in extra_paths:
        builder.extend_from_yaml(path)
    for language, verbs in (extra_irregular_verbs or {}).items():
        builder.add_irregular_verbs(language, verbs)
    return builder.build()


def _verb_features(entry: Mapping[str, Any]) -> VerbFeatures:
    return VerbFeatures(
        tense=Tense(entry["tense"]),
        person=Person(entry["person"]),
        number=GrammaticalNumber(entry["number"]),
        mood=Mood(entry.get("mood", Mood.INDICATIVE.value)),
    )


def _nominal_features(entry: Mapping[str, Any]) -> NominalFeatures:
    return NominalFeatures(
        gender=Gender(entry["gender"]),
        number=GrammaticalNumber(entry["number"]),
        case=GrammaticalCase(entry.get("case", GrammaticalCase.NOMINATIVE.value)),
    )


def _adjective_features(entry: Mapping[str, Any]) -> AdjectiveFeatures:
    return AdjectiveFeatures(
        gender=Gender(entry["gender"]),
        number=GrammaticalNumber(entry["number"]),
        degree=Degree(entry.get("degree", Degree.POSITIVE.value)),
    )


def _phrase_features(entry: Mapping[str, Any]) -> PhraseFeatures:
    label = str(entry["label"]).strip()
    if not label:
        raise ValueError("phrase label must not be empty")
    return PhraseFeatures(label=label, category=PatternCategory(entry["category"]))


_PARSERS: Dict[RuleCategory, Callable[[Mapping[str, Any]], Any]] = {
    RuleCategory.VERB: _verb_features,
    RuleCategory.NOUN: _nominal_features,
    RuleCategory.ADJECTIVE: _adjective_features,
    RuleCategory.PHRASE: _phrase_features,
}
