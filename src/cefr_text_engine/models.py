from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Tuple


class TokenType(str, Enum):
    """Lexical or structural category of a token."""

    NOUN = "noun"
    VERB = "verb"
    ADJECTIVE = "adjective"
    ADVERB = "adverb"
    PRONOUN = "pronoun"
    DETERMINER = "determiner"
    PARTICLE = "particle"
    PREPOSITION = "preposition"
    NUMBER = "number"
    CONJUNCTION = "conjunction"
    INTERJECTION = "interjection"
    WORD = "word"
    WHITESPACE = "whitespace"
    PUNCTUATION = "punctuation"
    EMAIL = "email"
    URL = "url"
    DATE_TIME = "dateTime"
    EMOJI = "emoji"
    UNKNOWN = "unknown"


# Classes a lexical tagger may assign to a word.
LEXICAL_CLASSES = frozenset(
    {
        TokenType.NOUN,
        TokenType.VERB,
        TokenType.ADJECTIVE,
        TokenType.ADVERB,
        TokenType.PRONOUN,
        TokenType.DETERMINER,
        TokenType.PARTICLE,
        TokenType.PREPOSITION,
        TokenType.NUMBER,
        TokenType.CONJUNCTION,
        TokenType.INTERJECTION,
        TokenType.WORD,
    }
)


class Tense(str, Enum):
    PRESENT = "present"
    IMPERFECT = "imperfect"
    FUTURE = "future"
    PAST_SIMPLE = "pastSimple"
    PAST_PARTICIPLE = "pastParticiple"
    PRESENT_PARTICIPLE = "presentParticiple"
    CONDITIONAL = "conditional"
    PLUPERFECT = "pluperfect"
    FUTURE_PERFECT = "futurePerfect"


class Person(str, Enum):
    FIRST = "first"
    SECOND = "second"
    THIRD = "third"


class GrammaticalNumber(str, Enum):
    SINGULAR = "singular"
    PLURAL = "plural"


class Mood(str, Enum):
    INDICATIVE = "indicative"
    SUBJUNCTIVE = "subjunctive"
    CONDITIONAL = "conditional"
    IMPERATIVE = "imperative"


class Gender(str, Enum):
    MASCULINE = "masculine"
    FEMININE = "feminine"
    NEUTER = "neuter"


class GrammaticalCase(str, Enum):
    NOMINATIVE = "nominative"
    ACCUSATIVE = "accusative"
    GENITIVE = "genitive"
    DATIVE = "dative"


class Degree(str, Enum):
    POSITIVE = "positive"
    COMPARATIVE = "comparative"
    SUPERLATIVE = "superlative"


class PatternCategory(str, Enum):
    GRAMMAR = "grammar"
    COLLOCATION = "collocation"
    IDIOM = "idiom"
    COMMON_PHRASE = "commonPhrase"


class ComponentType(str, Enum):
    SUBJECT = "subject"
    PREDICATE = "predicate"
    OBJECT = "object"
    COMPLEMENT = "complement"
    MODIFIER = "modifier"


# Component types the sentence analyzer actually produces today.
PRODUCED_COMPONENT_TYPES = frozenset({ComponentType.SUBJECT, ComponentType.PREDICATE})


class ComplexityLevel(str, Enum):
    SIMPLE = "simple"
    COMPOUND = "compound"
    COMPLEX = "complex"


class CEFRLevel(str, Enum):
    BEGINNER = "A1"
    ELEMENTARY = "A2"
    INTERMEDIATE = "B1"
    UPPER_INTERMEDIATE = "B2"
    ADVANCED = "C1"
    MASTERY = "C2"


class FactorType(str, Enum):
    VOCABULARY = "vocabulary"
    GRAMMAR = "grammar"
    SENTENCE_STRUCTURE = "sentenceStructure"
    CONTEXTUAL_COMPLEXITY = "contextualComplexity"


class SupportedLanguage(str, Enum):
    """Languages the engine knows how to segment and rank."""

    ENGLISH = "en"
    FRENCH = "fr"
    CHINESE = "zh"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @classmethod
    def from_code(cls, code: str | None) -> "SupportedLanguage | None":
        """Map a BCP-47-ish code (``fr-FR``, ``zh-Hant``) onto a supported language."""
        normalized = normalize_language_code(code)
        for member in cls:
            if member.value == normalized:
                return member
        return None


_DISPLAY_NAMES = {
    SupportedLanguage.ENGLISH: "English",
    SupportedLanguage.FRENCH: "Français",
    SupportedLanguage.CHINESE: "中文",
}


def normalize_language_code(code: str | None) -> str:
    """Lower-case a language code and strip any region/script subtag."""
    if not code:
        return ""
    return code.strip().replace("_", "-").split("-", 1)[0].lower()


@dataclass(frozen=True, slots=True)
class Document:
    """Represents an input document."""

    doc_id: str
    text: str


@dataclass(frozen=True, slots=True)
class Token:
    """A text unit with its inclusive-exclusive character offsets."""

    text: str
    type: TokenType
    start: int
    end: int
    lemma: str | None = None
    metadata: Dict[str, str] = field(default_factory=dict, compare=False)

    def __post_init__(self) -> None:
        if self.end <= self.start:
            raise ValueError(f"Token range must be non-empty: {self.start}..{self.end}")

    @property
    def span(self) -> Tuple[int, int]:
        return (self.start, self.end)

    @property
    def is_word(self) -> bool:
        return self.type not in _NON_WORD_TYPES


_NON_WORD_TYPES = frozenset(
    {
        TokenType.WHITESPACE,
        TokenType.PUNCTUATION,
        TokenType.EMAIL,
        TokenType.URL,
        TokenType.DATE_TIME,
        TokenType.EMOJI,
        TokenType.NUMBER,
    }
)


@dataclass(frozen=True, slots=True)
class VerbFeatures:
    tense: Tense
    person: Person
    number: GrammaticalNumber
    mood: Mood


@dataclass(frozen=True, slots=True)
class NominalFeatures:
    gender: Gender
    number: GrammaticalNumber
    case: GrammaticalCase


@dataclass(frozen=True, slots=True)
class AdjectiveFeatures:
    gender: Gender
    number: GrammaticalNumber
    degree: Degree


@dataclass(frozen=True, slots=True)
class VerbForm:
    """Morphological reading of a verb token.

    ``alternatives`` lists the readings of later rules sharing the winning
    pattern; a non-empty tuple means the surface form is ambiguous without
    further context.
    """

    text: str
    lemma: str | None
    tense: Tense
    person: Person
    number: GrammaticalNumber
    mood: Mood
    language: SupportedLanguage
    is_regular: bool
    alternatives: Tuple[VerbFeatures, ...] = ()

    @property
    def is_ambiguous(self) -> bool:
        return bool(self.alternatives)


@dataclass(frozen=True, slots=True)
class NominalForm:
    text: str
    lemma: str | None
    gender: Gender
    number: GrammaticalNumber
    case: GrammaticalCase
    language: SupportedLanguage
    alternatives: Tuple[NominalFeatures, ...] = ()

    @property
    def is_ambiguous(self) -> bool:
        return bool(self.alternatives)


@dataclass(frozen=True, slots=True)
class AdjectiveForm:
    text: str
    lemma: str | None
    gender: Gender
    number: GrammaticalNumber
    degree: Degree
    language: SupportedLanguage
    alternatives: Tuple[AdjectiveFeatures, ...] = ()

    @property
    def is_ambiguous(self) -> bool:
        return bool(self.alternatives)


@dataclass(frozen=True, slots=True)
class LanguagePattern:
    """A recurring construction found in a text."""

    pattern: str
    category: PatternCategory
    frequency: int
    examples: Tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class SentenceComponent:
    text: str
    type: ComponentType
    tokens: Tuple[Token, ...] = ()


@dataclass(frozen=True, slots=True)
class SentenceStructure:
    text: str
    components: Tuple[SentenceComponent, ...]
    complexity: ComplexityLevel
    start: int = 0
    end: int = 0


@dataclass(frozen=True, slots=True)
class DifficultyFactor:
    """One sub-score of a difficulty estimate; ``score`` is clamped to [0, 1]."""

    type: FactorType
    score: float
    description: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "score", clamp_unit(self.score))


@dataclass(frozen=True, slots=True)
class LearningDifficulty:
    level: CEFRLevel
    factors: Tuple[DifficultyFactor, ...]

    @property
    def average_score(self) -> float:
        if not self.factors:
            return 0.0
        return sum(f.score for f in self.factors) / len(self.factors)


@dataclass(frozen=True, slots=True)
class LanguageConfidence:
    language: SupportedLanguage
    confidence: float
    alternatives: Tuple[Tuple[SupportedLanguage, float], ...] = ()


@dataclass(frozen=True, slots=True)
class MorphologyResult:
    verb_forms: Tuple[VerbForm, ...] = ()
    nominal_forms: Tuple[NominalForm, ...] = ()
    adjective_forms: Tuple[AdjectiveForm, ...] = ()


def clamp_unit(value: float) -> float:
    """Clamp a float into [0, 1]; NaN collapses to 0."""
    if value != value:
        return 0.0
    return max(0.0, min(1.0, float(value)))
