from cefr_text_engine.models import (
    ComplexityLevel,
    ComponentType,
    PRODUCED_COMPONENT_TYPES,
    Token,
    TokenType,
)
from cefr_text_engine.sentences import (
    SentenceAnalyzer,
    classify_complexity,
    iter_sentence_spans,
    iter_sentence_structures,
    split_into_sentences,
)
from cefr_text_engine.special_tokens import SpecialTokenClassifier
from cefr_text_engine.tokenization import tokenize


def _tag(tokens, verbs):
    return [
        Token(t.text, TokenType.VERB, t.start, t.end)
        if t.text in verbs
        else t
        for t in tokens
    ]


def test_split_trims_and_drops_empty_segments():
    text = "  Hello there.  How are you?! Fine… 你好。 "
    assert split_into_sentences(text) == ["Hello there", "How are you", "Fine", "你好"]


def test_split_of_empty_or_punctuation_only_text():
    assert split_into_sentences("") == []
    assert split_into_sentences(" ... !? ") == []


def test_spans_point_back_into_the_source():
    text = "One. Two!"
    assert [text[s:e] for s, e in iter_sentence_spans(text)] == ["One", "Two"]


def test_protected_spans_do_not_split_sentences():
    text = "See https://x.com today. Pi is 3.14 roughly."
    spans = SpecialTokenClassifier().find_spans(text)
    assert split_into_sentences(text, spans) == [
        "See https://x.com today",
        "Pi is 3.14 roughly",
    ]


def test_subject_then_predicate_at_first_verb():
    text = "The cat sat on the mat."
    tokens = _tag(list(tokenize(text, "en")), {"sat"})
    (structure,) = list(SentenceAnalyzer().iter_structures(text, tokens))

    assert structure.text == "The cat sat on the mat"
    assert [(c.type, c.text) for c in structure.components] == [
        (ComponentType.SUBJECT, "The cat"),
        (ComponentType.PREDICATE, "sat on the mat"),
    ]
    assert structure.complexity is ComplexityLevel.SIMPLE
    assert all(t.type is not TokenType.WHITESPACE for t in structure.components[0].tokens)


def test_sentence_starting_with_a_verb_has_no_empty_subject():
    text = "Run fast!"
    tokens = _tag(list(tokenize(text, "en")), {"Run"})
    (structure,) = list(iter_sentence_structures(text, tokens))
    assert [c.type for c in structure.components] == [ComponentType.PREDICATE]


def test_untagged_sentence_is_a_single_subject():
    structures = SentenceAnalyzer().analyze_text("No verbs tagged here. Nor here.")
    assert len(structures) == 2
    assert all(len(s.components) == 1 for s in structures)
    assert structures[0].components[0].type is ComponentType.SUBJECT


def test_only_subject_and_predicate_are_produced():
    text = "We walk. They talk and sing loudly."
    tokens = _tag(list(tokenize(text, "en")), {"walk", "talk", "sing"})
    produced = {
        component.type
        for structure in iter_sentence_structures(text, tokens)
        for component in structure.components
    }
    assert produced <= PRODUCED_COMPONENT_TYPES


def test_complexity_buckets_by_component_count():
    assert classify_complexity(0) is ComplexityLevel.SIMPLE
    assert classify_complexity(2) is ComplexityLevel.SIMPLE
    assert classify_complexity(3) is ComplexityLevel.COMPOUND
    assert classify_complexity(4) is ComplexityLevel.COMPOUND
    assert classify_complexity(5) is ComplexityLevel.COMPLEX


def test_structures_stream_one_sentence_at_a_time():
    text = "A. B. C."
    stream = iter_sentence_structures(text, list(tokenize(text)))
    first = next(stream)
    assert first.text == "A"
    assert (first.start, first.end) == (0, 1)


def test_repeated_punctuation_still_ends_sentences():
    text = "Wow!! That is great. Really?! Yes."
    spans = SpecialTokenClassifier().find_spans(text)
    assert split_into_sentences(text, spans) == ["Wow", "That is great", "Really", "Yes"]


def test_sentence_final_url_keeps_its_full_stop_outside():
    text = "Visit https://x.com. Then leave."
    spans = SpecialTokenClassifier().find_spans(text)
    assert split_into_sentences(text, spans) == ["Visit https://x.com", "Then leave"]


def test_components_hold_no_punctuation():
    text = "The cat, sadly, sat."
    tokens = _tag(list(tokenize(text, "en")), {"sat"})
    (structure,) = list(iter_sentence_structures(text, tokens))
    subject = structure.components[0]
    assert [t.text for t in subject.tokens] == ["The", "cat", "sadly"]
    assert all(t.type is not TokenType.PUNCTUATION for c in structure.components for t in c.tokens)
