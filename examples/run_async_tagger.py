"""
Tiny helper script showing how to plug an asynchronous tagger into the engine.
The tagger here only sleeps before a lexicon lookup; swap in a real service call.
"""

from __future__ import annotations

import asyncio

from cefr_text_engine import TextAnalyzer, load_rule_engine
from cefr_text_engine.language import MarkerWordHypotheses
from cefr_text_engine.models import Document
from cefr_text_engine.tagging import AsyncLexicalTagger, TagResult, build_lexicon_tagger


class SlowLexiconTagger(AsyncLexicalTagger):
    def __init__(self) -> None:
        self._lexicon = build_lexicon_tagger()

    async def tag(self, text: str, span: tuple[int, int], language: str | None = None) -> TagResult:
        await asyncio.sleep(0.001)
        return self._lexicon.tag(text, span, language=language)


async def main() -> None:
    analyzer = TextAnalyzer(
        load_rule_engine(),
        tagger=SlowLexiconTagger(),
        hypotheses=MarkerWordHypotheses(),
        max_concurrency=2,
    )
    documents = [
        Document("en", "The cat sat on the mat. It was warm and happy."),
        Document("fr", "Je parle avec les enfants. Nous finissons le travail."),
    ]
    results = await analyzer.analyze_corpus_async(documents)
    for doc_id, analysis in results.items():
        print("-" * 40)
        print(doc_id, analysis.language.language.value, analysis.difficulty.level.value)
        for verb in analysis.morphology.verb_forms:
            print(f"  {verb.text}: {verb.tense.value} {verb.person.value} {verb.number.value}")


if __name__ == "__main__":
    asyncio.run(main())
