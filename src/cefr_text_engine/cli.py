from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, TypedDict

import typer
import yaml

from .config import AnalyzerConfig, load_config
from .models import Document
from .pipeline import TextAnalysis, TextAnalyzer
from .rules import RuleTableError
from .serialization import analysis_payload, token_payload

app = typer.Typer(help="CEFR text analysis engine CLI.", no_args_is_help=True)

# File types the CLI knows how to expand into Document instances.
SUPPORTED_INPUT_EXTENSIONS = {".txt"}


class FactorPayload(TypedDict):
    type: str
    score: float
    description: str


class DocumentSummary(TypedDict):
    doc_id: str
    language: str
    confidence: float
    level: str
    factors: List[FactorPayload]
    token_counts: Dict[str, int]
    patterns: List[Dict[str, Any]]


@app.command()
def analyze(
    input_path: Path = typer.Option(
        ..., exists=True, readable=True, dir_okay=True, file_okay=True
    ),
    config: Path | None = typer.Option(None, "--config", "-c"),
    language: str | None = typer.Option(
        None, "--language", "-l", help="Skip detection and analyze as this language."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log progress to stderr."),
    details: bool = typer.Option(
        False, "--details", help="Include the full analysis of every document."
    ),
) -> None:
    """Analyze the input text(s) and emit a JSON summary."""
    _configure_logging(verbose)
    analyzer = _build_analyzer(config)
    documents = _load_documents(input_path)
    try:
        results = analyzer.analyze_corpus(documents, language)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--language") from exc
    if details:
        payload: Any = [analysis_payload(results[doc_id]) for doc_id in sorted(results)]
    else:
        payload = _build_summary(results)
    typer.echo(json.dumps({"documents": payload}, indent=2, ensure_ascii=False))


@app.command()
def tokens(
    text: str = typer.Argument(..., help="Text to tokenize."),
    config: Path | None = typer.Option(None, "--config", "-c"),
    language: str | None = typer.Option(None, "--language", "-l"),
) -> None:
    """Print the tagged tokens of TEXT as JSON."""
    analyzer = _build_analyzer(config)
    try:
        detected = analyzer.detect_language(text, language)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--language") from exc
    code = detected.language.value
    tagged = analyzer.tag_tokens(text, list(analyzer.tokenize(text, code)), code)
    typer.echo(
        json.dumps(
            {"language": code, "tokens": [token_payload(token) for token in tagged]},
            indent=2,
            ensure_ascii=False,
        )
    )


@app.command("print-config")
def print_config() -> None:
    """Print the default configuration as YAML."""
    cfg = AnalyzerConfig()
    typer.echo(yaml.safe_dump(cfg.to_dict(), sort_keys=False, allow_unicode=True))


def main() -> None:
    app()


def _configure_logging(verbose: bool) -> None:
    if verbose:
        logging.basicConfig(
            level=logging.INFO, format="%(levelname)s %(name)s: %(message)s"
        )


def _build_analyzer(config_path: Path | None) -> TextAnalyzer:
    """Load configuration and build the engine, surfacing config errors as usage errors."""
    try:
        cfg = load_config(config_path)
        return TextAnalyzer.from_config(cfg)
    except (RuleTableError, ValueError, TypeError) as exc:
        raise typer.BadParameter(str(exc), param_hint="--config") from exc


def _load_documents(input_path: Path) -> List[Document]:
    """Expand the input path into documents keyed by their relative path."""
    if input_path.is_file():
        return [Document(doc_id=input_path.name, text=_read_text(input_path))]
    files = sorted(
        p
        for p in input_path.rglob("*")
        if p.is_file() and p.suffix.lower() in SUPPORTED_INPUT_EXTENSIONS
    )
    return [
        Document(doc_id=str(file.relative_to(input_path)), text=_read_text(file))
        for file in files
    ]


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise typer.BadParameter(f"{path} is not UTF-8 text: {exc}") from exc


def _build_summary(results: Dict[str, TextAnalysis]) -> List[DocumentSummary]:
    """Create a JSON-serializable summary for each analyzed document."""
    summary: List[DocumentSummary] = []
    for doc_id, analysis in sorted(results.items()):
        summary.append(
            {
                "doc_id": doc_id,
                "language": analysis.language.language.value,
                "confidence": analysis.language.confidence,
                "level": analysis.difficulty.level.value,
                "factors": [
                    {
                        "type": factor.type.value,
                        "score": factor.score,
                        "description": factor.description,
                    }
                    for factor in analysis.difficulty.factors
                ],
                "token_counts": analysis.token_counts,
                "patterns": [
                    {
                        "pattern": pattern.pattern,
                        "category": pattern.category.value,
                        "frequency": pattern.frequency,
                        "examples": list(pattern.examples),
                    }
                    for pattern in analysis.patterns
                ],
            }
        )
    return summary


if __name__ == "__main__":  # pragma: no cover
    main()
