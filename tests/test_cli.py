import json
from pathlib import Path

from typer.testing import CliRunner

from cefr_text_engine.cli import app
from tests.utils import write_text_corpus

runner = CliRunner()


def test_cli_analyze_outputs_summary(tmp_path: Path):
    """CLI analyze command returns a JSON summary for every .txt document."""
    corpus_dir = _create_sample_corpus(tmp_path)
    result = runner.invoke(app, ["analyze", "--input-path", str(corpus_dir)])
    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    docs = {doc["doc_id"]: doc for doc in payload["documents"]}
    assert set(docs) == {"chapter1.txt", "fr/lecon.txt"}
    assert docs["chapter1.txt"]["language"] == "en"
    assert docs["fr/lecon.txt"]["language"] == "fr"
    assert len(docs["chapter1.txt"]["factors"]) == 4
    assert docs["chapter1.txt"]["level"] in {"A1", "A2", "B1", "B2", "C1", "C2"}


def test_cli_analyze_single_file_with_details(tmp_path: Path):
    """--details emits the full analysis, including sentences and morphology."""
    path = tmp_path / "note.txt"
    path.write_text("Bonjour ! Je parle français.", encoding="utf-8")
    result = runner.invoke(app, ["analyze", "--input-path", str(path), "--details"])
    assert result.exit_code == 0, result.output
    (doc,) = json.loads(result.stdout)["documents"]
    assert doc["doc_id"] == "note.txt"
    assert len(doc["sentences"]) == 2
    assert doc["morphology"]["verb_forms"][0]["text"] == "parle"


def test_cli_analyze_forced_language(tmp_path: Path):
    corpus_dir = _create_sample_corpus(tmp_path)
    result = runner.invoke(
        app, ["analyze", "--input-path", str(corpus_dir), "--language", "fr"]
    )
    assert result.exit_code == 0, result.output
    languages = {doc["language"] for doc in json.loads(result.stdout)["documents"]}
    assert languages == {"fr"}


def test_cli_analyze_rejects_unknown_language(tmp_path: Path):
    corpus_dir = _create_sample_corpus(tmp_path)
    result = runner.invoke(
        app, ["analyze", "--input-path", str(corpus_dir), "--language", "xx"]
    )
    assert result.exit_code != 0


def test_cli_analyze_with_config(tmp_path: Path):
    """A config file can switch off tagging."""
    corpus_dir = _create_sample_corpus(tmp_path)
    config_path = tmp_path / "config.yaml"
    config_path.write_text("tagger_name: none\n", encoding="utf-8")
    result = runner.invoke(
        app,
        ["analyze", "--input-path", str(corpus_dir), "--config", str(config_path), "--details"],
    )
    assert result.exit_code == 0, result.output
    docs = json.loads(result.stdout)["documents"]
    assert all(doc["tagged"] is False for doc in docs)


def test_cli_bad_config_is_a_usage_error(tmp_path: Path):
    corpus_dir = _create_sample_corpus(tmp_path)
    config_path = tmp_path / "config.yaml"
    config_path.write_text("tagger_name: oracle\n", encoding="utf-8")
    result = runner.invoke(
        app, ["analyze", "--input-path", str(corpus_dir), "--config", str(config_path)]
    )
    assert result.exit_code != 0


def test_cli_tokens():
    """tokens command prints tagged tokens with offsets."""
    result = runner.invoke(app, ["tokens", "The cat sat.", "--language", "en"])
    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["language"] == "en"
    cat = next(token for token in payload["tokens"] if token["text"] == "cat")
    assert cat == {"text": "cat", "type": "noun", "start": 4, "end": 7, "lemma": "cat"}


def test_cli_print_config():
    """print-config command dumps the current configuration values."""
    result = runner.invoke(app, ["print-config"])
    assert result.exit_code == 0
    assert "tagger_name" in result.stdout
    assert "min_confidence: 0.3" in result.stdout


def _create_sample_corpus(tmp_path: Path) -> Path:
    return write_text_corpus(
        tmp_path / "corpus",
        {
            "chapter1.txt": "The storm clouds rolled over the bay. Sailors watched the winds.",
            "fr/lecon.txt": "Le chat est sur la table. Je suis très content.",
            "notes.md": "ignored",
        },
    )
