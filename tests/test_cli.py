"""Tests for the bayes-bow command-line interface."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from bayes_bow.cli import main
from bayes_bow.corpus import Corpus


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def model(runner: CliRunner, tmp_path: Path) -> Path:
    path = tmp_path / "model.json"
    result = runner.invoke(main, ["new", str(path), "-l", "spam", "-l", "ham", "--note", "cli"])
    assert result.exit_code == 0, result.output
    return path


@pytest.fixture
def trained_model(runner: CliRunner, model: Path, text_files) -> Path:
    for label in ("spam", "ham"):
        files = [str(p) for p in text_files[label]]
        result = runner.invoke(main, ["train", str(model), "-l", label, *files])
        assert result.exit_code == 0, result.output
    return model


class TestNew:

    def test_creates_empty_model(self, model: Path):
        corpus = Corpus.load(model)
        assert corpus.label_names == ("spam", "ham")
        assert corpus.note == "cli"
        assert corpus.doc_count == 0

    def test_refuses_to_overwrite(self, runner: CliRunner, model: Path):
        result = runner.invoke(main, ["new", str(model), "-l", "x"])
        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_force_overwrites(self, runner: CliRunner, model: Path):
        result = runner.invoke(main, ["new", str(model), "-l", "x", "--force"])
        assert result.exit_code == 0
        assert Corpus.load(model).label_names == ("x",)

    def test_duplicate_labels(self, runner: CliRunner, tmp_path: Path):
        result = runner.invoke(main, ["new", str(tmp_path / "m.json"), "-l", "x", "-l", "x"])
        assert result.exit_code == 1
        assert "Duplicate" in result.output


class TestTrain:

    def test_counts_documents(self, trained_model: Path):
        corpus = Corpus.load(trained_model)
        assert corpus.doc_count == 8
        assert corpus.label_doc_count == [4, 4]

    def test_unknown_label(self, runner: CliRunner, model: Path, text_files):
        result = runner.invoke(main, ["train", str(model), "-l", "eggs", str(text_files["spam"][0])])
        assert result.exit_code == 1
        assert "Unknown label" in result.output
        assert Corpus.load(model).doc_count == 0

    def test_default_stop_words(self, runner: CliRunner, model: Path, text_files):
        result = runner.invoke(
            main,
            ["--default-stop-words", "train", str(model), "-l", "ham", str(text_files["ham"][3])],
        )
        assert result.exit_code == 0, result.output
        assert "the" not in Corpus.load(model).vocabulary

    def test_stop_word_file(self, runner: CliRunner, model: Path, text_files, tmp_path: Path):
        stop = tmp_path / "stop.txt"
        stop.write_text("review\nreport\n", encoding="utf-8")
        result = runner.invoke(
            main,
            ["--stop-words", str(stop), "train", str(model), "-l", "ham", str(text_files["ham"][3])],
        )
        assert result.exit_code == 0, result.output
        vocabulary = Corpus.load(model).vocabulary
        assert "review" not in vocabulary
        assert "tomorrow" in vocabulary

    def test_corrupt_model(self, runner: CliRunner, tmp_path: Path, text_files):
        path = tmp_path / "broken.json"
        path.write_text("{", encoding="utf-8")
        result = runner.invoke(main, ["train", str(path), "-l", "spam", str(text_files["spam"][0])])
        assert result.exit_code == 1
        assert "Error" in result.output


class TestPredict:

    def test_json_output(self, runner: CliRunner, trained_model: Path, tmp_path: Path):
        doc = tmp_path / "doc.txt"
        doc.write_text("Win cheap cash now!", encoding="utf-8")
        result = runner.invoke(main, ["predict", str(trained_model), str(doc), "-o", "json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["label"] == "spam"
        assert set(data["probabilities"]) == {"spam", "ham"}

    def test_json_output_is_valid_when_scores_underflow(self, runner: CliRunner,
                                                        trained_model: Path, tmp_path: Path):
        doc = tmp_path / "long.txt"
        doc.write_text(" ".join(f"w{i}" for i in range(400)), encoding="utf-8")
        result = runner.invoke(main, ["predict", str(trained_model), str(doc), "-o", "json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["label_id"] == 0
        assert data["confidence"] is None
        assert set(data["probabilities"].values()) == {None}
        assert "underflowed" in result.stderr

    def test_rich_output(self, runner: CliRunner, trained_model: Path, tmp_path: Path):
        doc = tmp_path / "doc.txt"
        doc.write_text("Project report for review", encoding="utf-8")
        result = runner.invoke(main, ["predict", str(trained_model), str(doc)])
        assert result.exit_code == 0, result.output
        assert "Predicted label" in result.output
        assert "ham" in result.output

    def test_vocabulary_saved_only_on_request(self, runner: CliRunner, trained_model: Path,
                                              tmp_path: Path):
        doc = tmp_path / "doc.txt"
        doc.write_text("zeppelin", encoding="utf-8")
        words_before = Corpus.load(trained_model).word_count

        runner.invoke(main, ["predict", str(trained_model), str(doc)])
        assert Corpus.load(trained_model).word_count == words_before

        result = runner.invoke(main, ["predict", str(trained_model), str(doc), "--save-vocab"])
        assert result.exit_code == 0, result.output
        corpus = Corpus.load(trained_model)
        assert corpus.word_count == words_before + 1
        assert corpus.doc_count == 8


class TestInfo:

    def test_shows_labels_and_top_words(self, runner: CliRunner, trained_model: Path):
        result = runner.invoke(main, ["info", str(trained_model), "--top", "1"])
        assert result.exit_code == 0, result.output
        assert "spam" in result.output
        assert "ham" in result.output
        assert "now (3)" in result.output
        assert "Documents: 8" in result.output


class TestMarkupInNames:

    def test_bracketed_label_names_render_literally(self, runner: CliRunner, tmp_path: Path):
        path = tmp_path / "[b]model.json"
        doc = tmp_path / "[/]doc.txt"
        doc.write_text("alpha beta [red] gamma", encoding="utf-8")

        result = runner.invoke(main, ["new", str(path), "-l", "[/]", "-l", "b",
                                      "--note", "[bold]note"])
        assert result.exit_code == 0, result.output
        assert "[/]" in result.output

        result = runner.invoke(main, ["train", str(path), "-l", "[/]", str(doc)])
        assert result.exit_code == 0, result.output

        result = runner.invoke(main, ["predict", str(path), str(doc)])
        assert result.exit_code == 0, result.output
        assert "Predicted label: [/]" in result.output

        result = runner.invoke(main, ["info", str(path)])
        assert result.exit_code == 0, result.output
        assert "[/]" in result.output
        assert "[bold]note" in result.output
