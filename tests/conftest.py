"""Shared test fixtures for bayes-bow tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from bayes_bow.corpus import Corpus


SPAM_DOCS = [
    ["buy", "cheap", "pills", "now"],
    ["limited", "offer", "buy", "now", "click"],
    ["win", "cash", "prize", "click", "now"],
    ["cheap", "offer", "win", "cash"],
]

HAM_DOCS = [
    ["meeting", "moved", "to", "friday", "afternoon"],
    ["hello", "friend", "lunch", "on", "friday"],
    ["project", "report", "attached", "for", "review"],
    ["can", "we", "review", "the", "report", "tomorrow"],
]


@pytest.fixture
def spam_ham() -> Corpus:
    """The two-document corpus from the classifier's reference example."""
    corpus = Corpus(["spam", "ham"])
    corpus.add_document(["buy", "now", "buy"], [0])
    corpus.add_document(["hello", "friend"], [1])
    return corpus


@pytest.fixture
def trained() -> Corpus:
    """A small spam/ham corpus with several documents per label."""
    corpus = Corpus(["spam", "ham"], note="test corpus")
    for words in SPAM_DOCS:
        corpus.add_document(words, [0])
    for words in HAM_DOCS:
        corpus.add_document(words, [1])
    return corpus


@pytest.fixture
def text_files(tmp_path: Path) -> dict[str, list[Path]]:
    """Spam and ham documents written out as text files."""
    files: dict[str, list[Path]] = {"spam": [], "ham": []}
    for name, docs in (("spam", SPAM_DOCS), ("ham", HAM_DOCS)):
        for i, words in enumerate(docs):
            path = tmp_path / f"{name}_{i}.txt"
            path.write_text(" ".join(words).capitalize() + ".", encoding="utf-8")
            files[name].append(path)
    return files
