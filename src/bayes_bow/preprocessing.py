"""Token filtering and tokenization.

The corpus works on pre-tokenized words. This module provides the
stop-word policy each corpus holds, plus a small regex tokenizer used by
the command-line interface to turn raw text into words.

Stop words come in two forms:

- exact words (``"the"``, ``"of"``)
- word classes: prefixes matched with ``str.startswith``. Morphological
  analyzers often emit tokens such as ``"助詞:は"``; a class ``"助詞:"``
  drops every particle at once.

A custom predicate can replace both.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional

_WORD_RE = re.compile(r"\w+(?:['-]\w+)*")

DEFAULT_STOP_WORDS: frozenset[str] = frozenset({
    "a", "an", "the", "and", "or", "but", "in", "on", "at", "to", "for",
    "of", "with", "by", "from", "as", "is", "was", "are", "were", "be",
    "been", "being", "have", "has", "had", "do", "does", "did", "will",
    "would", "could", "should", "may", "might", "shall", "can", "must",
    "not", "no", "nor", "so", "if", "then", "than", "that", "this",
    "these", "those", "it", "its", "he", "she", "they", "them", "their",
    "his", "her", "our", "your", "we", "you", "who", "whom", "which",
    "what", "where", "when", "how", "all", "each", "every", "both",
    "i", "me", "my", "am", "just", "about", "into", "up", "out", "over",
})


def tokenize(text: str, lowercase: bool = True) -> list[str]:
    """Extract word tokens from raw text.

    Args:
        text: Raw document text.
        lowercase: Fold tokens to lowercase.

    Returns:
        Tokens in document order.
    """
    tokens = [m.group() for m in _WORD_RE.finditer(text)]
    if lowercase:
        tokens = [t.lower() for t in tokens]
    return tokens


@dataclass(frozen=True)
class StopWordConfig:
    """Stop-word policy applied to every token a corpus sees.

    Args:
        use_stop_words: Master switch. When False only empty tokens are
            dropped.
        stop_words: Exact words to drop.
        stop_word_classes: Prefixes; any token starting with one is dropped.
        predicate: Optional custom test. When given it replaces the word
            and class checks.
    """

    use_stop_words: bool = False
    stop_words: frozenset[str] = field(default_factory=frozenset)
    stop_word_classes: tuple[str, ...] = ()
    predicate: Optional[Callable[[str], bool]] = field(default=None, compare=False)

    @classmethod
    def default(cls) -> "StopWordConfig":
        """Filtering enabled with the built-in English stop-word list."""
        return cls(use_stop_words=True, stop_words=DEFAULT_STOP_WORDS)

    @classmethod
    def from_file(cls, path: str | Path, use_stop_words: bool = True) -> "StopWordConfig":
        """Load stop words from a text file, one per line.

        Blank lines and lines starting with ``#`` are ignored. A line ending
        in ``*`` declares a word class (prefix) instead of an exact word.

        Raises:
            OSError: If the file cannot be read.
        """
        words: set[str] = set()
        classes: list[str] = []
        text = Path(path).read_text(encoding="utf-8")
        for line in text.splitlines():
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if line.endswith("*"):
                prefix = line[:-1]
                if prefix:
                    classes.append(prefix)
            else:
                words.add(line)
        return cls(
            use_stop_words=use_stop_words,
            stop_words=frozenset(words),
            stop_word_classes=tuple(classes),
        )

    def is_stop_word(self, token: str) -> bool:
        """Whether ``token`` matches the stop-word list, a class or the predicate."""
        if self.predicate is not None:
            return bool(self.predicate(token))
        if token in self.stop_words:
            return True
        return any(token.startswith(prefix) for prefix in self.stop_word_classes)

    def accepts(self, token: str) -> bool:
        """Whether ``token`` should be counted."""
        if not token:
            return False
        return not (self.use_stop_words and self.is_stop_word(token))
