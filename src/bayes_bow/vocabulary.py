"""Bidirectional word <-> word ID mapping.

Word IDs are dense integers handed out in first-seen order. The forward
table (ID -> word) is what gets persisted; the reverse index (word -> ID)
is derived from it and rebuilt after loading.
"""

from __future__ import annotations

import logging
from typing import Iterable, Iterator, Optional

from .exceptions import CorpusFormatError

logger = logging.getLogger(__name__)


class Vocabulary:
    """Monotonically growing vocabulary.

    Example::

        vocab = Vocabulary()
        vocab.resolve("buy")   # 0
        vocab.resolve("now")   # 1
        vocab.resolve("buy")   # 0
        vocab.word(1)          # "now"
    """

    def __init__(self) -> None:
        self._words: list[str] = []
        self._index: dict[str, int] = {}

    @classmethod
    def from_words(cls, words: Iterable[str]) -> "Vocabulary":
        """Build a vocabulary from a persisted forward table.

        Args:
            words: Word strings in word ID order.

        Returns:
            Vocabulary with the reverse index rebuilt.

        Raises:
            CorpusFormatError: If the table holds a non-string or a
                duplicate word.
        """
        vocab = cls()
        vocab._words = list(words)
        for word_id, word in enumerate(vocab._words):
            if not isinstance(word, str):
                raise CorpusFormatError(f"word {word_id} is not a string: {word!r}")
        vocab.rebuild_index()
        if len(vocab._index) != len(vocab._words):
            raise CorpusFormatError("word table contains duplicate words")
        return vocab

    def __len__(self) -> int:
        return len(self._words)

    def __contains__(self, word: object) -> bool:
        return word in self._index

    def __iter__(self) -> Iterator[str]:
        return iter(self._words)

    @property
    def words(self) -> list[str]:
        """Copy of the forward table (index = word ID)."""
        return list(self._words)

    def resolve(self, word: str) -> int:
        """Return the ID of ``word``, assigning the next free ID if it is new."""
        word_id = self._index.get(word)
        if word_id is None:
            word_id = len(self._words)
            self._words.append(word)
            self._index[word] = word_id
            logger.debug("New word %r -> %d", word, word_id)
        return word_id

    def get(self, word: str) -> Optional[int]:
        """Return the ID of a known word, or None. Never grows the vocabulary."""
        return self._index.get(word)

    def word(self, word_id: int) -> str:
        """Return the word string for ``word_id``.

        Raises:
            IndexError: If no word has that ID.
        """
        if word_id < 0:
            raise IndexError(f"word ID out of range: {word_id}")
        return self._words[word_id]

    def rebuild_index(self) -> None:
        """Recompute the reverse index from the forward table."""
        self._index = {}
        for word_id, word in enumerate(self._words):
            self._index[word] = word_id

    def sync_table(self) -> None:
        """Recompute the forward table from the reverse index."""
        words = [""] * len(self._index)
        for word, word_id in self._index.items():
            words[word_id] = word
        self._words = words
