"""Incremental multinomial Naive Bayes over a bag-of-words corpus.

A :class:`Corpus` keeps running counts for a fixed label set and a
vocabulary that grows as documents arrive:

- Vocabulary index: word string <-> dense word ID
- Statistics: per-label word frequencies and totals, per-word
  document-label incidences, per-label and overall document counts
- Estimation: Laplace-smoothed label priors and word likelihoods
- Prediction: log-space posterior, renormalized, plus the arg-max label

Both training and prediction resolve tokens through the same
resolve-or-create step, so predicting a document with unseen words grows
the vocabulary (and shifts every word likelihood) without touching any
label statistic.

The model persists as a pretty-printed JSON record. The reverse word index
is not stored; it is rebuilt from the word table on load.
"""

from __future__ import annotations

import json
import logging
import math
import threading
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator, Mapping, Optional, Sequence, Union

from .exceptions import CorpusFormatError, InternalConsistencyError, InvalidLabelError
from .preprocessing import StopWordConfig
from .vocabulary import Vocabulary

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Prediction Result
# ---------------------------------------------------------------------------

@dataclass
class Prediction:
    """Posterior distribution for one document and its best label.

    Unpacks as ``(label_id, probabilities)``.
    """

    label_id: int
    label: str
    probabilities: list[float]
    label_names: tuple[str, ...] = field(default=(), repr=False)

    @property
    def confidence(self) -> float:
        """Posterior probability of the chosen label."""
        return self.probabilities[self.label_id]

    def __iter__(self) -> Iterator:
        yield self.label_id
        yield self.probabilities

    def to_dict(self) -> dict:
        """JSON-compatible view; underflowed (NaN) probabilities become None."""
        named = zip(self.label_names, self.probabilities)
        return {
            "label_id": self.label_id,
            "label": self.label,
            "confidence": _rounded(self.confidence),
            "probabilities": {
                name: _rounded(p) for name, p in sorted(
                    named,
                    key=lambda x: -math.inf if math.isnan(x[1]) else x[1],
                    reverse=True,
                )
            },
        }


def _rounded(probability: float) -> Optional[float]:
    if math.isnan(probability):
        return None
    return round(probability, 4)


# ---------------------------------------------------------------------------
# Classifier Corpus
# ---------------------------------------------------------------------------

class Corpus:
    """Bag-of-words document statistics with a Naive Bayes predictor.

    Example::

        corpus = Corpus(["spam", "ham"])
        corpus.add_document(["buy", "now", "buy"], [0])
        corpus.add_document(["hello", "friend"], [1])

        label_id, posterior = corpus.predict(["buy", "buy"])
        # label_id == 0, posterior[0] > posterior[1]

        corpus.save("model.json")
        loaded = Corpus.load("model.json")

    A corpus is safe to share between threads: every operation that reads
    or mutates its state holds one re-entrant lock for its duration.

    Args:
        label_names: Display names of the labels. Label IDs are positions
            in this sequence; the set is fixed for the corpus lifetime.
        note: Free text stored with the model.
        stop_words: Token filter policy. Defaults to dropping only empty
            tokens.

    Raises:
        ValueError: If ``label_names`` is empty or contains duplicates.
    """

    def __init__(
        self,
        label_names: Sequence[str],
        note: str = "",
        stop_words: Optional[StopWordConfig] = None,
    ) -> None:
        names = tuple(label_names)
        if not names:
            raise ValueError("A corpus needs at least one label")
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate label names: {list(names)}")

        label_count = len(names)
        self.note = note
        self.label_names = names
        self.stop_words = stop_words or StopWordConfig()
        self.vocabulary = Vocabulary()

        self.label_word_freq: list[dict[int, int]] = [{} for _ in range(label_count)]
        self.label_word_total: list[int] = [0] * label_count
        self.word_doc_freq: dict[int, int] = {}
        self.doc_count = 0
        self.label_doc_count: list[int] = [0] * label_count
        self.label_prior: list[float] = [1.0 / label_count] * label_count

        self._lock = threading.RLock()

    def __repr__(self) -> str:
        return (
            f"Corpus(labels={list(self.label_names)}, words={self.word_count}, "
            f"documents={self.doc_count})"
        )

    @property
    def label_count(self) -> int:
        return len(self.label_names)

    @property
    def word_count(self) -> int:
        return len(self.vocabulary)

    # ------------------------------------------------------------------
    # Labels
    # ------------------------------------------------------------------

    def label_id(self, name: str) -> int:
        """Return the ID of the label called ``name``.

        Raises:
            InvalidLabelError: If no label has that name.
        """
        try:
            return self.label_names.index(name)
        except ValueError:
            raise InvalidLabelError(
                f"Unknown label: {name!r}. Known: {list(self.label_names)}"
            ) from None

    def label_ids(self, names: Iterable[str]) -> list[int]:
        """Translate label names to IDs, preserving order."""
        return [self.label_id(name) for name in names]

    def _check_label(self, label_id: int) -> None:
        if (
            isinstance(label_id, bool)
            or not isinstance(label_id, int)
            or not 0 <= label_id < self.label_count
        ):
            raise InvalidLabelError(
                f"Label ID out of range [0, {self.label_count}): {label_id!r}"
            )

    def _validate_labels(self, label_ids: Iterable[int]) -> list[int]:
        labels = list(dict.fromkeys(label_ids))
        if not labels:
            raise InvalidLabelError("A document needs at least one label")
        for label_id in labels:
            self._check_label(label_id)
        return labels

    # ------------------------------------------------------------------
    # Accumulation
    # ------------------------------------------------------------------

    def _word_frequencies(self, words: Iterable[str]) -> Counter[int]:
        """Filter tokens, resolve them to word IDs (growing the vocabulary)
        and count occurrences."""
        if isinstance(words, str):
            raise TypeError("words must be a sequence of tokens, not a string")
        tokens = list(words)
        for word in tokens:
            if not isinstance(word, str):
                raise TypeError(f"word tokens must be strings, got {word!r}")

        freq: Counter[int] = Counter()
        for word in tokens:
            if not self.stop_words.accepts(word):
                continue
            freq[self.vocabulary.resolve(word)] += 1
        return freq

    def add_document(
        self,
        words: Iterable[str],
        label_ids: Iterable[int],
        doc_id: Optional[str] = None,
    ) -> None:
        """Add one labelled document to the statistics.

        Labels are validated before anything is counted, so a rejected
        document leaves the corpus untouched. A document with several
        labels counts once in ``doc_count`` and once per label everywhere
        else, including ``word_doc_freq``.

        Args:
            words: Word tokens. Only their multiset matters.
            label_ids: Label IDs of the document; duplicates are ignored.
            doc_id: Optional identifier used in debug logging.

        Raises:
            InvalidLabelError: If ``label_ids`` is empty or holds an ID
                outside ``[0, label_count)``.
            TypeError: If ``words`` is a plain string.
        """
        with self._lock:
            labels = self._validate_labels(label_ids)
            freq = self._word_frequencies(words)
            self.doc_count += 1

            for word_id, count in freq.items():
                for label_id in labels:
                    self.word_doc_freq[word_id] = self.word_doc_freq.get(word_id, 0) + 1
                    label_freq = self.label_word_freq[label_id]
                    label_freq[word_id] = label_freq.get(word_id, 0) + count
                    self.label_word_total[label_id] += count

            for label_id in labels:
                self.label_doc_count[label_id] += 1

            logger.debug(
                "Added document %s: %d distinct words, labels %s",
                doc_id if doc_id is not None else self.doc_count,
                len(freq),
                labels,
            )

    def add_documents(self, documents: Iterable[tuple[Iterable[str], Iterable[int]]]) -> int:
        """Add ``(words, label_ids)`` pairs in order. Returns how many were added."""
        added = 0
        for words, label_ids in documents:
            self.add_document(words, label_ids)
            added += 1
        return added

    # ------------------------------------------------------------------
    # Estimation
    # ------------------------------------------------------------------

    def refresh_priors(self) -> list[float]:
        """Recompute the cached label priors with add-one smoothing.

        ``prior[l] = (label_doc_count[l] + 1) / (doc_count + label_count)``

        Returns:
            The refreshed prior vector.

        Raises:
            InternalConsistencyError: If a label claims more documents than
                the corpus holds. Priors are left unchanged.
        """
        with self._lock:
            denominator = self.doc_count + self.label_count
            priors: list[float] = []
            for label_id, count in enumerate(self.label_doc_count):
                if count + 1 > denominator:
                    raise InternalConsistencyError(
                        f"label_doc_count[{label_id}] + 1 = {count + 1} exceeds "
                        f"doc_count + label_count = {denominator}"
                    )
                priors.append((count + 1) / denominator)
            self.label_prior = priors
            return list(priors)

    def _log_likelihood(self, label_id: int, word_id: int) -> float:
        count = self.label_word_freq[label_id].get(word_id, 0)
        return math.log((count + 1) / (self.label_word_total[label_id] + self.word_count))

    def word_likelihood(self, label_id: int, word_id: int) -> float:
        """Smoothed ``ln P(word | label)`` against the current vocabulary size.

        ``ln((freq[l][w] + 1) / (total[l] + word_count))``. The value drops
        for every label as the vocabulary grows.

        Raises:
            InvalidLabelError: If ``label_id`` is out of range.
        """
        self._check_label(label_id)
        with self._lock:
            return self._log_likelihood(label_id, word_id)

    def posterior(self, word_freq: Mapping[int, int]) -> list[float]:
        """Posterior distribution over labels for a document.

        Each distinct word ID in ``word_freq`` contributes its log
        likelihood once; in-document counts are not used as weights.
        Scores are exponentiated directly and normalized, with no shift by
        the maximum, so very long documents can underflow.

        Args:
            word_freq: Word ID -> in-document occurrence count.

        Returns:
            Probabilities indexed by label ID. If every score underflows to
            zero the result is all NaN.

        Raises:
            ValueError: If a word ID is not in the vocabulary.
        """
        with self._lock:
            for word_id in word_freq:
                if not 0 <= word_id < self.word_count:
                    raise ValueError(
                        f"Word ID out of range [0, {self.word_count}): {word_id!r}"
                    )
            self.refresh_priors()
            scores: list[float] = []
            for label_id in range(self.label_count):
                score = math.log(self.label_prior[label_id])
                for word_id in word_freq:
                    score += self._log_likelihood(label_id, word_id)
                scores.append(math.exp(score))

        total = sum(scores)
        if total == 0.0:
            logger.warning(
                "Posterior underflowed to zero for a document with %d distinct words",
                len(word_freq),
            )
            return [math.nan] * len(scores)
        return [s / total for s in scores]

    # ------------------------------------------------------------------
    # Prediction
    # ------------------------------------------------------------------

    def predict(self, words: Iterable[str]) -> Prediction:
        """Classify a document.

        Tokens are filtered and resolved exactly as in
        :meth:`add_document`, so unseen words join the vocabulary. Label
        statistics are not modified.

        Returns:
            Prediction holding the arg-max label (lowest ID on ties) and
            the full posterior.
        """
        with self._lock:
            freq = self._word_frequencies(words)
            probabilities = self.posterior(freq)

        best = 0
        for label_id in range(1, len(probabilities)):
            if probabilities[label_id] > probabilities[best]:
                best = label_id

        return Prediction(
            label_id=best,
            label=self.label_names[best],
            probabilities=probabilities,
            label_names=self.label_names,
        )

    def predict_batch(self, documents: Iterable[Iterable[str]]) -> list[Prediction]:
        """Classify several documents in order."""
        return [self.predict(words) for words in documents]

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    def word_doc_count_of(self, word: str) -> int:
        """Document-label incidences of ``word``; 0 for unknown words."""
        with self._lock:
            word_id = self.vocabulary.get(word)
            if word_id is None:
                return 0
            return self.word_doc_freq.get(word_id, 0)

    def top_words(self, label_id: int, top_n: int = 20) -> list[tuple[str, int]]:
        """Most frequent words under a label.

        Returns:
            ``(word, count)`` tuples, highest count first, ties by word ID.

        Raises:
            InvalidLabelError: If ``label_id`` is out of range.
        """
        self._check_label(label_id)
        with self._lock:
            ranked = sorted(
                self.label_word_freq[label_id].items(),
                key=lambda x: (-x[1], x[0]),
            )
            return [(self.vocabulary.word(word_id), count) for word_id, count in ranked[:top_n]]

    def stats(self) -> dict:
        """Summary counts for display."""
        with self._lock:
            return {
                "note": self.note,
                "label_count": self.label_count,
                "word_count": self.word_count,
                "doc_count": self.doc_count,
                "labels": [
                    {
                        "id": label_id,
                        "name": name,
                        "documents": self.label_doc_count[label_id],
                        "words": self.label_word_total[label_id],
                        "distinct_words": len(self.label_word_freq[label_id]),
                    }
                    for label_id, name in enumerate(self.label_names)
                ],
            }

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def to_dict(self) -> dict:
        """Serialize corpus state to a JSON-compatible record."""
        with self._lock:
            self.vocabulary.sync_table()
            return {
                "note": self.note,
                "labelnames": list(self.label_names),
                "labelcount": self.label_count,
                "words": self.vocabulary.words,
                "wordcount": self.word_count,
                "worddoccount": {
                    str(word_id): count
                    for word_id, count in sorted(self.word_doc_freq.items())
                },
                "doccount": self.doc_count,
                "lwf": {
                    str(label_id): {
                        str(word_id): count for word_id, count in sorted(freq.items())
                    }
                    for label_id, freq in enumerate(self.label_word_freq)
                },
                "labelwordcount": {
                    str(label_id): total
                    for label_id, total in enumerate(self.label_word_total)
                },
                "pl": list(self.label_prior),
                "labeldoccount": list(self.label_doc_count),
            }

    @classmethod
    def from_dict(
        cls,
        data: dict,
        stop_words: Optional[StopWordConfig] = None,
    ) -> "Corpus":
        """Rebuild a corpus from a record produced by :meth:`to_dict`.

        Raises:
            CorpusFormatError: If a field is missing, mistyped or
                inconsistent with the others.
        """
        try:
            return cls._from_record(data, stop_words)
        except CorpusFormatError:
            raise
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise CorpusFormatError(f"Malformed corpus record: {exc!r}") from exc

    @classmethod
    def _from_record(cls, data: dict, stop_words: Optional[StopWordConfig]) -> "Corpus":
        if not isinstance(data, dict):
            raise CorpusFormatError("Corpus record must be a JSON object")

        label_names = data["labelnames"]
        if not isinstance(label_names, list) or not all(isinstance(n, str) for n in label_names):
            raise CorpusFormatError("labelnames must be a list of strings")
        label_count = _parse_count(data["labelcount"], "labelcount")
        if label_count != len(label_names):
            raise CorpusFormatError(
                f"labelcount {label_count} does not match {len(label_names)} label names"
            )

        corpus = cls(label_names, note=str(data.get("note") or ""), stop_words=stop_words)

        words = data.get("words") or []
        if not isinstance(words, list):
            raise CorpusFormatError("words must be a list")
        vocabulary = Vocabulary.from_words(words)
        word_count = _parse_count(data["wordcount"], "wordcount")
        if word_count != len(vocabulary):
            raise CorpusFormatError(
                f"wordcount {word_count} does not match {len(vocabulary)} words"
            )
        corpus.vocabulary = vocabulary

        corpus.doc_count = _parse_count(data["doccount"], "doccount")
        corpus.word_doc_freq = _parse_counts(
            data.get("worddoccount") or {}, word_count, "worddoccount"
        )

        lwf = data.get("lwf") or {}
        if not isinstance(lwf, dict):
            raise CorpusFormatError("lwf must be an object")
        for key, freq in lwf.items():
            label_id = _parse_id(key, label_count, "lwf")
            corpus.label_word_freq[label_id] = _parse_counts(
                freq or {}, word_count, f"lwf[{label_id}]"
            )

        totals = _parse_counts(data.get("labelwordcount") or {}, label_count, "labelwordcount")
        for label_id, total in totals.items():
            corpus.label_word_total[label_id] = total
        for label_id, freq in enumerate(corpus.label_word_freq):
            if sum(freq.values()) != corpus.label_word_total[label_id]:
                raise CorpusFormatError(
                    f"labelwordcount[{label_id}] = {corpus.label_word_total[label_id]} "
                    f"does not match the sum of lwf[{label_id}]"
                )

        priors = data["pl"]
        if not isinstance(priors, list) or len(priors) != label_count:
            raise CorpusFormatError(f"pl must be a list of {label_count} numbers")
        corpus.label_prior = [float(p) for p in priors]

        doc_counts = data["labeldoccount"]
        if not isinstance(doc_counts, list) or len(doc_counts) != label_count:
            raise CorpusFormatError(f"labeldoccount must be a list of {label_count} integers")
        corpus.label_doc_count = [_parse_count(c, "labeldoccount") for c in doc_counts]

        return corpus

    def save(self, path: Union[str, Path]) -> None:
        """Write the corpus to a pretty-printed JSON file.

        The word table is re-synced from the live index first.

        Args:
            path: File path to save to. Parent directories are created.

        Raises:
            OSError: If the file cannot be written.
        """
        record = self.to_dict()

        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(record, f, indent=2, ensure_ascii=False)
            f.write("\n")
        logger.info(
            "Saved corpus with %d documents and %d words to %s",
            record["doccount"],
            record["wordcount"],
            path,
        )

    @classmethod
    def load(
        cls,
        path: Union[str, Path],
        stop_words: Optional[StopWordConfig] = None,
    ) -> "Corpus":
        """Load a corpus saved with :meth:`save`.

        Args:
            path: Path to the saved model file.
            stop_words: Token filter for the loaded corpus; not persisted.

        Returns:
            Corpus with its reverse word index rebuilt.

        Raises:
            OSError: If the file cannot be read.
            CorpusFormatError: If the file is not a valid corpus record.
        """
        with open(path, "r", encoding="utf-8") as f:
            try:
                data = json.load(f)
            except (json.JSONDecodeError, UnicodeDecodeError) as exc:
                raise CorpusFormatError(f"{path}: invalid JSON: {exc}") from exc

        corpus = cls.from_dict(data, stop_words=stop_words)
        logger.info(
            "Loaded corpus with %d documents and %d words from %s",
            corpus.doc_count,
            corpus.word_count,
            path,
        )
        return corpus


# ---------------------------------------------------------------------------
# Record parsing helpers
# ---------------------------------------------------------------------------

def _parse_count(value: object, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise CorpusFormatError(f"{field_name}: expected a non-negative integer, got {value!r}")
    return value


def _parse_id(key: object, limit: int, field_name: str) -> int:
    try:
        value = int(key)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        raise CorpusFormatError(f"{field_name}: invalid ID {key!r}") from None
    if not 0 <= value < limit:
        raise CorpusFormatError(f"{field_name}: ID {value} out of range [0, {limit})")
    return value


def _parse_counts(mapping: object, limit: int, field_name: str) -> dict[int, int]:
    if not isinstance(mapping, dict):
        raise CorpusFormatError(f"{field_name} must be an object")
    return {
        _parse_id(key, limit, field_name): _parse_count(count, field_name)
        for key, count in mapping.items()
    }
