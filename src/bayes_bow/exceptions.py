"""Exception types raised by the classifier corpus.

I/O failures are not wrapped: reading or writing a model file raises the
usual ``OSError`` subclasses.
"""

from __future__ import annotations


class BayesBowError(Exception):
    """Base class for all bayes-bow errors."""


class InvalidLabelError(BayesBowError, ValueError):
    """A label ID or label name outside the corpus label set."""


class CorpusFormatError(BayesBowError, ValueError):
    """A persisted corpus record is malformed or internally inconsistent."""


class InternalConsistencyError(BayesBowError, RuntimeError):
    """Corpus counters contradict each other.

    Signals corrupted state rather than bad input. Callers should not try
    to recover from it.
    """
