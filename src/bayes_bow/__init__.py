"""bayes-bow -- incremental Naive Bayes classification of bag-of-words documents."""

__version__ = "0.1.0"

from .corpus import Corpus, Prediction
from .exceptions import (
    BayesBowError,
    CorpusFormatError,
    InternalConsistencyError,
    InvalidLabelError,
)
from .preprocessing import DEFAULT_STOP_WORDS, StopWordConfig, tokenize
from .vocabulary import Vocabulary

__all__ = [
    # Core
    "Corpus",
    "Prediction",
    "Vocabulary",
    # Preprocessing
    "StopWordConfig",
    "DEFAULT_STOP_WORDS",
    "tokenize",
    # Errors
    "BayesBowError",
    "CorpusFormatError",
    "InternalConsistencyError",
    "InvalidLabelError",
]
