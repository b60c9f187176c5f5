"""Filter criteria, predicate evaluation and scoring."""

from .criteria import (
    FilterCriteria,
    RSIFilter,
    MACDFilter,
    MAFilter,
    BollingerFilter,
    PriceFilter,
)
from .evaluator import matches
from .scorer import score

__all__ = [
    "FilterCriteria",
    "RSIFilter",
    "MACDFilter",
    "MAFilter",
    "BollingerFilter",
    "PriceFilter",
    "matches",
    "score",
]
