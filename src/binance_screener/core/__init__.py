"""Core module for the screener."""

from .models import (
    OHLCSeries, MACDValue, BollingerValue, CrossSignals, IndicatorSnapshot
)
from .enums import Interval, MAPeriod
from .errors import ScreenerError, InvalidParameter, InsufficientData, RetrievalFailure

__all__ = [
    "OHLCSeries",
    "MACDValue",
    "BollingerValue",
    "CrossSignals",
    "IndicatorSnapshot",
    "Interval",
    "MAPeriod",
    "ScreenerError",
    "InvalidParameter",
    "InsufficientData",
    "RetrievalFailure",
]
