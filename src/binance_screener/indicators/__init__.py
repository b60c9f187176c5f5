"""Indicator engine and cross-signal detection."""

from .technical import (
    rsi,
    sma,
    ema,
    macd,
    bollinger_bands,
    as_array,
    MACDSeries,
    BollingerSeries,
)
from .crosses import golden_cross, death_cross, macd_bullish_cross, macd_bearish_cross
from .snapshot import build_snapshot, MIN_SNAPSHOT_LENGTH

__all__ = [
    "rsi",
    "sma",
    "ema",
    "macd",
    "bollinger_bands",
    "as_array",
    "MACDSeries",
    "BollingerSeries",
    "golden_cross",
    "death_cross",
    "macd_bullish_cross",
    "macd_bearish_cross",
    "build_snapshot",
    "MIN_SNAPSHOT_LENGTH",
]
