"""
Technical indicators over ordered price sequences.

Every function returns a numpy array aligned to the trailing portion of
its input: the first output corresponds to the first index where the
lookback window is full. Inputs shorter than the required lookback raise
InsufficientData.
"""

import logging
from typing import NamedTuple, Sequence, Union

import numpy as np
import pandas as pd

from ..core.errors import InsufficientData, InvalidParameter

logger = logging.getLogger(__name__)

PriceSequence = Union[Sequence[float], np.ndarray, pd.Series]

RSI_PERIOD = 14
MACD_FAST = 12
MACD_SLOW = 26
MACD_SIGNAL = 9
BOLLINGER_PERIOD = 20
BOLLINGER_K = 2.0


class MACDSeries(NamedTuple):
    macd_line: np.ndarray
    signal_line: np.ndarray
    histogram: np.ndarray


class BollingerSeries(NamedTuple):
    upper: np.ndarray
    middle: np.ndarray
    lower: np.ndarray


def as_array(values: PriceSequence) -> np.ndarray:
    """Convert a price sequence to a one-dimensional float array."""
    arr = np.asarray(values, dtype=float)
    if arr.ndim != 1:
        raise InvalidParameter(f"Expected a one-dimensional price sequence, got shape {arr.shape}")
    return arr


def _check_period(name: str, period: int) -> None:
    if isinstance(period, bool) or not isinstance(period, (int, np.integer)) or period < 1:
        raise InvalidParameter(f"{name} period must be a positive integer, got {period!r}")


def _require(indicator: str, arr: np.ndarray, required: int) -> None:
    if len(arr) < required:
        raise InsufficientData(indicator, required, len(arr))


def rsi(closes: PriceSequence, period: int = RSI_PERIOD) -> np.ndarray:
    """Relative Strength Index with Wilder's smoothing.

    Averages are seeded with the simple mean of the first *period* gains
    and losses, then smoothed as ``(avg * (period - 1) + value) / period``.
    Requires ``period + 1`` closes.
    """
    _check_period("RSI", period)
    arr = as_array(closes)
    _require("RSI", arr, period + 1)

    deltas = np.diff(arr)
    gains = np.where(deltas > 0, deltas, 0.0)
    losses = np.where(deltas < 0, -deltas, 0.0)

    avg_gain = gains[:period].sum() / period
    avg_loss = losses[:period].sum() / period

    values = [_rsi_value(avg_gain, avg_loss)]
    for i in range(period, len(deltas)):
        avg_gain = (avg_gain * (period - 1) + gains[i]) / period
        avg_loss = (avg_loss * (period - 1) + losses[i]) / period
        values.append(_rsi_value(avg_gain, avg_loss))

    return np.array(values, dtype=float)


def _rsi_value(avg_gain: float, avg_loss: float) -> float:
    if avg_loss == 0:
        return 100.0
    rs = avg_gain / avg_loss
    return 100.0 - (100.0 / (1.0 + rs))


def sma(values: PriceSequence, period: int) -> np.ndarray:
    """Simple moving average of each trailing window."""
    _check_period("SMA", period)
    arr = as_array(values)
    _require("SMA", arr, period)
    return pd.Series(arr).rolling(window=period).mean().to_numpy()[period - 1:]


def ema(values: PriceSequence, period: int) -> np.ndarray:
    """Exponential moving average seeded with the SMA of the first window."""
    _check_period("EMA", period)
    arr = as_array(values)
    _require("EMA", arr, period)

    multiplier = 2.0 / (period + 1)
    out = np.empty(len(arr) - period + 1, dtype=float)
    # Seed through sma() so the first EMA equals the first SMA exactly
    out[0] = sma(arr[:period], period)[0]
    for j, i in enumerate(range(period, len(arr)), start=1):
        out[j] = (arr[i] - out[j - 1]) * multiplier + out[j - 1]
    return out


def macd(
    closes: PriceSequence,
    fast: int = MACD_FAST,
    slow: int = MACD_SLOW,
    signal: int = MACD_SIGNAL,
) -> MACDSeries:
    """Moving Average Convergence Divergence.

    The fast EMA starts ``slow - fast`` bars earlier than the slow EMA, so
    that many leading values are dropped before differencing. Requires
    ``slow + signal`` closes.
    """
    _check_period("MACD fast", fast)
    _check_period("MACD slow", slow)
    _check_period("MACD signal", signal)
    if fast >= slow:
        raise InvalidParameter(f"MACD fast period ({fast}) must be shorter than slow period ({slow})")
    arr = as_array(closes)
    _require("MACD", arr, slow + signal)

    fast_ema = ema(arr, fast)
    slow_ema = ema(arr, slow)
    macd_line = fast_ema[slow - fast:] - slow_ema

    signal_line = ema(macd_line, signal)
    offset = len(macd_line) - len(signal_line)
    histogram = macd_line[offset:] - signal_line

    return MACDSeries(macd_line, signal_line, histogram)


def bollinger_bands(
    prices: PriceSequence,
    period: int = BOLLINGER_PERIOD,
    k: float = BOLLINGER_K,
) -> BollingerSeries:
    """SMA-centred bands at +/- k population standard deviations."""
    _check_period("Bollinger", period)
    arr = as_array(prices)
    _require("Bollinger Bands", arr, period)

    rolling = pd.Series(arr).rolling(window=period)
    middle = rolling.mean().to_numpy()[period - 1:]
    std = rolling.std(ddof=0).to_numpy()[period - 1:]

    return BollingerSeries(middle + k * std, middle, middle - k * std)
