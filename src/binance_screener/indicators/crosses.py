"""Crossover detection on the two most recent values of indicator series.

With fewer than two values every detector returns False.
"""

from typing import Sequence, Tuple


def _last_two(values: Sequence[float]) -> Tuple[float, float]:
    return values[-2], values[-1]


def golden_cross(fast: Sequence[float], slow: Sequence[float]) -> bool:
    """Fast MA was at or below the slow MA and is now above it."""
    if len(fast) < 2 or len(slow) < 2:
        return False
    fast_prev, fast_curr = _last_two(fast)
    slow_prev, slow_curr = _last_two(slow)
    return bool(fast_prev <= slow_prev and fast_curr > slow_curr)


def death_cross(fast: Sequence[float], slow: Sequence[float]) -> bool:
    """Fast MA was at or above the slow MA and is now below it."""
    if len(fast) < 2 or len(slow) < 2:
        return False
    fast_prev, fast_curr = _last_two(fast)
    slow_prev, slow_curr = _last_two(slow)
    return bool(fast_prev >= slow_prev and fast_curr < slow_curr)


def macd_bullish_cross(histogram: Sequence[float]) -> bool:
    if len(histogram) < 2:
        return False
    prev, curr = _last_two(histogram)
    return bool(prev < 0 and curr > 0)


def macd_bearish_cross(histogram: Sequence[float]) -> bool:
    if len(histogram) < 2:
        return False
    prev, curr = _last_two(histogram)
    return bool(prev > 0 and curr < 0)
