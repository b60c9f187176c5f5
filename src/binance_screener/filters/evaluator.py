"""Boolean filter evaluation over one indicator snapshot."""

import logging
from typing import Optional

from ..core.models import IndicatorSnapshot
from .criteria import (
    FilterCriteria, RSIFilter, MACDFilter, MAFilter, BollingerFilter, PriceFilter
)

logger = logging.getLogger(__name__)

TOUCH_UPPER_RATIO = 0.995
TOUCH_LOWER_RATIO = 1.005
BANDWIDTH_THRESHOLD = 0.1


def matches(snapshot: IndicatorSnapshot, criteria: Optional[FilterCriteria]) -> bool:
    """True when the snapshot satisfies every present filter section.

    Missing or empty criteria match everything.
    """
    if criteria is None:
        return True
    return (
        _matches_rsi(snapshot, criteria.rsi)
        and _matches_macd(snapshot, criteria.macd)
        and _matches_ma(snapshot, criteria.ma)
        and _matches_bollinger(snapshot, criteria.bollinger)
        and _matches_price(snapshot, criteria.price)
    )


def _matches_rsi(snapshot: IndicatorSnapshot, f: Optional[RSIFilter]) -> bool:
    if f is None:
        return True
    value = snapshot.rsi
    if f.below is not None and not value < f.below:
        return False
    if f.above is not None and not value > f.above:
        return False
    if f.between is not None:
        low, high = f.between
        if not low <= value <= high:
            return False
    return True


def _matches_macd(snapshot: IndicatorSnapshot, f: Optional[MACDFilter]) -> bool:
    if f is None:
        return True
    if f.bullish and not snapshot.crosses.macd_bullish:
        return False
    if f.bearish and not snapshot.crosses.macd_bearish:
        return False
    if f.histogram_positive is not None:
        if (snapshot.macd.histogram > 0) != f.histogram_positive:
            return False
    return True


def _matches_ma(snapshot: IndicatorSnapshot, f: Optional[MAFilter]) -> bool:
    if f is None:
        return True
    if f.golden_cross and not snapshot.crosses.golden_cross:
        return False
    if f.death_cross and not snapshot.crosses.death_cross:
        return False
    if f.above is not None and not snapshot.price > snapshot.ma(int(f.above)):
        return False
    if f.below is not None and not snapshot.price < snapshot.ma(int(f.below)):
        return False
    return True


def _matches_bollinger(snapshot: IndicatorSnapshot, f: Optional[BollingerFilter]) -> bool:
    if f is None:
        return True
    bands = snapshot.bollinger
    price = snapshot.price

    if f.touch_upper and not price >= bands.upper * TOUCH_UPPER_RATIO:
        return False
    if f.touch_lower and not price <= bands.lower * TOUCH_LOWER_RATIO:
        return False
    if f.below_lower and not price < bands.lower:
        return False
    if f.above_upper and not price > bands.upper:
        return False
    # narrow and wide both hold at exactly the threshold
    if f.narrow and not bands.bandwidth <= BANDWIDTH_THRESHOLD:
        return False
    if f.wide and not bands.bandwidth >= BANDWIDTH_THRESHOLD:
        return False
    return True


def _matches_price(snapshot: IndicatorSnapshot, f: Optional[PriceFilter]) -> bool:
    if f is None:
        return True
    if f.min is not None and not snapshot.price >= f.min:
        return False
    if f.max is not None and not snapshot.price <= f.max:
        return False
    return True
