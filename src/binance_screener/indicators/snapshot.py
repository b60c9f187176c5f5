"""Assembles the latest indicator values for one series."""

import logging
from typing import Union

from ..core.models import (
    OHLCSeries, IndicatorSnapshot, MACDValue, BollingerValue, CrossSignals
)
from .technical import PriceSequence, rsi, sma, macd, bollinger_bands, as_array
from .crosses import golden_cross, death_cross, macd_bullish_cross, macd_bearish_cross

logger = logging.getLogger(__name__)

MA_FAST = 20
MA_SLOW = 50

# Longest lookback among the snapshot indicators (SMA50)
MIN_SNAPSHOT_LENGTH = MA_SLOW


def build_snapshot(data: Union[OHLCSeries, PriceSequence]) -> IndicatorSnapshot:
    """Compute RSI(14), MACD(12,26,9), SMA20, SMA50 and Bollinger(20,2).

    Crosses are evaluated on the full indicator series, so the whole close
    history is used rather than the last value alone. Raises
    InsufficientData when the series is too short for any indicator.
    """
    symbol = data.symbol if isinstance(data, OHLCSeries) else None
    closes = data.closes if isinstance(data, OHLCSeries) else as_array(data)

    rsi_values = rsi(closes)
    macd_data = macd(closes)
    ma20 = sma(closes, MA_FAST)
    ma50 = sma(closes, MA_SLOW)
    bands = bollinger_bands(closes)

    crosses = CrossSignals(
        golden_cross=golden_cross(ma20, ma50),
        death_cross=death_cross(ma20, ma50),
        macd_bullish=macd_bullish_cross(macd_data.histogram),
        macd_bearish=macd_bearish_cross(macd_data.histogram),
    )

    snapshot = IndicatorSnapshot(
        rsi=float(rsi_values[-1]),
        macd=MACDValue(
            value=float(macd_data.macd_line[-1]),
            signal=float(macd_data.signal_line[-1]),
            histogram=float(macd_data.histogram[-1]),
        ),
        ma20=float(ma20[-1]),
        ma50=float(ma50[-1]),
        bollinger=BollingerValue(
            upper=float(bands.upper[-1]),
            middle=float(bands.middle[-1]),
            lower=float(bands.lower[-1]),
        ),
        price=float(closes[-1]),
        crosses=crosses,
        symbol=symbol,
    )
    logger.debug(f"Snapshot for {symbol or 'series'}: rsi={snapshot.rsi:.2f} price={snapshot.price}")
    return snapshot
