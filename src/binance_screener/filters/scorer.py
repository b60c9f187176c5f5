"""Ranking score for an indicator snapshot."""

from ..core.models import IndicatorSnapshot

BASE_SCORE = 50.0
RSI_OVERSOLD = 30.0
RSI_OVERBOUGHT = 70.0
CROSS_BONUS = 15.0
BAND_EDGE_BONUS = 10.0
MIN_SCORE = 0.0
MAX_SCORE = 100.0


def score(snapshot: IndicatorSnapshot) -> float:
    """Score a snapshot in [0, 100]; higher means a stronger setup.

    Bonuses are independent and additive:
      * RSI extremity: distance below 30 or above 70
      * MACD bullish cross and MA golden cross: 15 each
      * price in the bottom or top 10% of the Bollinger range: 10
    """
    total = BASE_SCORE

    if snapshot.rsi < RSI_OVERSOLD:
        total += max(0.0, RSI_OVERSOLD - snapshot.rsi)
    elif snapshot.rsi > RSI_OVERBOUGHT:
        total += max(0.0, snapshot.rsi - RSI_OVERBOUGHT)

    if snapshot.crosses.macd_bullish:
        total += CROSS_BONUS
    if snapshot.crosses.golden_cross:
        total += CROSS_BONUS

    upper = snapshot.bollinger.upper
    lower = snapshot.bollinger.lower
    band_width = upper - lower
    # Position is undefined on collapsed bands
    if band_width != 0:
        position = (snapshot.price - lower) / band_width
        if position < 0.1:
            total += BAND_EDGE_BONUS
        if position > 0.9:
            total += BAND_EDGE_BONUS

    return min(MAX_SCORE, max(MIN_SCORE, total))
