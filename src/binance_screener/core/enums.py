"""Core enumerations for the screener."""

from enum import Enum


class Interval(str, Enum):
    """Candle intervals accepted by the exchange."""
    ONE_MINUTE = "1m"
    THREE_MINUTES = "3m"
    FIVE_MINUTES = "5m"
    FIFTEEN_MINUTES = "15m"
    THIRTY_MINUTES = "30m"
    ONE_HOUR = "1h"
    TWO_HOURS = "2h"
    FOUR_HOURS = "4h"
    SIX_HOURS = "6h"
    EIGHT_HOURS = "8h"
    TWELVE_HOURS = "12h"
    ONE_DAY = "1d"
    THREE_DAYS = "3d"
    ONE_WEEK = "1w"
    ONE_MONTH = "1M"

    @classmethod
    def values(cls):
        return [member.value for member in cls]


class MAPeriod(int, Enum):
    """Moving average periods exposed to price-vs-MA filters."""
    MA20 = 20
    MA50 = 50
