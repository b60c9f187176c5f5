"""
Binance Technical Indicator Screener

Scans exchange pairs, computes RSI, MACD, moving averages and Bollinger
Bands for each, and ranks the pairs that match a set of filters.
"""

__version__ = "0.1.0"
__author__ = "Binance Screener Team"

from .core.models import OHLCSeries, IndicatorSnapshot
from .core.errors import ScreenerError, InvalidParameter, InsufficientData, RetrievalFailure
from .filters.criteria import FilterCriteria
from .data.retrieval import RetrievalConfig, RetrievalOrchestrator
from .scanner.market_scanner import MarketScanner
from .scanner.models import ScanReport, ScanResult

__all__ = [
    "OHLCSeries",
    "IndicatorSnapshot",
    "ScreenerError",
    "InvalidParameter",
    "InsufficientData",
    "RetrievalFailure",
    "FilterCriteria",
    "RetrievalConfig",
    "RetrievalOrchestrator",
    "MarketScanner",
    "ScanReport",
    "ScanResult",
]
