"""Instrument universe narrowing."""

import logging
from typing import Dict, List

logger = logging.getLogger(__name__)


def _quote_volume(ticker: Dict) -> float:
    try:
        return float(ticker.get('quoteVolume') or 0.0)
    except (TypeError, ValueError):
        return 0.0


def top_by_volume(tickers: Dict[str, Dict], n: int) -> List[str]:
    """Symbols of the *n* tickers with the highest 24h quote volume."""
    ranked = sorted(tickers.items(), key=lambda item: _quote_volume(item[1]), reverse=True)
    selected = [symbol for symbol, _ in ranked[:n]]
    logger.info(f"Selected top {len(selected)} of {len(tickers)} symbols by volume")
    return selected
