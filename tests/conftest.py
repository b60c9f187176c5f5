"""Pytest configuration and fixtures."""

import pytest
import numpy as np

from binance_screener.core.models import (
    OHLCSeries, IndicatorSnapshot, MACDValue, BollingerValue, CrossSignals
)

START_MS = 1_700_000_000_000
FOUR_HOURS_MS = 4 * 60 * 60 * 1000


def make_klines(closes, interval_ms=FOUR_HOURS_MS):
    """Raw exchange rows for the given closes."""
    rows = []
    for i, close in enumerate(closes):
        open_time = START_MS + i * interval_ms
        rows.append([
            open_time,
            str(close),
            str(close * 1.01),
            str(close * 0.99),
            str(close),
            "1000.0",
            open_time + interval_ms - 1,
        ])
    return rows


def make_snapshot(**overrides):
    """IndicatorSnapshot with neutral defaults."""
    values = dict(
        rsi=50.0,
        macd=MACDValue(value=0.5, signal=0.3, histogram=0.2),
        ma20=100.0,
        ma50=98.0,
        bollinger=BollingerValue(upper=110.0, middle=100.0, lower=90.0),
        price=100.0,
        crosses=CrossSignals(),
    )
    values.update(overrides)
    return IndicatorSnapshot(**values)


@pytest.fixture
def trending_closes():
    """120 closes with a steady uptrend and mild oscillation."""
    n = 120
    return list(100.0 + 0.5 * np.arange(n) + np.sin(np.arange(n) / 3.0))


@pytest.fixture
def sample_series(trending_closes):
    return OHLCSeries.from_klines("BTC/USDT", "4h", make_klines(trending_closes))


@pytest.fixture
def neutral_snapshot():
    return make_snapshot()


@pytest.fixture
def kline_factory():
    return make_klines


@pytest.fixture
def snapshot_factory():
    return make_snapshot
