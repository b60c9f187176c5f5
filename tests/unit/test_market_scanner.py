"""Unit tests for MarketScanner."""

import math

import pytest
from unittest.mock import AsyncMock

from binance_screener.core.errors import InvalidParameter, RetrievalFailure
from binance_screener.core.models import OHLCSeries
from binance_screener.data.connector import ExchangeDataSource
from binance_screener.data.retrieval import RetrievalConfig, RetrievalOrchestrator
from binance_screener.filters.criteria import FilterCriteria
from binance_screener.scanner.market_scanner import MarketScanner
from binance_screener.scanner.models import ScanResult
from binance_screener.scanner.universe import top_by_volume

MATCH_ALL = FilterCriteria.from_mapping({"price": {"min": 0}})


def _rising(n=100):
    return [100.0 + i for i in range(n)]


def _falling(n=100):
    return [300.0 - i for i in range(n)]


def _oscillating(n=100):
    return [100.0 + math.sin(i) for i in range(n)]


class MockExchangeSource(ExchangeDataSource):
    """Exchange with a fixed close history per symbol."""

    def __init__(self, kline_factory, closes_by_symbol, failing=(), volumes=None):
        self.kline_factory = kline_factory
        self.closes_by_symbol = closes_by_symbol
        self.failing = set(failing)
        self.volumes = volumes or {}
        self.list_tradable_pairs = AsyncMock(side_effect=self._list)
        self.fetched = []

    async def _list(self, quote_asset):
        return list(self.closes_by_symbol)

    async def list_tradable_pairs(self, quote_asset):
        pass

    async def get_candles(self, symbol, interval, limit):
        self.fetched.append(symbol)
        if symbol in self.failing:
            raise RetrievalFailure(f"fetch failed for {symbol}", symbol=symbol)
        return self.kline_factory(self.closes_by_symbol[symbol][-limit:])

    async def get_24h_ticker(self, symbol):
        return {"symbol": symbol, "quoteVolume": self.volumes.get(symbol, 0.0)}

    async def close(self):
        pass


def _scanner(source):
    config = RetrievalConfig(inter_request_delay=0, inter_batch_delay=0)
    return MarketScanner(source, orchestrator=RetrievalOrchestrator(source, config, sleep=AsyncMock()))


class TestValidateParameters:
    @pytest.mark.parametrize("interval", ["4h", "1m", "1M", "1w"])
    def test_valid_intervals(self, interval):
        MarketScanner.validate_parameters(MATCH_ALL, interval, 100)

    @pytest.mark.parametrize("interval", ["4H", "2d", "", "90m"])
    def test_invalid_interval(self, interval):
        with pytest.raises(InvalidParameter):
            MarketScanner.validate_parameters(MATCH_ALL, interval, 100)

    @pytest.mark.parametrize("limit", [49, 1001, 0, -5])
    def test_limit_out_of_range(self, limit):
        with pytest.raises(InvalidParameter):
            MarketScanner.validate_parameters(MATCH_ALL, "4h", limit)

    def test_limit_bounds_inclusive(self):
        MarketScanner.validate_parameters(MATCH_ALL, "4h", 50)
        MarketScanner.validate_parameters(MATCH_ALL, "4h", 1000)

    def test_empty_criteria_rejected(self):
        with pytest.raises(InvalidParameter):
            MarketScanner.validate_parameters(FilterCriteria(), "4h", 100)

    def test_negative_counts_rejected(self):
        with pytest.raises(InvalidParameter):
            MarketScanner.validate_parameters(MATCH_ALL, "4h", 100, top_volume=-1)
        with pytest.raises(InvalidParameter):
            MarketScanner.validate_parameters(MATCH_ALL, "4h", 100, max_results=-1)


class TestAnalyze:
    def test_sorted_by_score(self, kline_factory):
        series_map = {
            "FLAT/USDT": OHLCSeries.from_klines("FLAT/USDT", "4h", kline_factory(_oscillating())),
            "DOWN/USDT": OHLCSeries.from_klines("DOWN/USDT", "4h", kline_factory(_falling())),
        }
        scanner = _scanner(MockExchangeSource(kline_factory, {}))

        results, scanned = scanner.analyze(series_map, MATCH_ALL)

        assert scanned == 2
        assert [r.symbol for r in results][0] == "DOWN/USDT"
        scores = [r.score for r in results]
        assert scores == sorted(scores, reverse=True)

    def test_insufficient_data_skipped_but_counted(self, kline_factory):
        series_map = {
            "SHORT/USDT": OHLCSeries.from_klines("SHORT/USDT", "4h", kline_factory(_rising(40))),
            "LONG/USDT": OHLCSeries.from_klines("LONG/USDT", "4h", kline_factory(_rising())),
        }
        scanner = _scanner(MockExchangeSource(kline_factory, {}))

        results, scanned = scanner.analyze(series_map, MATCH_ALL)

        assert scanned == 2
        assert [r.symbol for r in results] == ["LONG/USDT"]

    def test_result_fields(self, kline_factory):
        series_map = {"UP/USDT": OHLCSeries.from_klines("UP/USDT", "4h", kline_factory(_rising()))}
        results, _ = _scanner(MockExchangeSource(kline_factory, {})).analyze(series_map, MATCH_ALL)

        result = results[0]
        assert isinstance(result, ScanResult)
        assert result.price == 199.0
        assert result.indicators.rsi == 100.0
        assert result.crosses == result.indicators.crosses
        assert 0.0 <= result.score <= 100.0


class TestScan:
    @pytest.mark.asyncio
    async def test_failed_symbol_excluded(self, kline_factory):
        source = MockExchangeSource(
            kline_factory,
            {"A/USDT": _rising(), "B/USDT": _rising(), "C/USDT": _falling()},
            failing={"B/USDT"},
        )

        report = await _scanner(source).scan(MATCH_ALL, interval="4h", limit=100)

        assert source.fetched == ["A/USDT", "B/USDT", "C/USDT"]
        assert report.total_scanned == 2
        assert {r.symbol for r in report.results} == {"A/USDT", "C/USDT"}
        assert report.matched_count == 2

    @pytest.mark.asyncio
    async def test_invalid_parameters_before_network(self, kline_factory):
        source = MockExchangeSource(kline_factory, {"A/USDT": _rising()})

        with pytest.raises(InvalidParameter):
            await _scanner(source).scan(MATCH_ALL, interval="7h")
        with pytest.raises(InvalidParameter):
            await _scanner(source).scan(FilterCriteria(), interval="4h")

        source.list_tradable_pairs.assert_not_awaited()
        assert source.fetched == []

    @pytest.mark.asyncio
    async def test_max_results_truncates_after_counting(self, kline_factory):
        source = MockExchangeSource(
            kline_factory,
            {"A/USDT": _rising(), "B/USDT": _falling(), "C/USDT": _oscillating()},
        )

        report = await _scanner(source).scan(MATCH_ALL, max_results=1)

        assert len(report.results) == 1
        assert report.matched_count == 3
        assert report.total_scanned == 3

    @pytest.mark.asyncio
    async def test_no_matches_is_empty_report(self, kline_factory):
        source = MockExchangeSource(kline_factory, {"A/USDT": _rising()})
        criteria = FilterCriteria.from_mapping({"rsi": {"below": 0}})

        report = await _scanner(source).scan(criteria)

        assert report.results == []
        assert report.matched_count == 0
        assert report.total_scanned == 1
        assert report.filters == criteria
        assert report.interval == "4h"

    @pytest.mark.asyncio
    async def test_top_volume_narrows_universe(self, kline_factory):
        source = MockExchangeSource(
            kline_factory,
            {"A/USDT": _rising(), "B/USDT": _rising(), "C/USDT": _rising()},
            volumes={"A/USDT": 10.0, "B/USDT": 300.0, "C/USDT": 20.0},
        )

        report = await _scanner(source).scan(MATCH_ALL, top_volume=2)

        assert source.fetched == ["B/USDT", "C/USDT"]
        assert report.total_scanned == 2

    @pytest.mark.asyncio
    async def test_all_fetches_failed_is_fatal(self, kline_factory):
        source = MockExchangeSource(kline_factory, {"A/USDT": _rising()}, failing={"A/USDT"})

        with pytest.raises(RetrievalFailure):
            await _scanner(source).scan(MATCH_ALL)

    @pytest.mark.asyncio
    async def test_empty_universe_is_fatal(self, kline_factory):
        source = MockExchangeSource(kline_factory, {})

        with pytest.raises(RetrievalFailure):
            await _scanner(source).scan(MATCH_ALL)

    @pytest.mark.asyncio
    async def test_progress_forwarded(self, kline_factory):
        source = MockExchangeSource(kline_factory, {"A/USDT": _rising(), "B/USDT": _rising()})
        calls = []

        await _scanner(source).scan(MATCH_ALL, progress=lambda *a: calls.append(a))

        assert calls == [(1, 2, "A/USDT"), (2, 2, "B/USDT")]


class TestTopByVolume:
    def test_orders_by_quote_volume(self):
        tickers = {
            "A/USDT": {"quoteVolume": "1500.5"},
            "B/USDT": {"quoteVolume": 9000.0},
            "C/USDT": {"quoteVolume": None},
            "D/USDT": {"quoteVolume": 2000},
        }
        assert top_by_volume(tickers, 2) == ["B/USDT", "D/USDT"]
        assert top_by_volume(tickers, 10) == ["B/USDT", "D/USDT", "A/USDT", "C/USDT"]

    def test_result_ordering(self):
        a = ScanResult.model_construct(symbol="A", score=80.0)
        b = ScanResult.model_construct(symbol="B", score=50.0)
        assert b < a
