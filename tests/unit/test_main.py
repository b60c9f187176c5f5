"""Unit tests for the command-line entry point."""

import json

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from binance_screener import main as cli
from binance_screener.core.errors import InvalidParameter, RetrievalFailure


def _parse(*argv):
    return cli.build_parser().parse_args(list(argv))


class TestCriteriaFromArgs:
    def test_no_flags_is_empty(self):
        assert cli.criteria_from_args(_parse()).is_empty()

    def test_rsi_flags(self):
        criteria = cli.criteria_from_args(_parse("--rsi-below", "30", "--rsi-between", "20,40"))
        assert criteria.rsi.below == 30.0
        assert criteria.rsi.between == (20.0, 40.0)
        assert criteria.macd is None

    def test_bad_rsi_between(self):
        with pytest.raises(InvalidParameter):
            cli.criteria_from_args(_parse("--rsi-between", "low,high"))
        with pytest.raises(InvalidParameter):
            cli.criteria_from_args(_parse("--rsi-between", "20,30,40"))

    def test_macd_flags(self):
        criteria = cli.criteria_from_args(_parse("--macd-bullish", "--macd-histogram-positive", "false"))
        assert criteria.macd.bullish is True
        assert criteria.macd.histogram_positive is False

    def test_ma_flags(self):
        criteria = cli.criteria_from_args(_parse("--ma-golden-cross", "--ma-below", "20"))
        assert criteria.ma.golden_cross is True
        assert int(criteria.ma.below) == 20

    def test_bollinger_flags(self):
        criteria = cli.criteria_from_args(_parse("--bb-lower", "--bb-below-lower", "--bb-narrow"))
        assert criteria.bollinger.touch_lower is True
        assert criteria.bollinger.below_lower is True
        assert criteria.bollinger.narrow is True
        assert criteria.bollinger.touch_upper is False

    def test_price_flags(self):
        criteria = cli.criteria_from_args(_parse("--price-min", "0.5", "--price-max", "10"))
        assert criteria.price.min == 0.5
        assert criteria.price.max == 10.0


class TestBuildConfig:
    def test_nested_override(self):
        config = cli.build_config({"retrieval": {"batch_size": 5}})
        assert config["retrieval"]["batch_size"] == 5
        assert "inter_batch_delay" in config["retrieval"]
        assert config["exchange"]["name"]

    def test_environment(self, monkeypatch):
        monkeypatch.setenv("SCREENER_BATCH_SIZE", "7")
        monkeypatch.setenv("HTTPS_PROXY", "http://127.0.0.1:7897")
        config = cli.build_config()
        assert config["retrieval"]["batch_size"] == 7
        assert config["exchange"]["proxy"] == "http://127.0.0.1:7897"


class TestLoadSettings:
    def test_valid(self):
        config, retrieval = cli.load_settings({"retrieval": {"batch_size": 5, "max_concurrency": 3}})
        assert retrieval.batch_size == 5
        assert retrieval.max_concurrency == 3
        assert config["scanner"]["quote_currency"]

    @pytest.mark.parametrize("name,value", [
        ("SCREENER_BATCH_SIZE", "0"),
        ("SCREENER_BATCH_SIZE", "many"),
        ("SCREENER_REQUEST_DELAY", "fast"),
        ("SCREENER_BATCH_DELAY", "-1"),
        ("SCREENER_MAX_CONCURRENCY", "0"),
        ("SCREENER_TIMEOUT_MS", "soon"),
    ])
    def test_malformed_environment(self, monkeypatch, name, value):
        monkeypatch.setenv(name, value)
        with pytest.raises(InvalidParameter):
            cli.load_settings()


class TestMain:
    @pytest.mark.parametrize("name,value", [
        ("SCREENER_BATCH_SIZE", "0"),
        ("SCREENER_REQUEST_DELAY", "fast"),
    ])
    def test_bad_environment_exits_before_network(self, monkeypatch, name, value):
        monkeypatch.setenv(name, value)
        with patch.object(cli, "CCXTConnector") as connector_cls:
            assert cli.main(["--rsi-below", "30"]) == 1
        connector_cls.assert_not_called()

    def test_invalid_interval_exits_before_network(self):
        with patch.object(cli, "CCXTConnector") as connector_cls:
            assert cli.main(["--interval", "7h", "--rsi-below", "30"]) == 1
        connector_cls.assert_not_called()

    def test_missing_filters(self):
        with patch.object(cli, "CCXTConnector") as connector_cls:
            assert cli.main([]) == 1
        connector_cls.assert_not_called()

    def test_limit_out_of_range(self):
        assert cli.main(["--limit", "20", "--rsi-below", "30"]) == 1

    def test_writes_output_file(self, tmp_path):
        out = tmp_path / "results.json"
        with patch.object(cli, "run_scan", AsyncMock(return_value='{"results": []}')):
            assert cli.main(["--rsi-below", "30", "--output-file", str(out)]) == 0
        assert json.loads(out.read_text()) == {"results": []}

    def test_scan_failure_exit_code(self):
        with patch.object(cli, "run_scan", AsyncMock(side_effect=RetrievalFailure("universe exhausted"))):
            assert cli.main(["--rsi-below", "30"]) == 1


class TestRunScan:
    @pytest.mark.asyncio
    async def test_renders_report_and_closes(self, kline_factory):
        source = MagicMock()
        source.list_tradable_pairs = AsyncMock(return_value=["A/USDT"])
        source.get_candles = AsyncMock(return_value=kline_factory([100.0 + i for i in range(100)]))
        source.close = AsyncMock()
        config, retrieval = cli.load_settings({"retrieval": {"inter_request_delay": 0, "inter_batch_delay": 0}})
        args = _parse("--price-min", "1", "--output", "json")

        with patch.object(cli, "CCXTConnector", return_value=source):
            output = await cli.run_scan(args, cli.criteria_from_args(args), config, retrieval)

        data = json.loads(output)
        assert data["totalScanned"] == 1
        assert data["results"][0]["symbol"] == "A/USDT"
        source.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_closes_on_failure(self):
        source = MagicMock()
        source.list_tradable_pairs = AsyncMock(return_value=[])
        source.close = AsyncMock()
        args = _parse("--price-min", "1", "--output", "table")

        with patch.object(cli, "CCXTConnector", return_value=source):
            with pytest.raises(RetrievalFailure):
                await cli.run_scan(args, cli.criteria_from_args(args), *cli.load_settings())

        source.close.assert_awaited_once()
