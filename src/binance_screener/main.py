"""Command-line entry point for the technical indicator screener."""

import argparse
import asyncio
import logging
import os
import sys
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from dotenv import load_dotenv

from .core.enums import Interval
from .core.errors import InvalidParameter, ScreenerError
from .data.connector import CCXTConnector
from .data.retrieval import RetrievalConfig
from .filters.criteria import FilterCriteria
from .scanner.market_scanner import MarketScanner
from .scanner.report import describe_filters, render_json, render_table

logger = logging.getLogger(__name__)


def _default_config() -> Dict:
    """Default configuration, overridable from the environment."""
    return {
        'exchange': {
            'name': os.getenv('SCREENER_EXCHANGE', 'binance'),
            'proxy': os.getenv('HTTPS_PROXY') or os.getenv('HTTP_PROXY'),
            'timeout': int(os.getenv('SCREENER_TIMEOUT_MS', '30000')),
        },
        'retrieval': {
            'batch_size': int(os.getenv('SCREENER_BATCH_SIZE', '20')),
            'inter_request_delay': float(os.getenv('SCREENER_REQUEST_DELAY', '0.1')),
            'inter_batch_delay': float(os.getenv('SCREENER_BATCH_DELAY', '1.0')),
            'max_concurrency': int(os.getenv('SCREENER_MAX_CONCURRENCY', '1')),
        },
        'scanner': {
            'quote_currency': os.getenv('SCREENER_QUOTE', 'USDT'),
        },
    }


def build_config(overrides: Optional[Dict] = None) -> Dict:
    """Merge *overrides* one level deep into the defaults."""
    config = _default_config()
    for key, val in (overrides or {}).items():
        if isinstance(val, dict) and isinstance(config.get(key), dict):
            config[key].update(val)
        else:
            config[key] = val
    return config


def load_settings(overrides: Optional[Dict] = None) -> Tuple[Dict, RetrievalConfig]:
    """Build and validate the full configuration.

    Malformed environment values raise InvalidParameter.
    """
    try:
        config = build_config(overrides)
        retrieval = RetrievalConfig(**config['retrieval'])
    except ValueError as e:
        # pydantic's ValidationError is a ValueError too
        raise InvalidParameter(f"Invalid configuration: {e}") from e
    return config, retrieval


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='binance-screener',
        description='Scan exchange pairs and filter them by technical indicators.',
        epilog=(
            'examples:\n'
            '  binance-screener --rsi-below 30\n'
            '  binance-screener --macd-bullish --interval 4h\n'
            '  binance-screener --ma-golden-cross --rsi-between 40,60\n'
            '  binance-screener --rsi-below 30 --top-volume 100 --output-file results.json'
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument('-i', '--interval', default='4h',
                        help=f"Candle interval (default: 4h). Valid: {', '.join(Interval.values())}")
    parser.add_argument('-n', '--limit', type=int, default=100,
                        help='Number of candles to fetch (default: 100, range: 50-1000)')

    rsi = parser.add_argument_group('RSI filters')
    rsi.add_argument('--rsi-below', type=float, help='RSI below value (e.g. 30 for oversold)')
    rsi.add_argument('--rsi-above', type=float, help='RSI above value (e.g. 70 for overbought)')
    rsi.add_argument('--rsi-between', metavar='MIN,MAX', help='RSI between two values (e.g. 40,60)')

    macd = parser.add_argument_group('MACD filters')
    macd.add_argument('--macd-bullish', action='store_true', help='Histogram crossed from negative to positive')
    macd.add_argument('--macd-bearish', action='store_true', help='Histogram crossed from positive to negative')
    macd.add_argument('--macd-histogram-positive', choices=['true', 'false'], help='Histogram sign')

    ma = parser.add_argument_group('Moving average filters')
    ma.add_argument('--ma-golden-cross', action='store_true', help='MA20 crosses above MA50')
    ma.add_argument('--ma-death-cross', action='store_true', help='MA20 crosses below MA50')
    ma.add_argument('--ma-above', type=int, choices=[20, 50], help='Price above MA period')
    ma.add_argument('--ma-below', type=int, choices=[20, 50], help='Price below MA period')

    bb = parser.add_argument_group('Bollinger Band filters')
    bb.add_argument('--bb-lower', action='store_true', help='Price touching lower band')
    bb.add_argument('--bb-upper', action='store_true', help='Price touching upper band')
    bb.add_argument('--bb-below-lower', action='store_true', help='Price below lower band')
    bb.add_argument('--bb-above-upper', action='store_true', help='Price above upper band')
    bb.add_argument('--bb-narrow', action='store_true', help='Narrow bands (low volatility)')
    bb.add_argument('--bb-wide', action='store_true', help='Wide bands (high volatility)')

    price = parser.add_argument_group('Price filters')
    price.add_argument('--price-min', type=float, help='Minimum price')
    price.add_argument('--price-max', type=float, help='Maximum price')

    out = parser.add_argument_group('Output options')
    out.add_argument('--max-results', type=int, default=0, help='Limit number of results')
    out.add_argument('--top-volume', type=int, default=0, help='Only scan top N pairs by 24h volume')
    out.add_argument('-o', '--output', choices=['json', 'table'], default='json', help='Output format')
    out.add_argument('--output-file', type=Path, help='Write output to file')
    out.add_argument('-v', '--verbose', action='store_true', help='Debug logging')
    return parser


def criteria_from_args(args: argparse.Namespace) -> FilterCriteria:
    """Translate parsed CLI flags into FilterCriteria."""
    filters: Dict[str, Dict[str, Any]] = {}

    rsi: Dict[str, Any] = {}
    if args.rsi_below is not None:
        rsi['below'] = args.rsi_below
    if args.rsi_above is not None:
        rsi['above'] = args.rsi_above
    if args.rsi_between is not None:
        try:
            rsi['between'] = [float(v) for v in args.rsi_between.split(',')]
        except ValueError as e:
            raise InvalidParameter(f"Invalid --rsi-between value: {args.rsi_between}") from e
    if rsi:
        filters['rsi'] = rsi

    macd: Dict[str, Any] = {}
    if args.macd_bullish:
        macd['bullish'] = True
    if args.macd_bearish:
        macd['bearish'] = True
    if args.macd_histogram_positive is not None:
        macd['histogramPositive'] = args.macd_histogram_positive == 'true'
    if macd:
        filters['macd'] = macd

    ma: Dict[str, Any] = {}
    if args.ma_golden_cross:
        ma['goldenCross'] = True
    if args.ma_death_cross:
        ma['deathCross'] = True
    if args.ma_above is not None:
        ma['above'] = args.ma_above
    if args.ma_below is not None:
        ma['below'] = args.ma_below
    if ma:
        filters['ma'] = ma

    bollinger: Dict[str, Any] = {}
    for flag, key in (
        ('bb_lower', 'touchLower'),
        ('bb_upper', 'touchUpper'),
        ('bb_below_lower', 'belowLower'),
        ('bb_above_upper', 'aboveUpper'),
        ('bb_narrow', 'narrow'),
        ('bb_wide', 'wide'),
    ):
        if getattr(args, flag):
            bollinger[key] = True
    if bollinger:
        filters['bollinger'] = bollinger

    price: Dict[str, Any] = {}
    if args.price_min is not None:
        price['min'] = args.price_min
    if args.price_max is not None:
        price['max'] = args.price_max
    if price:
        filters['price'] = price

    return FilterCriteria.from_mapping(filters)


class _ProgressPrinter:
    """Writes scan progress to stderr every 10%."""

    def __init__(self, stream=None):
        self.stream = stream or sys.stderr
        self._last = 0

    def __call__(self, processed: int, total: int, symbol: str):
        pct = processed * 100 // total if total else 100
        if pct % 10 == 0 and pct != self._last:
            self.stream.write(f"\rProgress: {pct}% ({processed}/{total})")
            self.stream.flush()
            self._last = pct
        if processed == total:
            self.stream.write("\n")


def create_connector(config: Dict) -> CCXTConnector:
    exchange_cfg = dict(config['exchange'])
    exchange_name = exchange_cfg.pop('name')
    return CCXTConnector(exchange_name, exchange_cfg)


async def run_scan(
    args: argparse.Namespace,
    criteria: FilterCriteria,
    config: Dict,
    retrieval: RetrievalConfig,
) -> str:
    connector = create_connector(config)
    scanner = MarketScanner(
        connector,
        retrieval,
        quote_currency=config['scanner']['quote_currency'],
    )
    try:
        report = await scanner.scan(
            criteria,
            interval=args.interval,
            limit=args.limit,
            top_volume=args.top_volume,
            max_results=args.max_results,
            progress=_ProgressPrinter(),
        )
    finally:
        await connector.close()

    if args.output == 'table':
        return render_table(report)
    return render_json(report)


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stderr,
    )

    try:
        criteria = criteria_from_args(args)
        MarketScanner.validate_parameters(
            criteria, args.interval, args.limit, args.top_volume, args.max_results
        )
        config, retrieval = load_settings()
    except InvalidParameter as e:
        logger.error(str(e))
        return 1

    logger.info(f"Filters: {describe_filters(criteria)}")
    start = time.monotonic()
    try:
        output = asyncio.run(run_scan(args, criteria, config, retrieval))
    except ScreenerError as e:
        logger.error(f"Scan failed: {e}")
        return 1
    logger.info(f"Scan completed in {time.monotonic() - start:.1f}s")

    if args.output_file:
        args.output_file.write_text(output)
        logger.info(f"Results written to {args.output_file}")
    else:
        print(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
