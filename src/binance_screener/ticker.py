"""Command-line price lookup: 24h tickers, candle summaries and popular pairs."""

import argparse
import asyncio
import logging
import sys
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

from .core.enums import Interval
from .core.errors import InvalidParameter, RetrievalFailure, ScreenerError
from .core.models import OHLCSeries
from .data.connector import ExchangeDataSource
from .data.retrieval import RetrievalConfig, RetrievalOrchestrator
from .main import create_connector, load_settings
from .scanner.report import format_price

logger = logging.getLogger(__name__)

DEFAULT_QUOTE = 'USDT'
KNOWN_QUOTES = ('USDT', 'BUSD', 'USDC')
POPULAR_BASES = [
    'BTC', 'ETH', 'BNB', 'SOL', 'XRP', 'ADA', 'DOGE', 'MATIC',
    'DOT', 'AVAX', 'LINK', 'UNI', 'LTC', 'BCH', 'ATOM', 'ETC',
]

KLINE_INTERVAL = '15m'
KLINE_LIMIT = 96
MAX_KLINE_LIMIT = 1000
RECENT_CANDLES = 5

INTERVAL_LABELS = {
    '1m': '1 minute', '3m': '3 minutes', '5m': '5 minutes', '15m': '15 minutes',
    '30m': '30 minutes', '1h': '1 hour', '2h': '2 hours', '4h': '4 hours',
    '6h': '6 hours', '8h': '8 hours', '12h': '12 hours', '1d': '1 day',
    '3d': '3 days', '1w': '1 week', '1M': '1 month',
}


def normalize_symbol(raw: str, quote: str = DEFAULT_QUOTE) -> str:
    """Turn user input such as ``btc``, ``ETHUSDT`` or ``sol/usdc`` into ``BASE/QUOTE``.

    Input without a recognised quote asset gets *quote* appended.
    """
    symbol = raw.strip().upper()
    if not symbol:
        raise InvalidParameter("Symbol must not be empty")
    if '/' in symbol:
        return symbol
    for known in KNOWN_QUOTES:
        if symbol.endswith(known) and len(symbol) > len(known):
            return f"{symbol[:-len(known)]}/{known}"
    return f"{symbol}/{quote}"


def format_change(percent: float) -> str:
    """24h change with a direction arrow, e.g. ``↑ +1.25%``."""
    arrow = '↑' if percent >= 0 else '↓'
    sign = '+' if percent >= 0 else ''
    return f"{arrow} {sign}{percent:.2f}%"


def format_volume(volume: float) -> str:
    if volume >= 1e9:
        return f"{volume / 1e9:.2f}B"
    if volume >= 1e6:
        return f"{volume / 1e6:.2f}M"
    if volume >= 1e3:
        return f"{volume / 1e3:.2f}K"
    return f"{volume:.2f}"


def render_ticker(symbol: str, ticker: Dict) -> str:
    lines = [
        "",
        symbol,
        '─' * len(symbol),
        f"  Price: ${format_price(ticker.get('lastPrice') or 0.0)}",
    ]
    change = ticker.get('priceChangePercent')
    if change is not None:
        lines.append(f"  24h:  {format_change(float(change))}")
    return "\n".join(lines) + "\n"


class KlineSummary(BaseModel):
    """Aggregate statistics over a candle window."""

    model_config = ConfigDict(frozen=True)

    symbol: str
    interval: str
    candles: int = Field(ge=1)
    start: datetime = Field(description="Open time of the first candle")
    end: datetime = Field(description="Close time of the last candle")
    open: float
    close: float
    high: float
    low: float
    volume: float

    @property
    def change_pct(self) -> float:
        if self.open == 0:
            return 0.0
        return (self.close - self.open) / self.open * 100

    @classmethod
    def from_series(cls, series: OHLCSeries) -> "KlineSummary":
        df = series.ohlcv
        return cls(
            symbol=series.symbol,
            interval=series.interval,
            candles=len(df),
            start=df.index[0].to_pydatetime(),
            end=df['close_time'].iloc[-1].to_pydatetime(),
            open=float(df['open'].iloc[0]),
            close=float(df['close'].iloc[-1]),
            high=float(df['high'].max()),
            low=float(df['low'].min()),
            volume=float(df['volume'].sum()),
        )


def _format_time(ts: datetime) -> str:
    return ts.strftime('%m-%d %H:%M')


def render_klines(series: OHLCSeries, recent: int = RECENT_CANDLES) -> str:
    summary = KlineSummary.from_series(series)
    change = summary.change_pct
    label = INTERVAL_LABELS.get(summary.interval, summary.interval)
    lines = [
        "",
        f"{summary.symbol} - {label} Kline Data ({summary.candles} candles)",
        '═' * 60,
        f"  Period:     {_format_time(summary.start)} → {_format_time(summary.end)}",
        f"  Open:       ${format_price(summary.open)}",
        f"  Close:      ${format_price(summary.close)} ({'+' if change >= 0 else ''}{change:.2f}%)",
        f"  High:       ${format_price(summary.high)}",
        f"  Low:        ${format_price(summary.low)}",
        f"  Volume:     {format_volume(summary.volume)}",
        "",
    ]

    tail = series.ohlcv.tail(recent)
    lines.append(f"  Recent {len(tail)} candles:")
    lines.append("  " + '─' * 50)
    for open_time, row in tail.iterrows():
        candle_change = (row['close'] - row['open']) / row['open'] * 100 if row['open'] else 0.0
        marker = '▲' if row['close'] >= row['open'] else '▼'
        lines.append(
            f"    {_format_time(open_time)}  O:{format_price(row['open'])} H:{format_price(row['high'])} "
            f"L:{format_price(row['low'])} C:{format_price(row['close'])} {marker} "
            f"{'+' if candle_change >= 0 else ''}{candle_change:.2f}%"
        )
    return "\n".join(lines) + "\n"


def render_popular(tickers: Dict[str, Dict]) -> str:
    lines = ["", "Popular Trading Pairs", '═' * 40]
    for symbol, ticker in tickers.items():
        price = float(ticker.get('lastPrice') or 0.0)
        formatted = f"${price:.2f}" if price >= 1 else f"${price:.6f}"
        lines.append(f"  {symbol:<10} {formatted}")
    return "\n".join(lines) + "\n"


# ----------------------------------------------------------------------
# Lookups
# ----------------------------------------------------------------------

async def lookup_prices(
    source: ExchangeDataSource,
    orchestrator: RetrievalOrchestrator,
    symbols: Sequence[str],
) -> Tuple[Dict[str, Dict], List[str]]:
    """24h tickers for *symbols*; returns found tickers and the symbols that failed."""
    normalized = list(dict.fromkeys(normalize_symbol(s) for s in symbols))
    if len(normalized) == 1:
        symbol = normalized[0]
        return {symbol: await source.get_24h_ticker(symbol)}, []

    tickers = await orchestrator.fetch_tickers(normalized)
    missing = [s for s in normalized if s not in tickers]
    return tickers, missing


async def lookup_klines(
    source: ExchangeDataSource,
    symbol: str,
    interval: str = KLINE_INTERVAL,
    limit: int = KLINE_LIMIT,
) -> OHLCSeries:
    if interval not in Interval.values():
        raise InvalidParameter(
            f"Invalid interval: {interval}. Available intervals: {', '.join(Interval.values())}"
        )
    if limit < 1:
        raise InvalidParameter(f"Candle count must be positive, got {limit}")
    limit = min(limit, MAX_KLINE_LIMIT)

    symbol = normalize_symbol(symbol)
    rows = await source.get_candles(symbol, interval, limit)
    if not rows:
        raise RetrievalFailure(f"No candles returned for {symbol}", symbol=symbol)
    try:
        return OHLCSeries.from_klines(symbol, interval, rows)
    except (ValueError, TypeError) as e:
        raise RetrievalFailure(f"Unparseable candles for {symbol}: {e}", symbol=symbol) from e


async def lookup_popular(orchestrator: RetrievalOrchestrator) -> Dict[str, Dict]:
    return await orchestrator.fetch_tickers([f"{base}/{DEFAULT_QUOTE}" for base in POPULAR_BASES])


# ----------------------------------------------------------------------
# CLI
# ----------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='binance-ticker',
        description='Real-time prices and candle summaries. '
                    'Symbols without a quote currency get USDT appended.',
        epilog=(
            'examples:\n'
            '  binance-ticker BTC\n'
            '  binance-ticker ETH SOL\n'
            '  binance-ticker --list\n'
            '  binance-ticker --klines ETH -i 1h -n 24'
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument('symbols', nargs='*', help='Symbols to look up, e.g. BTC or ETHUSDT')
    parser.add_argument('--list', action='store_true', help='List popular trading pairs')
    parser.add_argument('--klines', nargs='?', const='BTC', metavar='SYMBOL',
                        help='Show candle data for a symbol (default: BTC)')
    parser.add_argument('-i', '--interval', default=KLINE_INTERVAL,
                        help=f'Candle interval for --klines (default: {KLINE_INTERVAL})')
    parser.add_argument('-n', '--limit', type=int, default=KLINE_LIMIT,
                        help=f'Candle count for --klines (default: {KLINE_LIMIT}, max: {MAX_KLINE_LIMIT})')
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')
    return parser


async def run_ticker(args: argparse.Namespace, config: Dict, retrieval: RetrievalConfig) -> str:
    connector = create_connector(config)
    orchestrator = RetrievalOrchestrator(connector, retrieval)
    try:
        if args.list:
            return render_popular(await lookup_popular(orchestrator))

        if args.klines is not None:
            series = await lookup_klines(connector, args.klines, args.interval, args.limit)
            return render_klines(series)

        tickers, missing = await lookup_prices(connector, orchestrator, args.symbols)
        for symbol in missing:
            logger.error(f"Failed to fetch {symbol}")
        if not tickers:
            raise RetrievalFailure(f"No prices found for {', '.join(missing)}")
        return "".join(render_ticker(s, t) for s, t in tickers.items())
    finally:
        await connector.close()


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stderr,
    )

    if not (args.symbols or args.list or args.klines is not None):
        parser.print_help()
        return 0

    try:
        config, retrieval = load_settings()
    except InvalidParameter as e:
        logger.error(str(e))
        return 1

    try:
        output = asyncio.run(run_ticker(args, config, retrieval))
    except ScreenerError as e:
        logger.error(str(e))
        return 1

    print(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
