"""Batched, paced retrieval of candle series for many instruments."""

import asyncio
import logging
from typing import Awaitable, Callable, Dict, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from ..core.models import OHLCSeries
from ..core.errors import RetrievalFailure
from .connector import ExchangeDataSource

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, str], None]
SleepFunc = Callable[[float], Awaitable[None]]


class RetrievalConfig(BaseModel):
    """Fixed request cadence for the exchange.

    Pacing is static and does not adapt to throttling responses.
    """

    model_config = ConfigDict(frozen=True)

    batch_size: int = Field(default=20, ge=1, description="Symbols per batch")
    inter_request_delay: float = Field(default=0.1, ge=0, description="Seconds to wait after each request")
    inter_batch_delay: float = Field(default=1.0, ge=0, description="Seconds to wait between batches")
    max_concurrency: int = Field(default=1, ge=1, description="Fetches in flight within one batch")


class RetrievalOrchestrator:
    """
    Fetches candle series for many symbols in fixed-size batches.

    One symbol's failure never affects another: the symbol is logged,
    recorded in ``failures`` and left out of the result.
    """

    def __init__(
        self,
        source: ExchangeDataSource,
        config: Optional[RetrievalConfig] = None,
        sleep: SleepFunc = asyncio.sleep,
    ):
        self.source = source
        self.config = config or RetrievalConfig()
        self._sleep = sleep
        self.failures: Dict[str, RetrievalFailure] = {}

    @staticmethod
    def _batches(symbols: Sequence[str], size: int) -> List[List[str]]:
        return [list(symbols[i:i + size]) for i in range(0, len(symbols), size)]

    # ------------------------------------------------------------------
    # Candles
    # ------------------------------------------------------------------

    async def fetch_series(
        self,
        symbols: Sequence[str],
        interval: str,
        limit: int,
        progress: Optional[ProgressCallback] = None,
    ) -> Dict[str, OHLCSeries]:
        """Fetch series for every symbol; only successful symbols are returned."""
        self.failures = {}
        total = len(symbols)
        fetched: Dict[str, OHLCSeries] = {}
        processed = 0
        semaphore = asyncio.Semaphore(self.config.max_concurrency)

        async def fetch_one(symbol: str):
            nonlocal processed
            async with semaphore:
                try:
                    fetched[symbol] = await self._fetch_symbol(symbol, interval, limit)
                except RetrievalFailure as e:
                    logger.warning(f"Skipping {symbol}: {e}")
                    self.failures[symbol] = e
                processed += 1
                if progress is not None:
                    progress(processed, total, symbol)
                await self._sleep(self.config.inter_request_delay)

        batches = self._batches(symbols, self.config.batch_size)
        for n, batch in enumerate(batches, start=1):
            logger.debug(f"Fetching batch {n}/{len(batches)} ({len(batch)} symbols)")
            if self.config.max_concurrency == 1:
                for symbol in batch:
                    await fetch_one(symbol)
            else:
                await asyncio.gather(*(fetch_one(symbol) for symbol in batch))

            if n < len(batches):
                await self._sleep(self.config.inter_batch_delay)

        logger.info(f"Fetched {len(fetched)}/{total} series ({len(self.failures)} failed)")
        # Preserve input order regardless of completion order
        return {s: fetched[s] for s in symbols if s in fetched}

    async def _fetch_symbol(self, symbol: str, interval: str, limit: int) -> OHLCSeries:
        try:
            klines = await self.source.get_candles(symbol, interval, limit)
        except RetrievalFailure:
            raise
        except Exception as e:
            raise RetrievalFailure(f"Failed to fetch candles for {symbol}: {e}", symbol=symbol) from e

        if not klines:
            raise RetrievalFailure(f"Empty candle payload for {symbol}", symbol=symbol)

        try:
            return OHLCSeries.from_klines(symbol, interval, klines)
        except (ValueError, TypeError) as e:
            raise RetrievalFailure(f"Unparseable candles for {symbol}: {e}", symbol=symbol) from e

    # ------------------------------------------------------------------
    # Tickers
    # ------------------------------------------------------------------

    async def fetch_tickers(self, symbols: Sequence[str]) -> Dict[str, Dict]:
        """Fetch 24h tickers batch by batch, each batch concurrently."""
        tickers: Dict[str, Dict] = {}

        async def fetch_one(symbol: str):
            try:
                ticker = await self.source.get_24h_ticker(symbol)
            except Exception as e:
                logger.warning(f"Skipping ticker for {symbol}: {e}")
                return
            if ticker:
                tickers[symbol] = ticker

        batches = self._batches(symbols, self.config.batch_size)
        for n, batch in enumerate(batches, start=1):
            await asyncio.gather(*(fetch_one(symbol) for symbol in batch))
            if n < len(batches):
                await self._sleep(self.config.inter_batch_delay)

        logger.info(f"Fetched {len(tickers)}/{len(symbols)} tickers")
        return {s: tickers[s] for s in symbols if s in tickers}
