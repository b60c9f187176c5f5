"""Market scanner: fetch, analyse, filter and rank instruments."""

import logging
from datetime import datetime, timezone
from typing import Dict, List, Mapping, Optional, Tuple

from ..core.enums import Interval
from ..core.errors import InsufficientData, InvalidParameter, RetrievalFailure
from ..core.models import OHLCSeries
from ..data.connector import ExchangeDataSource
from ..data.retrieval import ProgressCallback, RetrievalConfig, RetrievalOrchestrator
from ..filters.criteria import FilterCriteria
from ..filters.evaluator import matches
from ..filters.scorer import score
from ..indicators.snapshot import build_snapshot
from .models import ScanReport, ScanResult
from .universe import top_by_volume

logger = logging.getLogger(__name__)

MIN_LIMIT = 50
MAX_LIMIT = 1000


class MarketScanner:
    """
    Scans all tradable pairs on an exchange, computes indicators for each,
    keeps those matching the filter criteria and ranks them by score.
    """

    def __init__(
        self,
        source: ExchangeDataSource,
        retrieval_config: Optional[RetrievalConfig] = None,
        quote_currency: str = "USDT",
        orchestrator: Optional[RetrievalOrchestrator] = None,
    ):
        self.source = source
        self.quote_currency = quote_currency
        self.orchestrator = orchestrator or RetrievalOrchestrator(source, retrieval_config)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def scan(
        self,
        criteria: FilterCriteria,
        interval: str = "4h",
        limit: int = 100,
        top_volume: int = 0,
        max_results: int = 0,
        progress: Optional[ProgressCallback] = None,
    ) -> ScanReport:
        """
        Full market scan.

        Parameters are validated before any request is made; an invalid
        parameter raises InvalidParameter. Per-instrument failures are
        skipped. Raises RetrievalFailure only when the universe cannot be
        built or no instrument could be fetched at all.
        """
        self.validate_parameters(criteria, interval, limit, top_volume, max_results)

        symbols = await self._build_universe(top_volume)

        logger.info(f"Scanning {len(symbols)} symbols on {interval} with {limit} candles")
        series_map = await self.orchestrator.fetch_series(symbols, interval, limit, progress)
        if not series_map:
            raise RetrievalFailure(f"Universe exhausted: all {len(symbols)} symbol fetches failed")

        results, scanned = self.analyze(series_map, criteria)
        matched_count = len(results)
        if max_results > 0:
            results = results[:max_results]

        logger.info(f"Scan complete: {matched_count} matches out of {scanned} analysed")
        return ScanReport(
            timestamp=datetime.now(timezone.utc),
            interval=interval,
            filters=criteria,
            results=results,
            total_scanned=scanned,
            matched_count=matched_count,
        )

    def analyze(
        self,
        series_map: Mapping[str, OHLCSeries],
        criteria: Optional[FilterCriteria],
    ) -> Tuple[List[ScanResult], int]:
        """Snapshot, filter and score every series.

        Returns results sorted by score (highest first) and the number of
        series analysed, including those too short for the indicators.
        """
        results: List[ScanResult] = []
        scanned = 0

        for symbol, series in series_map.items():
            scanned += 1
            try:
                snapshot = build_snapshot(series)
            except InsufficientData as e:
                logger.warning(f"Skipping {symbol}: {e}")
                continue

            if not matches(snapshot, criteria):
                continue

            results.append(ScanResult(
                symbol=symbol,
                price=snapshot.price,
                indicators=snapshot,
                crosses=snapshot.crosses,
                score=score(snapshot),
            ))

        results.sort(key=lambda r: r.score, reverse=True)
        return results, scanned

    @staticmethod
    def validate_parameters(
        criteria: FilterCriteria,
        interval: str,
        limit: int,
        top_volume: int = 0,
        max_results: int = 0,
    ) -> None:
        """Raise InvalidParameter for anything that would make the scan meaningless."""
        if interval not in Interval.values():
            raise InvalidParameter(
                f"Invalid interval: {interval}. Valid intervals: {', '.join(Interval.values())}"
            )
        if isinstance(limit, bool) or not isinstance(limit, int) or not MIN_LIMIT <= limit <= MAX_LIMIT:
            raise InvalidParameter(f"Limit must be between {MIN_LIMIT} and {MAX_LIMIT}, got {limit!r}")
        if top_volume < 0:
            raise InvalidParameter(f"top_volume must be non-negative, got {top_volume}")
        if max_results < 0:
            raise InvalidParameter(f"max_results must be non-negative, got {max_results}")
        if not isinstance(criteria, FilterCriteria):
            raise InvalidParameter(f"Expected FilterCriteria, got {type(criteria).__name__}")
        if criteria.is_empty():
            raise InvalidParameter("Please specify at least one filter")

    # ------------------------------------------------------------------
    # Universe
    # ------------------------------------------------------------------

    async def _build_universe(self, top_volume: int) -> List[str]:
        symbols = await self.source.list_tradable_pairs(self.quote_currency)
        if not symbols:
            raise RetrievalFailure(f"No tradable {self.quote_currency} pairs found")
        logger.info(f"Found {len(symbols)} {self.quote_currency} trading pairs")

        if top_volume > 0:
            tickers: Dict[str, Dict] = await self.orchestrator.fetch_tickers(symbols)
            symbols = top_by_volume(tickers, top_volume)

        return symbols
