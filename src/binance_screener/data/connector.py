"""Exchange data source interface and CCXT implementation."""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional
import logging

import ccxt.async_support as ccxt

from ..core.errors import RetrievalFailure

logger = logging.getLogger(__name__)

LEVERAGED_TOKEN_SUFFIXES = ('UP', 'DOWN', 'BULL', 'BEAR')


class ExchangeDataSource(ABC):
    """Abstract base class for exchange data sources."""

    @abstractmethod
    async def list_tradable_pairs(self, quote_asset: str) -> List[str]:
        """List symbols currently trading against *quote_asset*."""
        pass

    @abstractmethod
    async def get_candles(self, symbol: str, interval: str, limit: int) -> List[List]:
        """Get raw candles as ``[openTime, open, high, low, close, volume, closeTime]`` rows."""
        pass

    @abstractmethod
    async def get_24h_ticker(self, symbol: str) -> Dict:
        """Get ``{quoteVolume, lastPrice, priceChangePercent}`` for a symbol."""
        pass

    @abstractmethod
    async def close(self):
        """Close connection."""
        pass


class CCXTConnector(ExchangeDataSource):
    """CCXT-based data source for spot markets."""

    def __init__(self, exchange_name: str = 'binance', config: Optional[Dict] = None):
        """Initialize CCXT connector.

        Args:
            exchange_name: CCXT exchange id
            config: Connection settings for this connector only. Recognised
                    keys are ``timeout`` (ms), ``proxy`` (HTTPS proxy URL) and
                    ``blacklist`` (symbols never listed); anything else is
                    passed through to the CCXT constructor.
        """
        self.exchange_name = exchange_name
        self.config = dict(config or {})
        self.blacklist = set(self.config.pop('blacklist', []) or [])
        proxy = self.config.pop('proxy', None)

        exchange_config = {
            'enableRateLimit': True,
            'timeout': self.config.pop('timeout', 30000),
            'options': {'defaultType': 'spot'},
            **self.config,
        }
        if proxy:
            exchange_config['httpsProxy'] = proxy

        exchange_class = getattr(ccxt, exchange_name)
        self.exchange = exchange_class(exchange_config)

        logger.info(f"Initialized CCXT connector for {exchange_name} (proxy={'yes' if proxy else 'no'})")

    async def list_tradable_pairs(self, quote_asset: str = 'USDT') -> List[str]:
        """Active spot pairs quoted in *quote_asset*, excluding leveraged tokens."""
        try:
            markets = await self.exchange.load_markets()
        except Exception as e:
            logger.error(f"Error loading markets from {self.exchange_name}: {e}")
            raise RetrievalFailure(f"Failed to load markets: {e}") from e

        result: List[str] = []
        for symbol, info in markets.items():
            if symbol in self.blacklist:
                continue
            if not info.get('active', True):
                continue
            if info.get('quote', '') != quote_asset:
                continue
            if not info.get('spot', info.get('type') == 'spot'):
                continue
            if self._is_leveraged_token(info.get('base', '')):
                continue
            result.append(symbol)

        result.sort()
        logger.info(f"Filtered {len(result)} {quote_asset} pairs from {len(markets)} total")
        return result

    @staticmethod
    def _is_leveraged_token(base: str) -> bool:
        return any(base.endswith(suffix) and base != suffix for suffix in LEVERAGED_TOKEN_SUFFIXES)

    async def get_candles(self, symbol: str, interval: str = '4h', limit: int = 100) -> List[List]:
        """Get OHLCV rows with the candle close time appended."""
        try:
            ohlcv = await self.exchange.fetch_ohlcv(symbol, interval, limit=limit)
        except Exception as e:
            logger.error(f"Error fetching OHLCV for {symbol}: {e}")
            raise RetrievalFailure(f"Failed to fetch candles for {symbol}: {e}", symbol=symbol) from e

        interval_ms = ccxt.Exchange.parse_timeframe(interval) * 1000
        rows = [list(row[:6]) + [row[0] + interval_ms - 1] for row in ohlcv]
        logger.debug(f"Retrieved {len(rows)} OHLCV bars for {symbol}")
        return rows

    async def get_24h_ticker(self, symbol: str) -> Dict:
        """Get 24h rolling ticker statistics."""
        try:
            ticker = await self.exchange.fetch_ticker(symbol)
        except Exception as e:
            logger.error(f"Error fetching ticker for {symbol}: {e}")
            raise RetrievalFailure(f"Failed to fetch ticker for {symbol}: {e}", symbol=symbol) from e

        return {
            'symbol': symbol,
            'quoteVolume': ticker.get('quoteVolume') or 0.0,
            'lastPrice': ticker.get('last') or 0.0,
            'priceChangePercent': ticker.get('percentage') or 0.0,
        }

    async def close(self):
        """Close exchange connection."""
        await self.exchange.close()
        logger.info(f"Closed connection to {self.exchange_name}")
