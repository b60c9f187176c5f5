"""Core data models for the screener."""

from typing import List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, model_validator
import pandas as pd
import numpy as np


OHLCV_COLUMNS = ['open', 'high', 'low', 'close', 'volume', 'close_time']


class OHLCSeries(BaseModel):
    """Ordered candle series for one instrument."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    symbol: str = Field(description="Trading symbol")
    interval: str = Field(description="Candle interval, e.g. 4h")
    ohlcv: pd.DataFrame = Field(description="Candles indexed by open time")

    @model_validator(mode='after')
    def validate_ordering(self):
        missing = [c for c in OHLCV_COLUMNS if c not in self.ohlcv.columns]
        if missing:
            raise ValueError(f"OHLCV data for {self.symbol} is missing columns {missing}")
        index = self.ohlcv.index
        if not (index.is_monotonic_increasing and index.is_unique):
            raise ValueError(f"Candles for {self.symbol} are not strictly ascending by open time")
        return self

    @classmethod
    def from_klines(cls, symbol: str, interval: str, klines: Sequence[Sequence]) -> "OHLCSeries":
        """Build a series from raw exchange rows.

        Only the first six positional fields (open time, open, high, low,
        close, volume) plus the close time at index 6 are consumed.
        """
        rows = []
        for k in klines:
            if len(k) < 6:
                raise ValueError(f"Malformed candle for {symbol}: {k!r}")
            close_time = k[6] if len(k) > 6 else None
            rows.append([
                k[0], float(k[1]), float(k[2]), float(k[3]), float(k[4]), float(k[5]),
                close_time,
            ])

        df = pd.DataFrame(rows, columns=['open_time'] + OHLCV_COLUMNS)
        df['open_time'] = pd.to_datetime(df['open_time'], unit='ms', utc=True)
        df['close_time'] = pd.to_datetime(df['close_time'], unit='ms', utc=True)
        df.set_index('open_time', inplace=True)
        return cls(symbol=symbol, interval=interval, ohlcv=df)

    @property
    def closes(self) -> np.ndarray:
        return self.ohlcv['close'].to_numpy(dtype=float)

    def __len__(self) -> int:
        return len(self.ohlcv)


class MACDValue(BaseModel):
    """Latest MACD reading."""

    model_config = ConfigDict(frozen=True)

    value: float = Field(description="MACD line")
    signal: float = Field(description="Signal line")
    histogram: float = Field(description="MACD line minus signal line")


class BollingerValue(BaseModel):
    """Latest Bollinger Band reading."""

    model_config = ConfigDict(frozen=True)

    upper: float
    middle: float
    lower: float

    @property
    def bandwidth(self) -> float:
        """Normalized band width, (upper - lower) / middle."""
        if self.middle == 0:
            return float('inf')
        return (self.upper - self.lower) / self.middle


class CrossSignals(BaseModel):
    """Crossover flags evaluated on the two most recent values."""

    model_config = ConfigDict(frozen=True)

    golden_cross: bool = Field(default=False, description="MA20 crossed above MA50")
    death_cross: bool = Field(default=False, description="MA20 crossed below MA50")
    macd_bullish: bool = Field(default=False, description="Histogram turned positive")
    macd_bearish: bool = Field(default=False, description="Histogram turned negative")

    def active(self) -> List[str]:
        """Human labels for the flags that are set."""
        labels = []
        if self.golden_cross:
            labels.append("Golden Cross")
        if self.death_cross:
            labels.append("Death Cross")
        if self.macd_bullish:
            labels.append("MACD Bullish")
        if self.macd_bearish:
            labels.append("MACD Bearish")
        return labels


class IndicatorSnapshot(BaseModel):
    """Latest indicator values for one series. Never mutated after creation."""

    model_config = ConfigDict(frozen=True)

    rsi: float = Field(description="RSI(14)")
    macd: MACDValue = Field(description="MACD(12, 26, 9)")
    ma20: float = Field(description="SMA(20)")
    ma50: float = Field(description="SMA(50)")
    bollinger: BollingerValue = Field(description="Bollinger Bands(20, 2)")
    price: float = Field(description="Latest close")
    crosses: CrossSignals = Field(default_factory=CrossSignals)
    symbol: Optional[str] = Field(default=None, description="Instrument the snapshot was built for")

    def ma(self, period: int) -> float:
        """Moving average value for a supported period."""
        if period == 20:
            return self.ma20
        if period == 50:
            return self.ma50
        raise ValueError(f"Unsupported MA period: {period}")
