"""Exception hierarchy for the screener."""

from typing import Optional


class ScreenerError(Exception):
    """Base class for all screener errors."""


class InvalidParameter(ScreenerError, ValueError):
    """Malformed scan parameter or filter criteria. Fatal, raised before any network activity."""


class InsufficientData(ScreenerError, ValueError):
    """Series too short for the requested indicator."""

    def __init__(self, indicator: str, required: int, available: int):
        self.indicator = indicator
        self.required = required
        self.available = available
        super().__init__(
            f"Not enough data for {indicator} calculation. "
            f"Need at least {required} data points, got {available}."
        )


class RetrievalFailure(ScreenerError):
    """Fetching data for one instrument (or the universe) failed."""

    def __init__(self, message: str, symbol: Optional[str] = None):
        self.symbol = symbol
        super().__init__(message)
