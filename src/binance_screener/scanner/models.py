"""Models for scan results."""

from datetime import datetime, timezone
from typing import List

from pydantic import BaseModel, ConfigDict, Field

from ..core.models import IndicatorSnapshot, CrossSignals
from ..filters.criteria import FilterCriteria


class ScanResult(BaseModel):
    """An instrument that satisfied the filter criteria."""

    model_config = ConfigDict(frozen=True)

    symbol: str
    price: float
    indicators: IndicatorSnapshot
    crosses: CrossSignals
    score: float = Field(ge=0.0, le=100.0)

    def __lt__(self, other: "ScanResult") -> bool:
        return self.score < other.score


class ScanReport(BaseModel):
    """Terminal artifact of one scan."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    interval: str
    filters: FilterCriteria
    results: List[ScanResult] = Field(default_factory=list, description="Ordered by score, highest first")
    total_scanned: int = Field(default=0, description="Series that reached analysis")
    matched_count: int = Field(default=0, description="Matches before truncation")
