"""Filter criteria: one optional, validated section per indicator category."""

import logging
from typing import Any, Dict, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from pydantic.alias_generators import to_camel

from ..core.enums import MAPeriod
from ..core.errors import InvalidParameter

logger = logging.getLogger(__name__)


class _Section(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        extra='forbid',
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def is_empty(self) -> bool:
        """True when no field constrains anything."""
        return all(
            getattr(self, name) == info.default
            for name, info in type(self).model_fields.items()
        )


class RSIFilter(_Section):
    below: Optional[float] = Field(default=None, description="Match when RSI < value")
    above: Optional[float] = Field(default=None, description="Match when RSI > value")
    between: Optional[Tuple[float, float]] = Field(default=None, description="Match when min <= RSI <= max")

    @field_validator('between')
    @classmethod
    def validate_between(cls, v):
        if v is not None and v[0] > v[1]:
            raise ValueError(f"RSI range minimum {v[0]} exceeds maximum {v[1]}")
        return v


class MACDFilter(_Section):
    bullish: bool = Field(default=False, description="Require a bullish histogram cross")
    bearish: bool = Field(default=False, description="Require a bearish histogram cross")
    histogram_positive: Optional[bool] = Field(default=None, description="Require histogram sign")


class MAFilter(_Section):
    golden_cross: bool = Field(default=False, description="Require MA20 crossing above MA50")
    death_cross: bool = Field(default=False, description="Require MA20 crossing below MA50")
    above: Optional[MAPeriod] = Field(default=None, description="Require price above this MA")
    below: Optional[MAPeriod] = Field(default=None, description="Require price below this MA")


class BollingerFilter(_Section):
    touch_upper: bool = False
    touch_lower: bool = False
    below_lower: bool = False
    above_upper: bool = False
    narrow: bool = False
    wide: bool = False


class PriceFilter(_Section):
    min: Optional[float] = Field(default=None, ge=0, description="Minimum price")
    max: Optional[float] = Field(default=None, ge=0, description="Maximum price")

    @model_validator(mode='after')
    def validate_range(self):
        if self.min is not None and self.max is not None and self.min > self.max:
            raise ValueError(f"Price minimum {self.min} exceeds maximum {self.max}")
        return self


class FilterCriteria(_Section):
    """Complete set of filters for one scan. Absent sections are unconstrained."""

    rsi: Optional[RSIFilter] = None
    macd: Optional[MACDFilter] = None
    ma: Optional[MAFilter] = None
    bollinger: Optional[BollingerFilter] = None
    price: Optional[PriceFilter] = None

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "FilterCriteria":
        """Build criteria from a loosely-typed mapping such as parsed JSON.

        Raises InvalidParameter when the mapping does not describe valid
        criteria.
        """
        if data is None:
            return cls()
        if not isinstance(data, Mapping):
            raise InvalidParameter(f"Filter criteria must be a mapping, got {type(data).__name__}")
        try:
            return cls.model_validate(dict(data))
        except ValidationError as e:
            logger.error(f"Rejected filter criteria {dict(data)!r}: {e}")
            raise InvalidParameter(f"Invalid filter criteria: {e}") from e

    def is_empty(self) -> bool:
        sections = (self.rsi, self.macd, self.ma, self.bollinger, self.price)
        return all(section is None or section.is_empty() for section in sections)

    def to_dict(self) -> Dict[str, Any]:
        """Wire representation with camelCase keys and unset fields omitted."""
        return self.model_dump(mode='json', by_alias=True, exclude_defaults=True)
