"""
Core Market Data Models

This module contains the canonical candle record used by the analysis core:
- CandleSize: Enumeration of supported exchange candle granularities
- Candle: OHLCV bar keyed by unix time in seconds
- normalize_exchange_candles: Raw exchange rows to sorted Candle records

Exchange rows follow the Coinbase Exchange ordering
``[time, low, high, open, close, volume]``. The OHLC relationship
(low <= open, close <= high) is deliberately not enforced: exchange prints
occasionally violate it and the statistics must still be computed.
"""

import math
from datetime import datetime, timezone
from enum import Enum
from numbers import Real
from typing import Any, Iterable, List, Sequence

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CandleSize(str, Enum):
    """Supported candle sizes and their exchange granularity."""

    ONE_MINUTE = "1-minute"
    FIVE_MINUTES = "5-minute"
    FIFTEEN_MINUTES = "15-minute"
    ONE_HOUR = "1-hour"
    SIX_HOURS = "6-hour"
    ONE_DAY = "1-day"

    @property
    def granularity(self) -> int:
        """Candle duration in seconds."""
        mapping = {
            "1-minute": 60,
            "5-minute": 300,
            "15-minute": 900,
            "1-hour": 3600,
            "6-hour": 21600,
            "1-day": 86400,
        }
        return mapping[self.value]

    @classmethod
    def parse(cls, value: Any) -> "CandleSize":
        """Resolve a candle size label, listing the valid ones on failure."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip())
        except ValueError:
            valid = ", ".join(size.value for size in cls)
            raise ValueError(
                f"{value} is not a recognized candle size. Valid candle sizes include: {valid}"
            ) from None


class Candle(BaseModel):
    """
    OHLCV candle with unix-second timestamp.

    Instances are immutable; the analysis core only ever reads them.
    """

    time: int = Field(..., description="Candle open time in unix seconds")
    open: float = Field(..., description="Opening price")
    high: float = Field(..., description="Highest price")
    low: float = Field(..., description="Lowest price")
    close: float = Field(..., description="Closing price")
    volume: float = Field(..., description="Traded volume")

    model_config = ConfigDict(frozen=True)

    @field_validator('time', mode='before')
    @classmethod
    def validate_time(cls, v) -> int:
        """Accept integral floats from JSON price history files."""
        if isinstance(v, float) and v.is_integer():
            return int(v)
        return v

    @property
    def height(self) -> float:
        """Signed body height (positive for bullish candles)."""
        return self.close - self.open

    @property
    def body_size(self) -> float:
        """Absolute body height."""
        return abs(self.close - self.open)

    @property
    def upper_wick(self) -> float:
        """Distance between the high and the close."""
        return abs(self.high - self.close)

    @property
    def is_bullish(self) -> bool:
        """Check if candle is bullish (close > open)."""
        return self.close > self.open

    @property
    def timestamp(self) -> datetime:
        """Open time as a timezone-aware UTC datetime."""
        return datetime.fromtimestamp(self.time, tz=timezone.utc)

    @classmethod
    def from_exchange_row(cls, row: Sequence[Any]) -> "Candle":
        """
        Create a Candle from a ``[time, low, high, open, close, volume]`` row.

        Raises:
            ValueError: If the row has fewer than six numeric positions
        """
        if isinstance(row, (str, bytes)) or not isinstance(row, Sequence) or len(row) < 6:
            raise ValueError(f"Malformed candle row, expected 6 numeric values: {row!r}")

        values = row[:6]
        for value in values:
            if isinstance(value, bool) or not isinstance(value, Real) or math.isnan(value):
                raise ValueError(f"Malformed candle row, non-numeric value {value!r} in {row!r}")

        time, low, high, open_, close, volume = values
        return cls(time=time, low=low, high=high, open=open_, close=close, volume=volume)

    def to_exchange_row(self) -> List[float]:
        """Convert back to the exchange row ordering."""
        return [self.time, self.low, self.high, self.open, self.close, self.volume]


def normalize_exchange_candles(raw_rows: Iterable[Sequence[Any]]) -> List[Candle]:
    """
    Convert raw exchange rows into Candle records sorted ascending by time.

    The sort is stable and no deduplication is performed, so rows sharing a
    timestamp keep their relative order.
    """
    candles = [Candle.from_exchange_row(row) for row in raw_rows]
    candles.sort(key=lambda candle: candle.time)
    return candles
