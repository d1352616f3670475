"""
engulfquant Models Package

Candle records and the bullish engulfing analysis result models.
"""

from .market_data import (
    Candle,
    CandleSize,
    normalize_exchange_candles
)

from .analysis import (
    AggregateResult,
    CandleStats,
    EngulfingAlert,
    EngulfingEvent,
    EngulfingParameters,
    ProbabilityPoint,
    TrainingIdentity,
    format_percent,
    format_usd,
    format_utc
)

__all__ = [
    # Market Data Models
    "Candle",
    "CandleSize",
    "normalize_exchange_candles",

    # Analysis Models
    "AggregateResult",
    "CandleStats",
    "EngulfingAlert",
    "EngulfingEvent",
    "EngulfingParameters",
    "ProbabilityPoint",
    "TrainingIdentity",
    "format_percent",
    "format_usd",
    "format_utc",
]
