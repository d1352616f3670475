"""
Bullish Engulfing Analysis Models

Pydantic models exchanged between the analysis core and its collaborators:
- EngulfingParameters: Validated tunable parameters for one run
- CandleStats: Classifier output for a single candle index
- EngulfingEvent: Immutable event record kept in the aggregate result
- ProbabilityPoint: One bucket of a probability curve
- AggregateResult: Output of a full training run
- TrainingIdentity: Key under which an AggregateResult is persisted
- EngulfingAlert: Live notification raised by the inferrer
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .market_data import CandleSize


class EngulfingParameters(BaseModel):
    """
    Tunable parameters of the bullish engulfing analysis.

    Construction fails fast with a ValidationError when any value lies
    outside its domain, before any candle is looked at.
    """

    lookback_candles: int = Field(
        ...,
        description="Number of preceding candles the candidate must exceed",
        ge=1,
        strict=True
    )
    lookahead_candles: int = Field(
        ...,
        description="Number of following candles scanned for price extremes",
        ge=1,
        strict=True
    )
    allowed_wick_to_body_ratio: float = Field(
        ...,
        description="Maximum permitted top-wick-to-body ratio",
        ge=0.0,
        le=1.0
    )
    group_size_for_pct_price_increase_probability: float = Field(
        ...,
        description="Bucket width of the probability axis",
        gt=0.0,
        allow_inf_nan=False
    )

    model_config = ConfigDict(frozen=True)

    @field_validator('lookback_candles', 'lookahead_candles', mode='before')
    @classmethod
    def validate_candle_counts(cls, v):
        """Accept integral floats (e.g. from JSON) but reject bools and fractions."""
        if isinstance(v, float) and v.is_integer():
            return int(v)
        return v


class CandleStats(BaseModel):
    """
    Derived statistics of one candle within a sorted sequence.

    Ratios that are mathematically undefined (zero body, zero recent
    volume, no forward candles) are reported as None.
    """

    index: int = Field(..., ge=0)
    time: int
    open: float
    high: float
    low: float
    close: float
    volume: float
    height: float
    max_recent_height: float
    max_recent_volume: float
    wick_to_body_ratio: Optional[float] = None
    pct_volume_change: Optional[float] = None
    max_pct_price_change: Optional[float] = None
    min_pct_price_change: Optional[float] = None
    is_bullish_engulfing: bool = False

    model_config = ConfigDict(frozen=True)

    @property
    def has_lookahead(self) -> bool:
        """True when forward price extremes could be measured."""
        return self.max_pct_price_change is not None and self.min_pct_price_change is not None

    @property
    def timestamp(self) -> datetime:
        return datetime.fromtimestamp(self.time, tz=timezone.utc)

    def to_event(self) -> "EngulfingEvent":
        """Convert to the event record used for aggregation."""
        if not self.has_lookahead:
            raise ValueError(f"Candle at index {self.index} has no lookahead window")

        return EngulfingEvent(
            price=format_usd(self.close),
            time=format_utc(self.time),
            candle_time=self.time,
            pct_volume_change=self.pct_volume_change,
            max_pct_price_change=self.max_pct_price_change,
            min_pct_price_change=self.min_pct_price_change,
            is_bullish_engulfing=self.is_bullish_engulfing
        )


class EngulfingEvent(BaseModel):
    """Event record attached to a candle that has a lookahead window."""

    price: str = Field(..., description="Close price formatted as USD")
    time: str = Field(..., description="Candle time formatted as 'YYYY-MM-DD HH:MM UTC'")
    candle_time: int = Field(..., description="Candle time in unix seconds")
    pct_volume_change: Optional[float] = None
    max_pct_price_change: float
    min_pct_price_change: float
    is_bullish_engulfing: bool

    model_config = ConfigDict(frozen=True)


class ProbabilityPoint(BaseModel):
    """Probability that the forward max price change exceeds a threshold."""

    pct_price_change: float
    probability: float = Field(..., ge=0.0, le=1.0)

    model_config = ConfigDict(frozen=True)


class AggregateResult(BaseModel):
    """
    Output of a bullish engulfing training run.

    ``probabilities`` is empty and ``has_pattern_events`` is False when no
    pattern match survived outlier filtering; callers must not read that as
    a zero probability.
    """

    events: List[EngulfingEvent] = Field(default_factory=list)
    bullish_engulfing_event_count: int = Field(default=0, ge=0)
    excluded_event_count: int = Field(default=0, ge=0)
    lookback_candles: int
    lookahead_candles: int
    allowed_wick_to_body_ratio: float
    group_size_for_pct_price_increase_probability: float
    probabilities: List[ProbabilityPoint] = Field(default_factory=list)
    control_probabilities: List[ProbabilityPoint] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    @property
    def has_pattern_events(self) -> bool:
        return self.bullish_engulfing_event_count > 0

    def lift(self) -> List[Tuple[float, float]]:
        """(threshold, pattern probability - control probability) per shared bucket."""
        control = {point.pct_price_change: point.probability for point in self.control_probabilities}
        return [
            (point.pct_price_change, point.probability - control[point.pct_price_change])
            for point in self.probabilities
            if point.pct_price_change in control
        ]

    def to_document(self) -> Dict[str, Any]:
        """JSON-compatible representation for persistence."""
        return self.model_dump(mode="json")


class TrainingIdentity(BaseModel):
    """Key of a persisted training result."""

    product: str = Field(..., min_length=3, pattern=r"^[A-Z0-9]+-[A-Z0-9]+$")
    candle_size: CandleSize
    lookback_candles: int = Field(..., ge=1)
    lookahead_candles: int = Field(..., ge=1)
    allowed_wick_to_body_ratio: float = Field(..., ge=0.0, le=1.0)

    model_config = ConfigDict(frozen=True, use_enum_values=True)

    @field_validator('product', mode='before')
    @classmethod
    def validate_product(cls, v) -> str:
        """Normalize product ids such as 'btc-usd'."""
        return str(v).upper().strip()

    @classmethod
    def for_parameters(
        cls,
        product: str,
        candle_size: CandleSize,
        parameters: EngulfingParameters
    ) -> "TrainingIdentity":
        return cls(
            product=product,
            candle_size=candle_size,
            lookback_candles=parameters.lookback_candles,
            lookahead_candles=parameters.lookahead_candles,
            allowed_wick_to_body_ratio=parameters.allowed_wick_to_body_ratio
        )

    def matches(self, parameters: EngulfingParameters) -> bool:
        """Whether ``parameters`` classify candles the way this result was trained."""
        return (
            self.lookback_candles == parameters.lookback_candles and
            self.lookahead_candles == parameters.lookahead_candles and
            self.allowed_wick_to_body_ratio == parameters.allowed_wick_to_body_ratio
        )


class EngulfingAlert(BaseModel):
    """Raised when the most recent live candle is bullish engulfing."""

    identity: TrainingIdentity
    candle: CandleStats
    probabilities: List[ProbabilityPoint] = Field(default_factory=list)
    detected_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def price(self) -> str:
        return format_usd(self.candle.close)


def format_usd(value: float) -> str:
    """Format a price the way the reports show it, e.g. '$1,234.56'."""
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def format_utc(time: int) -> str:
    """Format a unix-second timestamp as 'YYYY-MM-DD HH:MM UTC'."""
    return datetime.fromtimestamp(time, tz=timezone.utc).strftime("%Y-%m-%d %H:%M") + " UTC"


def format_percent(value: float) -> str:
    """Format a ratio as a percentage with two decimals."""
    return f"{value * 100:.2f}%"
