"""
Bullish Engulfing Probability Aggregation

Builds two empirical cumulative-probability curves over a shared
price-change axis: the probability that the maximum forward price change
exceeds each bucket threshold, for bullish engulfing events and for the
control population of all events. Comparing the curves shows whether the
pattern predicts larger forward increases than an unconditioned candle.
"""

import logging
import math
from bisect import bisect_right
from typing import List, Sequence, Tuple

from ..models.analysis import AggregateResult, EngulfingEvent, EngulfingParameters, ProbabilityPoint
from ..models.market_data import Candle
from .outliers import DEFAULT_OUTLIER_METRICS, filter_outliers
from .patterns.bullish_engulfing import classify_candles

logger = logging.getLogger(__name__)

# Absorbs float error when the axis span is an exact multiple of the bucket size
_STEP_TOLERANCE = 1e-9
_THRESHOLD_DIGITS = 12


def round_to_increment(num: float, inc: float) -> float:
    """
    Round ``num`` to a multiple of ``inc``.

    The remainder rounds up only when strictly greater than half the
    increment; at exactly half it rounds down.
    """
    diff = num % inc
    return num - diff + inc if diff > inc / 2 else num - diff


def probability_thresholds(axis_min: float, axis_max: float, group_size: float) -> List[float]:
    """Bucket thresholds from axis_min up to and including axis_max."""
    if axis_max < axis_min:
        return []
    steps = int(math.floor((axis_max - axis_min) / group_size + _STEP_TOLERANCE))
    return [round(axis_min + k * group_size, _THRESHOLD_DIGITS) for k in range(steps + 1)]


def _count_exceeding(sorted_values: Sequence[float], threshold: float) -> int:
    return len(sorted_values) - bisect_right(sorted_values, threshold)


def build_probability_curves(
    events: Sequence[EngulfingEvent],
    group_size: float
) -> Tuple[List[ProbabilityPoint], List[ProbabilityPoint]]:
    """
    Compute (pattern, control) probability curves for filtered events.

    The pattern curve is empty when no event is a pattern match, since its
    denominator would be zero.
    """
    if not events:
        return [], []

    axis_min = max(0.0, round_to_increment(min(e.min_pct_price_change for e in events), group_size))
    axis_max = max(e.max_pct_price_change for e in events)
    thresholds = probability_thresholds(axis_min, axis_max, group_size)

    control_values = sorted(e.max_pct_price_change for e in events)
    pattern_values = sorted(e.max_pct_price_change for e in events if e.is_bullish_engulfing)

    control_probabilities = [
        ProbabilityPoint(
            pct_price_change=t,
            probability=_count_exceeding(control_values, t) / len(control_values)
        )
        for t in thresholds
    ]

    if not pattern_values:
        return [], control_probabilities

    probabilities = [
        ProbabilityPoint(
            pct_price_change=t,
            probability=_count_exceeding(pattern_values, t) / len(pattern_values)
        )
        for t in thresholds
    ]
    return probabilities, control_probabilities


def compute_probabilities(
    sorted_candles: Sequence[Candle],
    parameters: EngulfingParameters,
    outlier_metrics: Sequence[str] = DEFAULT_OUTLIER_METRICS
) -> AggregateResult:
    """
    Run the full analysis: classify, filter outliers, aggregate.

    Args:
        sorted_candles: Candles sorted ascending by time
        parameters: Validated analysis parameters
        outlier_metrics: Event metrics subject to IQR filtering

    Returns:
        AggregateResult for the run
    """
    stats = classify_candles(sorted_candles, parameters)
    unfiltered = [candle_stats.to_event() for candle_stats in stats if candle_stats.has_lookahead]

    filtered = filter_outliers(unfiltered, outlier_metrics)
    events = filtered.kept
    bullish_engulfing_event_count = sum(1 for e in events if e.is_bullish_engulfing)

    probabilities, control_probabilities = build_probability_curves(
        events, parameters.group_size_for_pct_price_increase_probability
    )

    logger.debug(
        f"Classified {len(stats)} candles: {len(unfiltered)} events, "
        f"{filtered.excluded_count} outliers, {bullish_engulfing_event_count} bullish engulfing"
    )
    if not events:
        logger.warning(
            f"No events to aggregate from {len(sorted_candles)} candles "
            f"(lookback={parameters.lookback_candles})"
        )
    elif bullish_engulfing_event_count == 0:
        logger.warning("No bullish engulfing events after outlier filtering; pattern probabilities are undefined")

    return AggregateResult(
        events=events,
        bullish_engulfing_event_count=bullish_engulfing_event_count,
        excluded_event_count=filtered.excluded_count,
        lookback_candles=parameters.lookback_candles,
        lookahead_candles=parameters.lookahead_candles,
        allowed_wick_to_body_ratio=parameters.allowed_wick_to_body_ratio,
        group_size_for_pct_price_increase_probability=parameters.group_size_for_pct_price_increase_probability,
        probabilities=probabilities,
        control_probabilities=control_probabilities
    )
