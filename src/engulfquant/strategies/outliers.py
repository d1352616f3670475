"""
Interquartile-range outlier rejection for classified candle events.

A handful of bad exchange prints or flash crashes would otherwise dominate
the probability curves, so events whose forward price metrics fall outside
``[p25 - 1.5 * IQR, p75 + 1.5 * IQR]`` are dropped before aggregation.

Quartiles are computed with numpy's default ``linear`` method, i.e. linear
interpolation between order statistics.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Tuple

import numpy as np

from ..models.analysis import EngulfingEvent

DEFAULT_OUTLIER_METRICS: Tuple[str, ...] = ("max_pct_price_change", "min_pct_price_change")
IQR_MULTIPLIER = 1.5
MIN_EVENTS_FOR_FILTERING = 4


@dataclass(frozen=True)
class MetricBounds:
    """Accepted closed interval for one metric."""
    metric: str
    p25: float
    p75: float
    lower: float
    upper: float

    def contains(self, value: float) -> bool:
        return self.lower <= value <= self.upper


@dataclass
class OutlierFilterResult:
    """Kept and rejected events plus the bounds that were applied."""
    kept: List[EngulfingEvent] = field(default_factory=list)
    rejected: List[EngulfingEvent] = field(default_factory=list)
    bounds: Dict[str, MetricBounds] = field(default_factory=dict)

    @property
    def excluded_count(self) -> int:
        return len(self.rejected)


def quartiles(values: Sequence[float]) -> Tuple[float, float]:
    """25th and 75th percentiles with linear interpolation."""
    p25, p75 = np.percentile(np.asarray(values, dtype=float), [25, 75])
    return float(p25), float(p75)


def compute_bounds(values: Sequence[float], metric: str = "") -> MetricBounds:
    p25, p75 = quartiles(values)
    iqr = (p75 - p25) * IQR_MULTIPLIER
    return MetricBounds(metric=metric, p25=p25, p75=p75, lower=p25 - iqr, upper=p75 + iqr)


def filter_outliers(
    events: Sequence[EngulfingEvent],
    metrics: Sequence[str] = DEFAULT_OUTLIER_METRICS
) -> OutlierFilterResult:
    """
    Drop events that are outliers on any tracked metric.

    Quartiles are taken across all events, pattern matches or not. With fewer
    than four events the quartiles are degenerate and nothing is filtered.
    Events whose metric is None (e.g. an undefined volume change) cannot be
    ranked; that metric is then skipped for bounds and never rejects them.
    """
    events = list(events)
    if len(events) < MIN_EVENTS_FOR_FILTERING:
        return OutlierFilterResult(kept=events)

    bounds = {}
    for metric in metrics:
        values = [getattr(event, metric) for event in events]
        defined = [value for value in values if value is not None]
        if len(defined) >= MIN_EVENTS_FOR_FILTERING:
            bounds[metric] = compute_bounds(defined, metric)

    result = OutlierFilterResult(bounds=bounds)
    for event in events:
        accepted = all(
            getattr(event, metric) is None or metric_bounds.contains(getattr(event, metric))
            for metric, metric_bounds in bounds.items()
        )
        if accepted:
            result.kept.append(event)
        else:
            result.rejected.append(event)

    return result
