"""
engulfquant Analysis Package

Pure, synchronous analysis core:
- Bullish engulfing candle classification
- Interquartile-range outlier rejection
- Bucketed probability curves for pattern events versus all candles
"""

from .outliers import OutlierFilterResult, filter_outliers, quartiles
from .patterns.bullish_engulfing import classify_candle, classify_candles, classify_latest_candle
from .probabilities import build_probability_curves, compute_probabilities, round_to_increment

__all__ = [
    "OutlierFilterResult",
    "build_probability_curves",
    "classify_candle",
    "classify_candles",
    "classify_latest_candle",
    "compute_probabilities",
    "filter_outliers",
    "quartiles",
    "round_to_increment",
]
