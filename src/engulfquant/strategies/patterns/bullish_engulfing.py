"""
Bullish Engulfing Pattern Classification

A candle is bullish engulfing when, compared with the ``lookback_candles``
candles immediately preceding it, it:
- closes higher than it opens,
- has a larger real body than every preceding body,
- trades more volume than every preceding candle,
- closes at or near its high (upper wick small relative to its body).

The same classifier serves batch training (every index of a price history)
and live inference (the most recent candle of a streaming batch).
"""

from typing import List, Optional, Sequence

from ...models.analysis import CandleStats, EngulfingParameters
from ...models.market_data import Candle


def classify_candle(
    candles: Sequence[Candle],
    index: int,
    parameters: EngulfingParameters
) -> CandleStats:
    """
    Compute the derived statistics of ``candles[index]``.

    Args:
        candles: Candles sorted ascending by time
        index: Candidate index, at least ``parameters.lookback_candles``
        parameters: Validated analysis parameters

    Returns:
        CandleStats for the candidate. Lookahead metrics are None when the
        candidate is the last candle of the sequence.

    Raises:
        IndexError: If the index leaves no full lookback window
    """
    lookback = parameters.lookback_candles
    if index < lookback or index >= len(candles):
        raise IndexError(
            f"Candle index {index} needs {lookback} preceding candles "
            f"within a sequence of {len(candles)}"
        )

    candle = candles[index]
    height = candle.close - candle.open

    recent = candles[index - lookback:index]
    max_recent_height = max(c.body_size for c in recent)
    max_recent_volume = max(c.volume for c in recent)

    # Zero body leaves the ratio undefined, which disqualifies the candle
    body = abs(candle.open - candle.close)
    wick_to_body_ratio = abs(candle.high - candle.close) / body if body > 0 else None

    is_bullish_engulfing = (
        height > 0 and
        height > max_recent_height and
        candle.volume > max_recent_volume and
        wick_to_body_ratio is not None and
        wick_to_body_ratio <= parameters.allowed_wick_to_body_ratio
    )

    pct_volume_change = None
    if max_recent_volume > 0:
        pct_volume_change = candle.volume / max_recent_volume - 1

    max_pct_price_change, min_pct_price_change = _lookahead_extremes(
        candles, index, parameters.lookahead_candles
    )

    return CandleStats(
        index=index,
        time=candle.time,
        open=candle.open,
        high=candle.high,
        low=candle.low,
        close=candle.close,
        volume=candle.volume,
        height=height,
        max_recent_height=max_recent_height,
        max_recent_volume=max_recent_volume,
        wick_to_body_ratio=wick_to_body_ratio,
        pct_volume_change=pct_volume_change,
        max_pct_price_change=max_pct_price_change,
        min_pct_price_change=min_pct_price_change,
        is_bullish_engulfing=is_bullish_engulfing
    )


def _lookahead_extremes(
    candles: Sequence[Candle],
    index: int,
    lookahead: int
) -> tuple:
    """Max/min forward price change relative to the candidate's high."""
    forward = candles[index + 1:index + 1 + lookahead]
    reference = candles[index].high
    if not forward or reference == 0:
        return None, None

    max_price = max(c.high for c in forward)
    min_price = min(c.low for c in forward)
    return max_price / reference - 1, min_price / reference - 1


def classify_candles(
    candles: Sequence[Candle],
    parameters: EngulfingParameters
) -> List[CandleStats]:
    """Classify every candle that has a full lookback window."""
    return [
        classify_candle(candles, index, parameters)
        for index in range(parameters.lookback_candles, len(candles))
    ]


def classify_latest_candle(
    candles: Sequence[Candle],
    parameters: EngulfingParameters
) -> Optional[CandleStats]:
    """
    Classify the most recent candle of a live batch.

    Returns None when the batch is too short to hold a lookback window.
    """
    if len(candles) <= parameters.lookback_candles:
        return None
    return classify_candle(candles, len(candles) - 1, parameters)
