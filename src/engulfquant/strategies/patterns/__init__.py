"""
Candlestick Pattern Recognition Module

Only the bullish engulfing family is recognized: a bullish candle whose body
and volume exceed those of every candle in a lookback window and which
closes near its high.
"""

from .bullish_engulfing import classify_candle, classify_candles, classify_latest_candle

__all__ = ["classify_candle", "classify_candles", "classify_latest_candle"]
