"""
Coinbase Exchange integration for engulfquant.

Historic and real-time candle collection from the public REST API.
"""

from .client import CoinbaseCandleClient, split_time_range
from .collector import CandleBatchListener, CollectorStats, RealTimeCandleCollector
from .price_history import load_candles, load_price_history, price_history_filename, save_price_history

__all__ = [
    'CandleBatchListener',
    'CoinbaseCandleClient',
    'CollectorStats',
    'RealTimeCandleCollector',
    'load_candles',
    'load_price_history',
    'price_history_filename',
    'save_price_history',
    'split_time_range',
]
