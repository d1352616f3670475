"""
Price history files.

A price history file is the JSON snapshot of one fetch:
``{"product", "candle_size", "start", "end", "candles": [[time, low, high, open, close, volume], ...]}``.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Sequence, Union

from ..models.market_data import Candle, CandleSize, normalize_exchange_candles


def price_history_filename(product: str, start: datetime, end: datetime, candle_size: CandleSize) -> str:
    """e.g. 'BTC-USD_2016-01-01_2018-02-09_1-day.json'."""
    candle_size = CandleSize.parse(candle_size)
    return f"{product}_{start:%Y-%m-%d}_{end:%Y-%m-%d}_{candle_size.value}.json"


def save_price_history(
    path: Union[str, Path],
    product: str,
    candle_size: CandleSize,
    start: datetime,
    end: datetime,
    rows: Sequence[Sequence[Any]]
) -> Path:
    """Write raw rows and their fetch metadata to ``path``."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    document = {
        "product": product,
        "candle_size": CandleSize.parse(candle_size).value,
        "start": start.isoformat(),
        "end": end.isoformat(),
        "candles": [list(row) for row in rows],
    }
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(document, f)
    return path


def load_price_history(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Read a price history file.

    Raises:
        ValueError: If the file has no 'candles' list
    """
    with open(path, 'r', encoding='utf-8') as f:
        document = json.load(f)
    if not isinstance(document, dict) or not isinstance(document.get("candles"), list):
        raise ValueError(f"Price history file {path} has no 'candles' list")
    return document


def load_candles(path: Union[str, Path]) -> List[Candle]:
    """Read a price history file and normalize its candles."""
    return normalize_exchange_candles(load_price_history(path)["candles"])
