"""
Pytest configuration and fixtures for engulfquant tests.
"""

import os
import random
import tempfile
from pathlib import Path
from typing import Generator, List

import pytest
from unittest.mock import patch

from engulfquant.config import Config
from engulfquant.database import DatabaseManager, TrainingStore
from engulfquant.models.analysis import EngulfingParameters
from engulfquant.models.market_data import Candle

START_TIME = 1640995200  # 2022-01-01 00:00:00 UTC
ONE_DAY = 86400


def make_candle(index: int, open_: float, close: float, high: float, low: float, volume: float) -> Candle:
    """Daily candle positioned ``index`` days after START_TIME."""
    return Candle(
        time=START_TIME + index * ONE_DAY,
        open=open_,
        high=high,
        low=low,
        close=close,
        volume=volume
    )


def build_random_candles(count: int = 200, seed: int = 42, spike_every: int = 10) -> List[Candle]:
    """
    Random-walk daily candles with a strong bullish high-volume candle every
    ``spike_every`` candles.
    """
    rng = random.Random(seed)
    candles = []
    price = 100.0
    for i in range(count):
        open_ = price
        if i % spike_every == spike_every // 2:
            close = open_ * 1.04
            high = close * 1.002
            low = open_ * 0.995
            volume = 5000.0
        else:
            close = open_ * (1 + rng.uniform(-0.015, 0.015))
            high = max(open_, close) * (1 + rng.uniform(0.0, 0.01))
            low = min(open_, close) * (1 - rng.uniform(0.0, 0.01))
            volume = rng.uniform(100.0, 500.0)
        candles.append(make_candle(i, open_, close, high, low, volume))
        price = close
    return candles


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmp_dir:
        yield Path(tmp_dir)


@pytest.fixture
def mock_env_vars() -> Generator[dict, None, None]:
    """Mock environment variables for testing."""
    test_env = {
        "DATABASE_PATH": "./test_data/test.db",
        "LOG_LEVEL": "DEBUG",
        "ANALYSIS_PRODUCT": "eth-usd",
        "ANALYSIS_CANDLE_SIZE": "1-hour",
        "LOOKBACK_CANDLES": "3",
        "LOOKAHEAD_CANDLES": "12",
        "ALLOWED_WICK_TO_BODY_RATIO": "0.1",
        "PCT_PRICE_INCREASE_GROUP_SIZE": "0.005",
        "EXCHANGE_REQUEST_DELAY_SECONDS": "0.5"
    }

    with patch.dict(os.environ, test_env, clear=False):
        yield test_env


@pytest.fixture
def test_config(mock_env_vars: dict) -> Config:
    """Create a test configuration instance."""
    return Config.load_from_env()


@pytest.fixture
def test_database(temp_dir: Path) -> Generator[DatabaseManager, None, None]:
    """Create a test database instance."""
    test_db_path = temp_dir / "test_engulfquant.db"

    test_env = {
        "DATABASE_PATH": str(test_db_path),
        "LOG_LEVEL": "DEBUG"
    }

    with patch.dict(os.environ, test_env, clear=False):
        config = Config.load_from_env()
        db_manager = DatabaseManager(config)

        yield db_manager

        db_manager.close_all_connections()


@pytest.fixture
def training_store(test_database: DatabaseManager) -> TrainingStore:
    """Training store with its table created."""
    store = TrainingStore(test_database)
    store.create_table()
    return store


@pytest.fixture
def default_parameters() -> EngulfingParameters:
    """Parameters used by the historical BTC-USD daily training run."""
    return EngulfingParameters(
        lookback_candles=4,
        lookahead_candles=6,
        allowed_wick_to_body_ratio=0.2,
        group_size_for_pct_price_increase_probability=0.0025
    )


@pytest.fixture
def engulfing_candles() -> List[Candle]:
    """
    Ten daily candles where only index 5 is bullish engulfing for a
    four-candle lookback: body 10 against preceding bodies of at most 5,
    volume 1000 against at most 500, and an upper wick of exactly 0.2 body.
    """
    rows = [
        # open, close, high, low, volume
        (100.0, 102.0, 103.0, 99.0, 400.0),
        (102.0, 101.0, 103.0, 100.0, 450.0),
        (101.0, 104.0, 105.0, 100.0, 500.0),
        (104.0, 99.0, 105.0, 98.0, 300.0),
        (99.0, 100.0, 101.0, 98.0, 350.0),
        (100.0, 110.0, 112.0, 99.0, 1000.0),
        (110.0, 113.0, 115.0, 109.0, 600.0),
        (113.0, 112.0, 116.0, 111.0, 550.0),
        (112.0, 114.0, 117.0, 110.0, 500.0),
        (114.0, 115.0, 118.0, 113.0, 450.0),
    ]
    return [
        make_candle(i, open_, close, high, low, volume)
        for i, (open_, close, high, low, volume) in enumerate(rows)
    ]


@pytest.fixture
def random_candles() -> List[Candle]:
    """Two hundred random-walk candles with twenty strong bullish candles."""
    return build_random_candles()


@pytest.fixture
def flat_volume_candles() -> List[Candle]:
    """Candles whose volume never rises, so none can be bullish engulfing."""
    rng = random.Random(7)
    candles = []
    price = 100.0
    for i in range(40):
        close = price * (1 + rng.uniform(-0.02, 0.02))
        candles.append(make_candle(i, price, close, max(price, close) * 1.001, min(price, close) * 0.999, 100.0))
        price = close
    return candles
