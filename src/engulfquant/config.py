"""
Configuration management for the engulfquant analysis system.
"""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from .models.analysis import EngulfingParameters
from .models.market_data import CandleSize


class DatabaseConfig(BaseModel):
    """Training store (DuckDB) settings."""

    path: str = Field(default="./data/engulfquant.db")
    max_connections: int = Field(default=4, ge=1, le=64)


class ExchangeConfig(BaseModel):
    """Coinbase Exchange public REST settings."""

    base_url: str = Field(default="https://api.exchange.coinbase.com")
    max_candles_per_request: int = Field(default=300, ge=1, le=300)
    request_delay_seconds: float = Field(default=2.0, ge=0.0)
    request_timeout_seconds: float = Field(default=10.0, gt=0.0)


class CollectorConfig(BaseModel):
    """Real-time candle collection settings."""

    poll_interval_seconds: float = Field(default=900.0, gt=0.0)
    history_candles: int = Field(default=300, ge=2, le=300)


class AnalysisConfig(BaseModel):
    """Default product and bullish engulfing parameters."""

    product: str = Field(default="BTC-USD", min_length=3)
    candle_size: CandleSize = Field(default=CandleSize.ONE_DAY)
    lookback_candles: int = Field(default=4)
    lookahead_candles: int = Field(default=6)
    allowed_wick_to_body_ratio: float = Field(default=0.2)
    group_size_for_pct_price_increase_probability: float = Field(default=0.0025)
    alert_min_probability: float = Field(default=0.8, ge=0.0, le=1.0)
    price_history_dir: str = Field(default="./price_history")

    def parameters(self) -> EngulfingParameters:
        """Build the validated parameter set handed to the analysis core."""
        return EngulfingParameters(
            lookback_candles=self.lookback_candles,
            lookahead_candles=self.lookahead_candles,
            allowed_wick_to_body_ratio=self.allowed_wick_to_body_ratio,
            group_size_for_pct_price_increase_probability=self.group_size_for_pct_price_increase_probability,
        )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO")
    file_path: str = Field(default="./logs/engulfquant.log")
    max_size: str = Field(default="10MB")
    backup_count: int = Field(default=5)


class Config(BaseModel):
    """Main configuration class."""

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    exchange: ExchangeConfig = Field(default_factory=ExchangeConfig)
    collector: CollectorConfig = Field(default_factory=CollectorConfig)
    analysis: AnalysisConfig = Field(default_factory=AnalysisConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def load_from_env(cls, env_file: Optional[str] = None) -> "Config":
        """Load configuration from environment variables."""
        if env_file:
            load_dotenv(env_file)
        else:
            # Try to load from .env file in current directory
            env_path = Path(".env")
            if env_path.exists():
                load_dotenv(env_path)

        database = DatabaseConfig(
            path=os.getenv("DATABASE_PATH", "./data/engulfquant.db"),
            max_connections=int(os.getenv("DATABASE_MAX_CONNECTIONS", "4"))
        )

        exchange = ExchangeConfig(
            base_url=os.getenv("EXCHANGE_BASE_URL", "https://api.exchange.coinbase.com"),
            max_candles_per_request=int(os.getenv("EXCHANGE_MAX_CANDLES_PER_REQUEST", "300")),
            request_delay_seconds=float(os.getenv("EXCHANGE_REQUEST_DELAY_SECONDS", "2.0")),
            request_timeout_seconds=float(os.getenv("EXCHANGE_REQUEST_TIMEOUT_SECONDS", "10.0"))
        )

        collector = CollectorConfig(
            poll_interval_seconds=float(os.getenv("COLLECTOR_POLL_INTERVAL_SECONDS", "900")),
            history_candles=int(os.getenv("COLLECTOR_HISTORY_CANDLES", "300"))
        )

        analysis = AnalysisConfig(
            product=os.getenv("ANALYSIS_PRODUCT", "BTC-USD").strip().upper(),
            candle_size=CandleSize.parse(os.getenv("ANALYSIS_CANDLE_SIZE", "1-day")),
            lookback_candles=int(os.getenv("LOOKBACK_CANDLES", "4")),
            lookahead_candles=int(os.getenv("LOOKAHEAD_CANDLES", "6")),
            allowed_wick_to_body_ratio=float(os.getenv("ALLOWED_WICK_TO_BODY_RATIO", "0.2")),
            group_size_for_pct_price_increase_probability=float(
                os.getenv("PCT_PRICE_INCREASE_GROUP_SIZE", "0.0025")
            ),
            alert_min_probability=float(os.getenv("ALERT_MIN_PROBABILITY", "0.8")),
            price_history_dir=os.getenv("PRICE_HISTORY_DIR", "./price_history")
        )

        logging = LoggingConfig(
            level=os.getenv("LOG_LEVEL", "INFO"),
            file_path=os.getenv("LOG_FILE_PATH", "./logs/engulfquant.log"),
            max_size=os.getenv("LOG_MAX_SIZE", "10MB"),
            backup_count=int(os.getenv("LOG_BACKUP_COUNT", "5"))
        )

        return cls(
            database=database,
            exchange=exchange,
            collector=collector,
            analysis=analysis,
            logging=logging
        )
