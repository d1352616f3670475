"""
Unit tests for configuration management.
"""

import os
from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from engulfquant.config import AnalysisConfig, Config, ExchangeConfig
from engulfquant.models.market_data import CandleSize


class TestConfig:
    """Test configuration loading and validation."""

    def test_config_loads_defaults(self) -> None:
        """Test that configuration loads with default values."""
        config = Config()

        assert config.database.path == "./data/engulfquant.db"
        assert config.exchange.base_url == "https://api.exchange.coinbase.com"
        assert config.exchange.max_candles_per_request == 300
        assert config.exchange.request_delay_seconds == 2.0
        assert config.collector.poll_interval_seconds == 900.0
        assert config.analysis.product == "BTC-USD"
        assert config.analysis.candle_size is CandleSize.ONE_DAY
        assert config.analysis.alert_min_probability == 0.8
        assert config.logging.level == "INFO"

    def test_config_loads_from_env(self, mock_env_vars: dict) -> None:
        """Test that configuration loads from environment variables."""
        config = Config.load_from_env()

        assert config.database.path == "./test_data/test.db"
        assert config.exchange.request_delay_seconds == 0.5
        assert config.analysis.product == "ETH-USD"
        assert config.analysis.candle_size is CandleSize.ONE_HOUR
        assert config.analysis.lookback_candles == 3
        assert config.analysis.lookahead_candles == 12
        assert config.analysis.allowed_wick_to_body_ratio == 0.1
        assert config.analysis.group_size_for_pct_price_increase_probability == 0.005
        assert config.logging.level == "DEBUG"

    def test_config_loads_env_file(self, temp_dir: Path) -> None:
        env_file = temp_dir / "test.env"
        env_file.write_text("LOOKBACK_CANDLES=7\nANALYSIS_PRODUCT=SOL-USD\n")

        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop("LOOKBACK_CANDLES", None)
            os.environ.pop("ANALYSIS_PRODUCT", None)
            config = Config.load_from_env(str(env_file))

            assert config.analysis.lookback_candles == 7
            assert config.analysis.product == "SOL-USD"

    def test_unknown_candle_size_rejected(self) -> None:
        with patch.dict(os.environ, {"ANALYSIS_CANDLE_SIZE": "2-day"}, clear=False):
            with pytest.raises(ValueError, match="not a recognized candle size"):
                Config.load_from_env()

    def test_parameters_built_from_analysis_config(self) -> None:
        parameters = AnalysisConfig().parameters()

        assert parameters.lookback_candles == 4
        assert parameters.lookahead_candles == 6
        assert parameters.allowed_wick_to_body_ratio == 0.2
        assert parameters.group_size_for_pct_price_increase_probability == 0.0025

    def test_invalid_analysis_parameters_fail_when_built(self) -> None:
        config = AnalysisConfig(lookback_candles=0)

        with pytest.raises(ValidationError):
            config.parameters()

    def test_exchange_config_validation(self) -> None:
        with pytest.raises(ValidationError):
            ExchangeConfig(max_candles_per_request=0)
        with pytest.raises(ValidationError):
            ExchangeConfig(max_candles_per_request=301)
        with pytest.raises(ValidationError):
            ExchangeConfig(request_timeout_seconds=0)
