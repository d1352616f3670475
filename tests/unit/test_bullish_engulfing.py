"""
Unit tests for bullish engulfing classification.

Covers the qualifying scenario, each disqualifying condition, undefined
ratios and the lookahead window at the end of a sequence.
"""

from typing import List

import pytest

from engulfquant.models.analysis import EngulfingParameters
from engulfquant.models.market_data import Candle
from engulfquant.strategies.patterns.bullish_engulfing import (
    classify_candle,
    classify_candles,
    classify_latest_candle
)

from conftest import make_candle


def parameters_with(default: EngulfingParameters, **overrides) -> EngulfingParameters:
    values = default.model_dump()
    values.update(overrides)
    return EngulfingParameters(**values)


class TestClassifyCandle:
    """Test single-candle classification."""

    def test_scenario_candle_is_bullish_engulfing(
        self,
        engulfing_candles: List[Candle],
        default_parameters: EngulfingParameters
    ) -> None:
        stats = classify_candle(engulfing_candles, 5, default_parameters)

        assert stats.height == 10.0
        assert stats.max_recent_height == 5.0
        assert stats.max_recent_volume == 500.0
        assert stats.wick_to_body_ratio == pytest.approx(0.2)
        assert stats.pct_volume_change == pytest.approx(1.0)
        assert stats.is_bullish_engulfing is True

    def test_zero_wick_allowance_disqualifies_scenario_candle(
        self,
        engulfing_candles: List[Candle],
        default_parameters: EngulfingParameters
    ) -> None:
        parameters = parameters_with(default_parameters, allowed_wick_to_body_ratio=0.0)
        stats = classify_candle(engulfing_candles, 5, parameters)

        assert stats.wick_to_body_ratio == pytest.approx(0.2)
        assert stats.is_bullish_engulfing is False

    def test_lookahead_extremes_relative_to_high(
        self,
        engulfing_candles: List[Candle],
        default_parameters: EngulfingParameters
    ) -> None:
        stats = classify_candle(engulfing_candles, 5, default_parameters)

        # Forward candles 6..9: highest high 118, lowest low 109, candidate high 112
        assert stats.max_pct_price_change == pytest.approx(118 / 112 - 1)
        assert stats.min_pct_price_change == pytest.approx(109 / 112 - 1)

    def test_lookahead_window_is_bounded(
        self,
        engulfing_candles: List[Candle],
        default_parameters: EngulfingParameters
    ) -> None:
        parameters = parameters_with(default_parameters, lookahead_candles=1)
        stats = classify_candle(engulfing_candles, 5, parameters)

        assert stats.max_pct_price_change == pytest.approx(115 / 112 - 1)
        assert stats.min_pct_price_change == pytest.approx(109 / 112 - 1)

    def test_last_candle_has_no_lookahead(
        self,
        engulfing_candles: List[Candle],
        default_parameters: EngulfingParameters
    ) -> None:
        stats = classify_candle(engulfing_candles, 9, default_parameters)

        assert stats.has_lookahead is False
        assert stats.max_pct_price_change is None
        assert stats.min_pct_price_change is None

    def test_non_positive_height_never_qualifies(self, default_parameters: EngulfingParameters) -> None:
        """A bearish candle is rejected however large its body and volume."""
        candles = [make_candle(i, 100.0, 100.5, 101.0, 99.0, 10.0) for i in range(4)]
        candles.append(make_candle(4, 200.0, 100.0, 200.0, 90.0, 1_000_000.0))

        stats = classify_candle(candles, 4, default_parameters)

        assert stats.height < 0
        assert stats.is_bullish_engulfing is False

    def test_zero_body_disqualifies_without_error(self, default_parameters: EngulfingParameters) -> None:
        candles = [make_candle(i, 100.0, 100.5, 101.0, 99.0, 10.0) for i in range(4)]
        candles.append(make_candle(4, 100.0, 100.0, 105.0, 95.0, 1000.0))

        stats = classify_candle(candles, 4, default_parameters)

        assert stats.wick_to_body_ratio is None
        assert stats.is_bullish_engulfing is False

    def test_volume_must_exceed_every_preceding_candle(
        self,
        engulfing_candles: List[Candle],
        default_parameters: EngulfingParameters
    ) -> None:
        candles = list(engulfing_candles)
        candles[2] = make_candle(2, 101.0, 104.0, 105.0, 100.0, 1000.0)

        stats = classify_candle(candles, 5, default_parameters)

        assert stats.max_recent_volume == 1000.0
        assert stats.pct_volume_change == pytest.approx(0.0)
        assert stats.is_bullish_engulfing is False

    def test_body_must_exceed_every_preceding_body(
        self,
        engulfing_candles: List[Candle],
        default_parameters: EngulfingParameters
    ) -> None:
        """Bearish bodies count by size."""
        candles = list(engulfing_candles)
        candles[3] = make_candle(3, 110.0, 99.0, 111.0, 98.0, 300.0)

        stats = classify_candle(candles, 5, default_parameters)

        assert stats.max_recent_height == 11.0
        assert stats.is_bullish_engulfing is False

    def test_zero_recent_volume_leaves_volume_change_undefined(
        self,
        default_parameters: EngulfingParameters
    ) -> None:
        candles = [make_candle(i, 100.0, 100.5, 101.0, 99.0, 0.0) for i in range(4)]
        candles.append(make_candle(4, 100.0, 110.0, 110.0, 99.0, 50.0))

        stats = classify_candle(candles, 4, default_parameters)

        assert stats.pct_volume_change is None
        assert stats.is_bullish_engulfing is True

    @pytest.mark.parametrize("index", [0, 3, 10])
    def test_index_without_full_window_rejected(
        self,
        index: int,
        engulfing_candles: List[Candle],
        default_parameters: EngulfingParameters
    ) -> None:
        with pytest.raises(IndexError):
            classify_candle(engulfing_candles, index, default_parameters)


class TestClassifyCandles:
    """Test whole-sequence classification."""

    def test_only_scenario_candle_qualifies(
        self,
        engulfing_candles: List[Candle],
        default_parameters: EngulfingParameters
    ) -> None:
        stats = classify_candles(engulfing_candles, default_parameters)

        assert [s.index for s in stats] == [4, 5, 6, 7, 8, 9]
        assert [s.index for s in stats if s.is_bullish_engulfing] == [5]

    def test_classification_is_deterministic(
        self,
        random_candles: List[Candle],
        default_parameters: EngulfingParameters
    ) -> None:
        first = classify_candles(random_candles, default_parameters)
        second = classify_candles(random_candles, default_parameters)

        assert first == second

    def test_sequence_shorter_than_lookback(self, default_parameters: EngulfingParameters) -> None:
        candles = [make_candle(i, 100.0, 101.0, 102.0, 99.0, 10.0) for i in range(3)]
        assert classify_candles(candles, default_parameters) == []

    def test_latest_candle(
        self,
        engulfing_candles: List[Candle],
        default_parameters: EngulfingParameters
    ) -> None:
        latest = classify_latest_candle(engulfing_candles[:6], default_parameters)

        assert latest is not None
        assert latest.index == 5
        assert latest.is_bullish_engulfing is True
        assert latest.has_lookahead is False

    def test_latest_candle_needs_lookback_window(
        self,
        engulfing_candles: List[Candle],
        default_parameters: EngulfingParameters
    ) -> None:
        assert classify_latest_candle(engulfing_candles[:4], default_parameters) is None
        assert classify_latest_candle([], default_parameters) is None
