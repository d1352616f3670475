"""
Unit tests for the training and inference drivers.
"""

from typing import List
from unittest.mock import MagicMock

import pytest

from engulfquant.agents import BullishEngulfingInferrer, BullishEngulfingTrainer
from engulfquant.coinbase.collector import RealTimeCandleCollector
from engulfquant.database import TrainingStore
from engulfquant.models.analysis import (
    AggregateResult,
    EngulfingParameters,
    ProbabilityPoint,
    TrainingIdentity
)
from engulfquant.models.market_data import Candle, CandleSize


def exchange_rows(candles: List[Candle]) -> List[list]:
    """Exchange rows newest first, as the candles endpoint returns them."""
    return [candle.to_exchange_row() for candle in reversed(candles)]


def create_collector(product: str = "BTC-USD", candle_size: str = "1-day") -> RealTimeCandleCollector:
    return RealTimeCandleCollector(MagicMock(), product, candle_size)


def create_training(parameters: EngulfingParameters, **overrides) -> AggregateResult:
    values = dict(
        bullish_engulfing_event_count=3,
        lookback_candles=parameters.lookback_candles,
        lookahead_candles=parameters.lookahead_candles,
        allowed_wick_to_body_ratio=parameters.allowed_wick_to_body_ratio,
        group_size_for_pct_price_increase_probability=parameters.group_size_for_pct_price_increase_probability,
        probabilities=[
            ProbabilityPoint(pct_price_change=0.0, probability=1.0),
            ProbabilityPoint(pct_price_change=0.0025, probability=0.9),
            ProbabilityPoint(pct_price_change=0.005, probability=0.8),
            ProbabilityPoint(pct_price_change=0.0075, probability=0.6),
        ]
    )
    values.update(overrides)
    return AggregateResult(**values)


class TestBullishEngulfingTrainer:
    """Test the batch training driver."""

    def test_identity_must_match_parameters(self, default_parameters: EngulfingParameters) -> None:
        identity = TrainingIdentity.for_parameters("BTC-USD", CandleSize.ONE_DAY, default_parameters)
        other = default_parameters.model_copy(update={"lookahead_candles": 12})

        with pytest.raises(ValueError, match="does not match"):
            BullishEngulfingTrainer(identity, other)

    def test_train_without_store(
        self,
        engulfing_candles: List[Candle],
        default_parameters: EngulfingParameters
    ) -> None:
        trainer = BullishEngulfingTrainer.for_product("btc-usd", CandleSize.ONE_DAY, default_parameters)

        result = trainer.train(engulfing_candles)

        assert trainer.identity.product == "BTC-USD"
        assert result.bullish_engulfing_event_count == 1

    def test_run_requires_store(
        self,
        engulfing_candles: List[Candle],
        default_parameters: EngulfingParameters
    ) -> None:
        trainer = BullishEngulfingTrainer.for_product("BTC-USD", CandleSize.ONE_DAY, default_parameters)

        with pytest.raises(RuntimeError, match="requires a training store"):
            trainer.run(engulfing_candles)

    def test_run_upserts_result(
        self,
        training_store: TrainingStore,
        engulfing_candles: List[Candle],
        default_parameters: EngulfingParameters
    ) -> None:
        trainer = BullishEngulfingTrainer.for_product(
            "BTC-USD", CandleSize.ONE_DAY, default_parameters, training_store
        )

        result = trainer.run(engulfing_candles)

        assert training_store.find(trainer.identity) == result


class TestBullishEngulfingInferrer:
    """Test the live inference driver."""

    @pytest.fixture
    def identity(self, default_parameters: EngulfingParameters) -> TrainingIdentity:
        return TrainingIdentity.for_parameters("BTC-USD", CandleSize.ONE_DAY, default_parameters)

    @pytest.fixture
    def trained_store(
        self,
        training_store: TrainingStore,
        identity: TrainingIdentity,
        default_parameters: EngulfingParameters
    ) -> TrainingStore:
        training_store.upsert(identity, create_training(default_parameters))
        return training_store

    @pytest.fixture
    def inferrer(
        self,
        identity: TrainingIdentity,
        default_parameters: EngulfingParameters,
        trained_store: TrainingStore
    ) -> BullishEngulfingInferrer:
        inferrer = BullishEngulfingInferrer(identity, default_parameters, trained_store, create_collector())
        inferrer.start()
        return inferrer

    def test_collector_must_match_identity(
        self,
        identity: TrainingIdentity,
        default_parameters: EngulfingParameters,
        training_store: TrainingStore
    ) -> None:
        with pytest.raises(ValueError, match="requires a collector"):
            BullishEngulfingInferrer(identity, default_parameters, training_store, create_collector("ETH-USD"))
        with pytest.raises(ValueError, match="requires a collector"):
            BullishEngulfingInferrer(
                identity, default_parameters, training_store, create_collector(candle_size="1-hour")
            )

    @pytest.mark.parametrize("overrides", [
        {"lookback_candles": 5},
        {"lookahead_candles": 50},
        {"allowed_wick_to_body_ratio": 1.0},
    ])
    def test_parameters_must_match_identity(
        self,
        overrides: dict,
        identity: TrainingIdentity,
        default_parameters: EngulfingParameters,
        training_store: TrainingStore
    ) -> None:
        parameters = EngulfingParameters(**{**default_parameters.model_dump(), **overrides})

        with pytest.raises(ValueError, match="does not match"):
            BullishEngulfingInferrer(identity, parameters, training_store, create_collector())

    def test_start_requires_training(
        self,
        identity: TrainingIdentity,
        default_parameters: EngulfingParameters,
        training_store: TrainingStore
    ) -> None:
        inferrer = BullishEngulfingInferrer(identity, default_parameters, training_store, create_collector())

        with pytest.raises(RuntimeError, match="Could not find bullish engulfing training data"):
            inferrer.start()

    def test_start_subscribes_and_stop_unsubscribes(self, inferrer: BullishEngulfingInferrer) -> None:
        assert inferrer.collector.listener_count == 1

        inferrer.stop()

        assert inferrer.collector.listener_count == 0

    def test_alert_probabilities_filtered(self, inferrer: BullishEngulfingInferrer) -> None:
        points = inferrer.alert_probabilities()

        # The zero threshold and the 0.6 bucket are dropped
        assert [(p.pct_price_change, p.probability) for p in points] == [(0.0025, 0.9), (0.005, 0.8)]

    def test_alert_on_bullish_engulfing_batch(
        self,
        inferrer: BullishEngulfingInferrer,
        engulfing_candles: List[Candle]
    ) -> None:
        alerts = []
        inferrer.add_listener(alerts.append)

        alert = inferrer.on_candles(exchange_rows(engulfing_candles[:6]))

        assert alert is not None
        assert alerts == [alert]
        assert alert.price == "$110.00"
        assert alert.candle.time == engulfing_candles[5].time
        assert alert.identity == inferrer.identity
        assert len(alert.probabilities) == 2

    def test_same_candle_alerts_once(
        self,
        inferrer: BullishEngulfingInferrer,
        engulfing_candles: List[Candle]
    ) -> None:
        rows = exchange_rows(engulfing_candles[:6])

        assert inferrer.on_candles(rows) is not None
        assert inferrer.on_candles(rows) is None

    def test_no_alert_for_ordinary_candle(
        self,
        inferrer: BullishEngulfingInferrer,
        engulfing_candles: List[Candle]
    ) -> None:
        assert inferrer.on_candles(exchange_rows(engulfing_candles[:7])) is None

    def test_short_batch_ignored(
        self,
        inferrer: BullishEngulfingInferrer,
        engulfing_candles: List[Candle]
    ) -> None:
        assert inferrer.on_candles(exchange_rows(engulfing_candles[:3])) is None

    def test_training_without_pattern_events(
        self,
        identity: TrainingIdentity,
        default_parameters: EngulfingParameters,
        training_store: TrainingStore,
        engulfing_candles: List[Candle]
    ) -> None:
        training_store.upsert(
            identity,
            create_training(default_parameters, bullish_engulfing_event_count=0, probabilities=[])
        )
        inferrer = BullishEngulfingInferrer(identity, default_parameters, training_store, create_collector())
        inferrer.start()

        alert = inferrer.on_candles(exchange_rows(engulfing_candles[:6]))

        assert alert is not None
        assert alert.probabilities == []

    @pytest.mark.asyncio
    async def test_alert_through_collector(
        self,
        inferrer: BullishEngulfingInferrer,
        engulfing_candles: List[Candle]
    ) -> None:
        alerts = []
        inferrer.add_listener(alerts.append)
        inferrer.collector.client.fetch_recent_candles.return_value = exchange_rows(engulfing_candles[:6])

        await inferrer.collector.collect_once()

        assert len(alerts) == 1
        assert alerts[0].candle.is_bullish_engulfing is True
