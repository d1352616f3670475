"""
Live inference driver.

Subscribes to a real-time candle collector, classifies the most recent
candle of every batch with the same classifier used for training and, when
it is bullish engulfing, raises an alert carrying the trained probabilities.
"""

from typing import Callable, List, Optional

from ..coinbase.collector import RealTimeCandleCollector
from ..database.training_store import TrainingStore
from ..logger import get_analysis_adapter
from ..models.analysis import (
    AggregateResult,
    EngulfingAlert,
    EngulfingParameters,
    ProbabilityPoint,
    TrainingIdentity,
    format_percent
)
from ..models.market_data import CandleSize, normalize_exchange_candles
from ..strategies.patterns.bullish_engulfing import classify_latest_candle

AlertListener = Callable[[EngulfingAlert], None]


class BullishEngulfingInferrer:
    """Raises EngulfingAlerts for live candles of one training identity."""

    def __init__(
        self,
        identity: TrainingIdentity,
        parameters: EngulfingParameters,
        store: TrainingStore,
        collector: RealTimeCandleCollector,
        min_probability: float = 0.8
    ):
        if collector.product.upper() != identity.product or collector.candle_size != CandleSize.parse(identity.candle_size):
            raise ValueError(
                f"BullishEngulfingInferrer requires a collector for {identity.product} "
                f"{identity.candle_size} candles, got {collector.product} {collector.candle_size.value}"
            )
        if not identity.matches(parameters):
            raise ValueError(f"Training identity {identity} does not match parameters {parameters}")

        self.identity = identity
        self.parameters = parameters
        self.store = store
        self.collector = collector
        self.min_probability = min_probability

        self.training: Optional[AggregateResult] = None
        self._listeners: List[AlertListener] = []
        self._last_alert_time: Optional[int] = None
        self.logger = get_analysis_adapter(identity.product, identity.candle_size)

    def add_listener(self, listener: AlertListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: AlertListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def start(self) -> None:
        """
        Load training data and subscribe to the collector.

        Raises:
            RuntimeError: If no training result exists for the identity
        """
        self.training = self.store.find(self.identity)
        if self.training is None:
            raise RuntimeError(f"Could not find bullish engulfing training data with identity: {self.identity}")
        if not self.training.has_pattern_events:
            self.logger.warning("Training data has no bullish engulfing events; alerts will carry no probabilities")

        self.collector.add_listener(self.on_candles)
        self.logger.info("Inferrer subscribed to live candles")

    def stop(self) -> None:
        self.collector.remove_listener(self.on_candles)
        self.logger.info("Inferrer unsubscribed from live candles")

    def alert_probabilities(self) -> List[ProbabilityPoint]:
        """Trained points with a positive threshold and a probability above the minimum."""
        if self.training is None:
            return []
        return [
            point for point in self.training.probabilities
            if point.probability >= self.min_probability and point.pct_price_change > 0
        ]

    def on_candles(self, raw_rows: List[list]) -> Optional[EngulfingAlert]:
        """Handle one collected batch; returns the alert raised, if any."""
        candles = normalize_exchange_candles(raw_rows)
        current = classify_latest_candle(candles, self.parameters)
        if current is None:
            self.logger.warning(
                f"Batch of {len(candles)} candles is too short for a {self.parameters.lookback_candles}-candle lookback"
            )
            return None
        if not current.is_bullish_engulfing:
            return None
        if current.time == self._last_alert_time:
            return None

        self._last_alert_time = current.time
        alert = EngulfingAlert(
            identity=self.identity,
            candle=current,
            probabilities=self.alert_probabilities()
        )
        self.logger.info(
            f"Current candle is bullish engulfing at {alert.price} "
            f"(volume change {format_percent(current.pct_volume_change or 0.0)})"
        )
        for listener in list(self._listeners):
            listener(alert)
        return alert
