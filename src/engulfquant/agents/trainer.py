"""
Batch training driver.

Runs the bullish engulfing analysis over a price history and persists the
resulting probability curves under their training identity.
"""

from pathlib import Path
from typing import Optional, Sequence, Union

from ..coinbase.price_history import load_candles
from ..database.training_store import TrainingStore
from ..logger import get_analysis_adapter
from ..models.analysis import AggregateResult, EngulfingParameters, TrainingIdentity
from ..models.market_data import Candle, CandleSize
from ..strategies.probabilities import compute_probabilities


class BullishEngulfingTrainer:
    """Computes and stores bullish engulfing probabilities for one identity."""

    def __init__(
        self,
        identity: TrainingIdentity,
        parameters: EngulfingParameters,
        store: Optional[TrainingStore] = None
    ):
        if not identity.matches(parameters):
            raise ValueError(f"Training identity {identity} does not match parameters {parameters}")

        self.identity = identity
        self.parameters = parameters
        self.store = store
        self.logger = get_analysis_adapter(identity.product, identity.candle_size)

    @classmethod
    def for_product(
        cls,
        product: str,
        candle_size: CandleSize,
        parameters: EngulfingParameters,
        store: Optional[TrainingStore] = None
    ) -> "BullishEngulfingTrainer":
        identity = TrainingIdentity.for_parameters(product, candle_size, parameters)
        return cls(identity, parameters, store)

    def train(self, candles: Sequence[Candle]) -> AggregateResult:
        """Compute the aggregate result without persisting it."""
        self.logger.info(f"Training started on {len(candles)} candles")
        result = compute_probabilities(candles, self.parameters)
        self.logger.info(
            f"Training finished: {len(result.events)} events, "
            f"{result.bullish_engulfing_event_count} bullish engulfing, "
            f"{result.excluded_event_count} outliers excluded"
        )
        return result

    def run(self, candles: Sequence[Candle]) -> AggregateResult:
        """Compute the aggregate result and upsert it into the store."""
        if self.store is None:
            raise RuntimeError("BullishEngulfingTrainer.run requires a training store")
        result = self.train(candles)
        self.store.upsert(self.identity, result)
        return result

    def run_from_file(self, path: Union[str, Path]) -> AggregateResult:
        """Load and normalize a price history file, then run()."""
        self.logger.info(f"Loading price history from {path}")
        return self.run(load_candles(path))
