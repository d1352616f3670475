"""
Parameter sweep for the bullish engulfing analysis.

Every (lookback, lookahead, wick ratio) combination of a grid is evaluated
as one optuna trial. A combination scores the lift of the pattern over the
control population at the first bucket at or above ``score_threshold``;
combinations without any bullish engulfing event are pruned. Trials are
independent pure computations, so ``n_jobs > 1`` runs them on threads;
a combination evaluated twice keeps a single result.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import optuna

from ..models.analysis import AggregateResult, EngulfingParameters
from ..models.market_data import Candle
from ..strategies.probabilities import compute_probabilities

logger = logging.getLogger(__name__)

_THRESHOLD_TOLERANCE = 1e-12


@dataclass(frozen=True)
class SweepResult:
    """Score of one parameter combination."""
    parameters: EngulfingParameters
    score: float
    threshold: float
    bullish_engulfing_event_count: int
    event_count: int


def score_result(result: AggregateResult, score_threshold: float) -> Optional[Tuple[float, float]]:
    """(threshold, lift) at the first bucket >= score_threshold, or None."""
    for threshold, lift in result.lift():
        if threshold >= score_threshold - _THRESHOLD_TOLERANCE:
            return threshold, lift
    return None


def create_sweep_study(
    lookbacks: Sequence[int],
    lookaheads: Sequence[int],
    wick_ratios: Sequence[float]
) -> optuna.Study:
    """In-memory study that walks the full parameter grid."""
    search_space = {
        "lookback_candles": list(lookbacks),
        "lookahead_candles": list(lookaheads),
        "allowed_wick_to_body_ratio": list(wick_ratios),
    }
    sampler = optuna.samplers.GridSampler(search_space)
    return optuna.create_study(direction="maximize", sampler=sampler)


def run_parameter_sweep(
    candles: Sequence[Candle],
    lookbacks: Sequence[int],
    lookaheads: Sequence[int],
    wick_ratios: Sequence[float],
    group_size: float,
    score_threshold: float = 0.0,
    n_jobs: int = 1
) -> List[SweepResult]:
    """
    Evaluate the parameter grid over ``candles``.

    Args:
        candles: Candles sorted ascending by time
        lookbacks: Lookback candle counts to try
        lookaheads: Lookahead candle counts to try
        wick_ratios: Allowed wick-to-body ratios to try
        group_size: Bucket width shared by every combination
        score_threshold: Price-change bucket whose lift is the score
        n_jobs: Parallel trials

    Returns:
        One SweepResult per scored combination, best first

    Raises:
        ValidationError: If any grid value is not a valid parameter
    """
    lookbacks = sorted(set(lookbacks))
    lookaheads = sorted(set(lookaheads))
    wick_ratios = sorted(set(wick_ratios))

    # Validate the whole grid before running any trial
    for lookback in lookbacks:
        for lookahead in lookaheads:
            for ratio in wick_ratios:
                EngulfingParameters(
                    lookback_candles=lookback,
                    lookahead_candles=lookahead,
                    allowed_wick_to_body_ratio=ratio,
                    group_size_for_pct_price_increase_probability=group_size
                )

    optuna.logging.set_verbosity(optuna.logging.WARNING)
    study = create_sweep_study(lookbacks, lookaheads, wick_ratios)

    results: Dict[EngulfingParameters, SweepResult] = {}
    lock = threading.Lock()

    def objective(trial: optuna.Trial) -> float:
        parameters = EngulfingParameters(
            lookback_candles=trial.suggest_categorical("lookback_candles", lookbacks),
            lookahead_candles=trial.suggest_categorical("lookahead_candles", lookaheads),
            allowed_wick_to_body_ratio=trial.suggest_categorical("allowed_wick_to_body_ratio", wick_ratios),
            group_size_for_pct_price_increase_probability=group_size
        )
        result = compute_probabilities(candles, parameters)
        scored = score_result(result, score_threshold)
        if scored is None:
            raise optuna.TrialPruned()

        threshold, score = scored
        with lock:
            results[parameters] = SweepResult(
                parameters=parameters,
                score=score,
                threshold=threshold,
                bullish_engulfing_event_count=result.bullish_engulfing_event_count,
                event_count=len(result.events)
            )
        return score

    n_combinations = len(lookbacks) * len(lookaheads) * len(wick_ratios)
    logger.info(f"Sweeping {n_combinations} parameter combinations over {len(candles)} candles")
    # GridSampler stops the study once every grid point has a finished trial;
    # parallel workers may evaluate a point twice, so n_trials is left open.
    study.optimize(objective, n_trials=None, n_jobs=n_jobs)

    return sorted(results.values(), key=lambda r: r.score, reverse=True)
