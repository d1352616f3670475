"""Parameter sweeps over historical candles."""

from .optimizer import SweepResult, run_parameter_sweep, score_result

__all__ = ['SweepResult', 'run_parameter_sweep', 'score_result']
