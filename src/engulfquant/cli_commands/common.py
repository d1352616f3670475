"""
Options and helpers shared by the analysis commands.
"""

import functools
from typing import Optional

import click
from rich.table import Table

from ..config import Config
from ..models.analysis import AggregateResult, EngulfingParameters, format_percent
from ..models.market_data import CandleSize

CANDLE_SIZE_CHOICES = [size.value for size in CandleSize]


def parameter_options(f):
    """Add the bullish engulfing parameter options; unset ones fall back to configuration."""
    @click.option('--lookback', type=int, default=None, help='Candles the current candle must exceed')
    @click.option('--lookahead', type=int, default=None, help='Forward candles scanned for price change')
    @click.option('--wick-ratio', type=float, default=None, help='Allowed upper-wick-to-body ratio')
    @click.option('--group-size', type=float, default=None, help='Probability bucket width (0.0025 = 0.25%)')
    @functools.wraps(f)
    def wrapper(*args, **kwargs):
        return f(*args, **kwargs)
    return wrapper


def resolve_parameters(
    config: Config,
    lookback: Optional[int],
    lookahead: Optional[int],
    wick_ratio: Optional[float],
    group_size: Optional[float]
) -> EngulfingParameters:
    """Merge command-line overrides onto the configured parameters."""
    analysis = config.analysis
    return EngulfingParameters(
        lookback_candles=analysis.lookback_candles if lookback is None else lookback,
        lookahead_candles=analysis.lookahead_candles if lookahead is None else lookahead,
        allowed_wick_to_body_ratio=analysis.allowed_wick_to_body_ratio if wick_ratio is None else wick_ratio,
        group_size_for_pct_price_increase_probability=(
            analysis.group_size_for_pct_price_increase_probability if group_size is None else group_size
        )
    )


def create_summary_table(result: AggregateResult, title: str) -> Table:
    """Event counts and the parameters the result was computed with."""
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Lookback candles", str(result.lookback_candles))
    table.add_row("Lookahead candles", str(result.lookahead_candles))
    table.add_row("Allowed wick/body ratio", f"{result.allowed_wick_to_body_ratio}")
    table.add_row("Bucket size", format_percent(result.group_size_for_pct_price_increase_probability))
    table.add_row("Events", f"{len(result.events):,}")
    table.add_row("Bullish engulfing events", f"{result.bullish_engulfing_event_count:,}")
    table.add_row("Outliers excluded", f"{result.excluded_event_count:,}")
    return table


def create_probability_table(result: AggregateResult, min_probability: float = 0.0) -> Table:
    """Pattern probability, control probability and lift per price-change bucket."""
    table = Table(title="Probability of Max Price Increase", show_header=True, header_style="bold yellow")
    table.add_column("Price change", justify="right", style="cyan")
    table.add_column("Bullish engulfing", justify="right", style="green")
    table.add_column("Control", justify="right")
    table.add_column("Lift", justify="right")

    control = {point.pct_price_change: point.probability for point in result.control_probabilities}
    for point in result.probabilities:
        if point.probability < min_probability:
            continue
        control_probability = control.get(point.pct_price_change, 0.0)
        lift = point.probability - control_probability
        lift_style = "green" if lift > 0 else "red" if lift < 0 else "white"
        table.add_row(
            format_percent(point.pct_price_change),
            format_percent(point.probability),
            format_percent(control_probability),
            f"[{lift_style}]{lift * 100:+.2f}%[/{lift_style}]"
        )
    return table
