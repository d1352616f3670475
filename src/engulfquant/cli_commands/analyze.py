"""
Offline analysis commands: probability tables and parameter sweeps.
"""

import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from ..backtesting.optimizer import run_parameter_sweep
from ..coinbase.price_history import load_candles
from ..config import Config
from ..strategies.probabilities import compute_probabilities
from .common import (
    create_probability_table,
    create_summary_table,
    parameter_options,
    resolve_parameters
)

console = Console()


def _parse_list(value: str, cast):
    try:
        return [cast(item.strip()) for item in value.split(',') if item.strip()]
    except ValueError:
        raise click.BadParameter(f"Could not parse '{value}' as a comma-separated list")


@click.command()
@click.argument('price_history', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@parameter_options
@click.option('--min-probability', type=float, default=0.0, help='Hide buckets below this probability')
@click.pass_context
def analyze(ctx: click.Context, price_history: Path, lookback: Optional[int], lookahead: Optional[int],
            wick_ratio: Optional[float], group_size: Optional[float], min_probability: float) -> None:
    """Print bullish engulfing probabilities for a price history file."""
    config: Config = ctx.obj["config"]
    try:
        parameters = resolve_parameters(config, lookback, lookahead, wick_ratio, group_size)
        candles = load_candles(price_history)
        result = compute_probabilities(candles, parameters)
    except Exception as e:
        console.print(f"[red]✗[/red] Analysis failed: {e}")
        sys.exit(1)

    console.print(create_summary_table(result, f"📊 {price_history.name}"))
    if not result.has_pattern_events:
        console.print("[yellow]No bullish engulfing events found; no pattern probabilities to show[/yellow]")
        return
    console.print(create_probability_table(result, min_probability))


@click.command()
@click.argument('price_history', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option('--lookbacks', default='2,3,4,5,6', help='Comma-separated lookback candle counts')
@click.option('--lookaheads', default='3,6,9,12', help='Comma-separated lookahead candle counts')
@click.option('--wick-ratios', default='0,0.1,0.2,0.3', help='Comma-separated allowed wick/body ratios')
@click.option('--group-size', type=float, default=None, help='Probability bucket width (0.0025 = 0.25%)')
@click.option('--score-threshold', type=float, default=0.01, help='Price-change bucket whose lift is scored')
@click.option('--jobs', default=1, type=int, help='Number of parallel jobs (n_jobs)')
@click.option('--top', default=10, type=int, help='Number of results to show')
@click.pass_context
def sweep(ctx: click.Context, price_history: Path, lookbacks: str, lookaheads: str, wick_ratios: str,
          group_size: Optional[float], score_threshold: float, jobs: int, top: int) -> None:
    """
    Rank parameter combinations by bullish engulfing lift.
    Press Ctrl+C to interrupt.
    """
    config: Config = ctx.obj["config"]
    group_size = config.analysis.group_size_for_pct_price_increase_probability if group_size is None else group_size

    try:
        candles = load_candles(price_history)
        results = run_parameter_sweep(
            candles,
            lookbacks=_parse_list(lookbacks, int),
            lookaheads=_parse_list(lookaheads, int),
            wick_ratios=_parse_list(wick_ratios, float),
            group_size=group_size,
            score_threshold=score_threshold,
            n_jobs=jobs
        )
    except KeyboardInterrupt:
        console.print("[yellow]Sweep interrupted[/yellow]")
        sys.exit(130)
    except click.BadParameter:
        raise
    except Exception as e:
        console.print(f"[red]Sweep failed: {e}[/red]")
        sys.exit(1)

    if not results:
        console.print("[yellow]No parameter combination produced bullish engulfing events[/yellow]")
        return

    table = Table(title=f"Lift at ≥{score_threshold * 100:.2f}%", show_header=True, header_style="bold magenta")
    table.add_column("Rank", justify="right")
    table.add_column("Lookback", justify="right", style="cyan")
    table.add_column("Lookahead", justify="right", style="cyan")
    table.add_column("Wick ratio", justify="right", style="cyan")
    table.add_column("Pattern events", justify="right")
    table.add_column("Lift", justify="right", style="green")
    for rank, result in enumerate(results[:top], 1):
        table.add_row(
            str(rank),
            str(result.parameters.lookback_candles),
            str(result.parameters.lookahead_candles),
            f"{result.parameters.allowed_wick_to_body_ratio}",
            f"{result.bullish_engulfing_event_count:,}",
            f"{result.score * 100:+.2f}%"
        )
    console.print(table)
    console.print(f"[bold green]Sweep complete! {len(results)} combinations scored[/bold green]")
