"""
Training store commands: batch training and live inference.
"""

import asyncio
import signal
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from ..agents.inferrer import BullishEngulfingInferrer
from ..agents.trainer import BullishEngulfingTrainer
from ..coinbase.client import CoinbaseCandleClient
from ..coinbase.collector import RealTimeCandleCollector
from ..config import Config
from ..database.connection import DatabaseManager
from ..database.training_store import TrainingStore
from ..logger import get_logger
from ..models.analysis import EngulfingAlert, TrainingIdentity, format_percent, format_utc
from .common import (
    CANDLE_SIZE_CHOICES,
    create_probability_table,
    create_summary_table,
    parameter_options,
    resolve_parameters
)

console = Console()
logger = get_logger(__name__)


def _open_store(config: Config) -> TrainingStore:
    store = TrainingStore(DatabaseManager(config))
    store.create_table()
    return store


@click.command()
@click.argument('price_history', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option('--product', '-p', default=None, help='Exchange product id (e.g., BTC-USD)')
@click.option('--candle-size', '-s', type=click.Choice(CANDLE_SIZE_CHOICES), default=None, help='Candle size')
@parameter_options
@click.pass_context
def train(ctx: click.Context, price_history: Path, product: Optional[str], candle_size: Optional[str],
          lookback: Optional[int], lookahead: Optional[int], wick_ratio: Optional[float],
          group_size: Optional[float]) -> None:
    """Train on a price history file and store the probabilities."""
    config: Config = ctx.obj["config"]
    store = None
    try:
        parameters = resolve_parameters(config, lookback, lookahead, wick_ratio, group_size)
        store = _open_store(config)
        trainer = BullishEngulfingTrainer.for_product(
            product or config.analysis.product,
            candle_size or config.analysis.candle_size,
            parameters,
            store
        )
        result = trainer.run_from_file(price_history)
    except Exception as e:
        logger.error(f"Training failed: {e}")
        console.print(f"[red]✗[/red] Training failed: {e}")
        sys.exit(1)
    finally:
        if store is not None:
            store.db_manager.close_all_connections()

    console.print(create_summary_table(result, f"📊 {trainer.identity.product} {trainer.identity.candle_size}"))
    if result.has_pattern_events:
        console.print(create_probability_table(result, config.analysis.alert_min_probability))
    else:
        console.print("[yellow]No bullish engulfing events found; stored an empty probability series[/yellow]")
    console.print("[green]✅[/green] Training data saved")


def print_alert(alert: EngulfingAlert) -> None:
    """Render one alert to the console."""
    candle = alert.candle
    console.print(
        f"\n[bold green]🚀 {alert.identity.product} current candle is bullish engulfing[/bold green] "
        f"at {alert.price} ({format_utc(candle.time)})"
    )
    if candle.pct_volume_change is not None:
        console.print(f"   Volume change vs. lookback max: {format_percent(candle.pct_volume_change)}")
    if not alert.probabilities:
        console.print("   [yellow]No trained probability reaches the alert minimum[/yellow]")
        return

    table = Table(show_header=True, header_style="bold yellow")
    table.add_column("Max price increase", justify="right", style="cyan")
    table.add_column("Probability", justify="right", style="green")
    for point in alert.probabilities:
        table.add_row(f"≥ {format_percent(point.pct_price_change)}", format_percent(point.probability))
    console.print(table)


async def _run_inference(collector: RealTimeCandleCollector, inferrer: BullishEngulfingInferrer) -> None:
    loop = asyncio.get_running_loop()

    def shutdown() -> None:
        console.print("\n[yellow]Received shutdown signal, stopping collector gracefully...[/yellow]")
        collector.stop()

    for signum in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(signum, shutdown)
        except NotImplementedError:
            # Windows event loops have no signal handler support
            signal.signal(signum, lambda *_: shutdown())

    inferrer.start()
    try:
        await collector.start()
    finally:
        inferrer.stop()


@click.command()
@click.option('--product', '-p', default=None, help='Exchange product id (e.g., BTC-USD)')
@click.option('--candle-size', '-s', type=click.Choice(CANDLE_SIZE_CHOICES), default=None, help='Candle size')
@parameter_options
@click.option('--min-probability', type=float, default=None, help='Minimum probability shown in alerts')
@click.option('--poll-interval', type=float, default=None, help='Seconds between candle polls')
@click.pass_context
def infer(ctx: click.Context, product: Optional[str], candle_size: Optional[str], lookback: Optional[int],
          lookahead: Optional[int], wick_ratio: Optional[float], group_size: Optional[float],
          min_probability: Optional[float], poll_interval: Optional[float]) -> None:
    """Watch live candles and alert on bullish engulfing patterns."""
    config: Config = ctx.obj["config"]
    store = None
    client = None
    try:
        parameters = resolve_parameters(config, lookback, lookahead, wick_ratio, group_size)
        product = product or config.analysis.product
        candle_size = candle_size or config.analysis.candle_size
        identity = TrainingIdentity.for_parameters(product, candle_size, parameters)

        store = _open_store(config)
        client = CoinbaseCandleClient(config.exchange)
        collector = RealTimeCandleCollector(
            client,
            identity.product,
            candle_size,
            poll_interval_seconds=poll_interval or config.collector.poll_interval_seconds,
            history_candles=config.collector.history_candles
        )
        inferrer = BullishEngulfingInferrer(
            identity,
            parameters,
            store,
            collector,
            min_probability=config.analysis.alert_min_probability if min_probability is None else min_probability
        )
        inferrer.add_listener(print_alert)

        console.print(f"[blue]🚀 Watching {identity.product} {identity.candle_size} candles...[/blue]")
        console.print("[dim]Press Ctrl+C to stop gracefully[/dim]")
        asyncio.run(_run_inference(collector, inferrer))
        console.print(f"[green]✅[/green] Collector stopped ({collector.stats.batches_collected} batches)")
    except Exception as e:
        logger.error(f"Inference failed: {e}")
        console.print(f"[red]✗[/red] Inference failed: {e}")
        sys.exit(1)
    finally:
        if client is not None:
            client.close()
        if store is not None:
            store.db_manager.close_all_connections()
