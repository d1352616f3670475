"""
Price history download command.
"""

import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import click
from rich.console import Console

from ..coinbase.client import CoinbaseCandleClient
from ..coinbase.price_history import price_history_filename, save_price_history
from ..config import Config
from ..logger import get_logger
from .common import CANDLE_SIZE_CHOICES

console = Console()
logger = get_logger(__name__)

DATE_FORMATS = ["%Y-%m-%d", "%Y-%m-%dT%H:%M:%S"]


@click.command()
@click.option('--product', '-p', default=None, help='Exchange product id (e.g., BTC-USD)')
@click.option('--candle-size', '-s', type=click.Choice(CANDLE_SIZE_CHOICES), default=None, help='Candle size')
@click.option('--start', 'start', type=click.DateTime(formats=DATE_FORMATS), required=True, help='Range start (UTC)')
@click.option('--end', 'end', type=click.DateTime(formats=DATE_FORMATS), default=None, help='Range end (UTC, default: now)')
@click.option('--output-dir', '-o', type=click.Path(file_okay=False, path_type=Path), default=None,
              help='Directory for the price history file')
@click.pass_context
def fetch(ctx: click.Context, product: Optional[str], candle_size: Optional[str], start: datetime,
          end: Optional[datetime], output_dir: Optional[Path]) -> None:
    """Download historic candles into a price history file."""
    config: Config = ctx.obj["config"]
    product = (product or config.analysis.product).upper()
    candle_size = candle_size or config.analysis.candle_size
    start = start.replace(tzinfo=timezone.utc)
    end = end.replace(tzinfo=timezone.utc) if end else datetime.now(timezone.utc)
    output_dir = output_dir or Path(config.analysis.price_history_dir)

    if start >= end:
        console.print(f"[red]✗[/red] Start {start.isoformat()} must be before end {end.isoformat()}")
        sys.exit(1)

    def on_batch(range_start: datetime, range_end: datetime) -> None:
        console.print(f"[dim]Fetching {range_start:%Y-%m-%d %H:%M} → {range_end:%Y-%m-%d %H:%M}[/dim]")

    client = CoinbaseCandleClient(config.exchange)
    try:
        rows = client.fetch_candles(product, start, end, candle_size, on_batch=on_batch)
        path = output_dir / price_history_filename(product, start, end, candle_size)
        save_price_history(path, product, candle_size, start, end, rows)
    except Exception as e:
        logger.error(f"Price history fetch failed: {e}")
        console.print(f"[red]✗[/red] Fetch failed: {e}")
        sys.exit(1)
    finally:
        client.close()

    console.print(f"[green]✅[/green] Saved {len(rows):,} candles to {path}")
