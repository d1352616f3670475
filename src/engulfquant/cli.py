"""
Command-line interface for engulfquant.
"""

import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from . import __version__
from .cli_commands.analyze import analyze, sweep
from .cli_commands.fetch import fetch
from .cli_commands.training import infer, train
from .config import Config
from .database.connection import DatabaseManager
from .database.training_store import TrainingStore
from .logger import get_logger

console = Console()


@click.group()
@click.version_option(version=__version__, prog_name="engulfquant")
@click.option(
    "--env-file",
    "-e",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to a .env configuration file"
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose logging"
)
@click.pass_context
def main(ctx: click.Context, env_file: Optional[Path], verbose: bool) -> None:
    """
    engulfquant: Bullish Engulfing Probability Analysis

    Finds bullish engulfing candles in Coinbase price history and estimates
    how likely price is to rise afterwards compared with any other candle.
    """
    ctx.ensure_object(dict)

    try:
        ctx.obj["config"] = Config.load_from_env(str(env_file) if env_file else None)
    except Exception as e:
        click.echo(f"Error loading configuration: {e}", err=True)
        sys.exit(1)

    if verbose:
        ctx.obj["config"].logging.level = "DEBUG"

    ctx.obj["logger"] = get_logger("engulfquant.cli", ctx.obj["config"].logging.level)


main.add_command(fetch)
main.add_command(analyze)
main.add_command(train)
main.add_command(infer)
main.add_command(sweep)


@main.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show configuration and stored training results."""
    config: Config = ctx.obj["config"]

    console.print("[bold]🕯️  engulfquant status[/bold]")
    console.print(f"  Product: {config.analysis.product} ({config.analysis.candle_size.value})")
    console.print(
        f"  Parameters: lookback={config.analysis.lookback_candles}, "
        f"lookahead={config.analysis.lookahead_candles}, "
        f"wick ratio={config.analysis.allowed_wick_to_body_ratio}, "
        f"bucket={config.analysis.group_size_for_pct_price_increase_probability}"
    )
    console.print(f"  Log Level: {config.logging.level}")

    db_manager = DatabaseManager(config)
    try:
        store = TrainingStore(db_manager)
        store.create_table()
        db_info = db_manager.get_database_info()
        identities = store.list_identities()
    except Exception as e:
        console.print(f"\n[red]❌ Database Error: {e}[/red]")
        sys.exit(1)
    finally:
        db_manager.close_all_connections()

    console.print(f"\n📊 Database: {db_info['database_path']} ({db_info['database_size']})")
    if not identities:
        console.print("[yellow]No training results stored yet[/yellow]")
        return

    table = Table(title="Stored Training Results", show_header=True, header_style="bold magenta")
    table.add_column("Product", style="cyan")
    table.add_column("Candle size")
    table.add_column("Lookback", justify="right")
    table.add_column("Lookahead", justify="right")
    table.add_column("Wick ratio", justify="right")
    for identity in identities:
        table.add_row(
            identity.product,
            identity.candle_size,
            str(identity.lookback_candles),
            str(identity.lookahead_candles),
            f"{identity.allowed_wick_to_body_ratio}"
        )
    console.print(table)


if __name__ == "__main__":
    main()
