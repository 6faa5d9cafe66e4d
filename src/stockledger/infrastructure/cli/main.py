import click

from stockledger.infrastructure.bootstrap import build_container
from stockledger.infrastructure.cli.catalog_commands import (
    location_add,
    location_deactivate,
    location_list,
    product_add,
    product_list,
)
from stockledger.infrastructure.cli.stock_commands import (
    stock_adjust,
    stock_at,
    stock_history,
    stock_low,
    stock_movement,
    stock_receive,
    stock_ship,
    stock_show,
    stock_transfer,
    stock_verify,
)
from stockledger.infrastructure.config import Settings
from stockledger.infrastructure.logging_config import configure_logging


@click.group()
@click.pass_context
def cli(ctx: click.Context) -> None:
    """stockledger: multi-location stock ledger"""
    if ctx.obj is None:
        settings = Settings.from_env()
        configure_logging(settings.log_level)
        ctx.obj = build_container(settings)


@cli.group()
def stock() -> None:
    """Record movements and query stock."""


@cli.group()
def product() -> None:
    """Manage products."""


@cli.group()
def location() -> None:
    """Manage locations."""


# Register subcommands
stock.add_command(stock_adjust)
stock.add_command(stock_at)
stock.add_command(stock_history)
stock.add_command(stock_low)
stock.add_command(stock_movement)
stock.add_command(stock_receive)
stock.add_command(stock_ship)
stock.add_command(stock_show)
stock.add_command(stock_transfer)
stock.add_command(stock_verify)
product.add_command(product_add)
product.add_command(product_list)
location.add_command(location_add)
location.add_command(location_deactivate)
location.add_command(location_list)
