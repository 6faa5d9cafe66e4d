"""CLI commands for registering products and locations."""

from __future__ import annotations

import click

from stockledger.domain.exceptions import DomainException


@click.command("add")
@click.option("--id", "product_id", required=True, help="Product ID.")
@click.option("--sku", required=True, help="Unique stock keeping unit.")
@click.option("--name", required=True, help="Product name.")
@click.option("--cost", required=True, help="Unit cost (e.g. 5.00).")
@click.option("--price", required=True, help="Unit price (e.g. 15.00).")
@click.option("--min-quantity", default=0, show_default=True, type=int, help="Reorder threshold.")
@click.pass_context
def product_add(ctx, product_id, sku, name, cost, price, min_quantity) -> None:
    """Add a new product to the catalog."""
    try:
        product = ctx.obj.add_product().handle(
            product_id=product_id, sku=sku, name=name,
            cost=cost, price=price, min_quantity=min_quantity,
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Product {product.id} '{product.name}' added (cost {product.cost}, price {product.price})")


@click.command("list")
@click.pass_context
def product_list(ctx) -> None:
    """List all products in the catalog."""
    products = ctx.obj.products.list_all()

    if not products:
        click.echo("No products found.")
        return

    click.echo(f"{'ID':<12} {'SKU':<12} {'Name':<20} {'Cost':>10} {'Price':>10} {'Min':>5}")
    click.echo("-" * 74)
    for p in products:
        click.echo(
            f"{p.id:<12} {p.sku:<12} {p.name:<20} {str(p.cost):>10} {str(p.price):>10} {p.min_quantity:>5}"
        )


@click.command("add")
@click.option("--id", "location_id", required=True, help="Location ID.")
@click.option("--name", required=True, help="Location name.")
@click.option("--address", default=None, help="Street address.")
@click.pass_context
def location_add(ctx, location_id, name, address) -> None:
    """Register a warehouse or store."""
    try:
        location = ctx.obj.add_location().handle(location_id, name, address)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Location {location.id} '{location.name}' added")


@click.command("list")
@click.pass_context
def location_list(ctx) -> None:
    """List all locations."""
    locations = ctx.obj.locations.list_all()

    if not locations:
        click.echo("No locations found.")
        return

    click.echo(f"{'ID':<12} {'Name':<20} {'Status':<9} Address")
    click.echo("-" * 60)
    for loc in locations:
        status = "active" if loc.is_active else "inactive"
        click.echo(f"{loc.id:<12} {loc.name:<20} {status:<9} {loc.address or ''}")


@click.command("deactivate")
@click.option("--id", "location_id", required=True, help="Location ID.")
@click.pass_context
def location_deactivate(ctx, location_id) -> None:
    """Retire a location that holds no stock."""
    try:
        location = ctx.obj.deactivate_location().handle(location_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Location {location.id} deactivated")
