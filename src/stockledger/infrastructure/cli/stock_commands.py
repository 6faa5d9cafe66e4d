"""CLI commands for stock movements and stock queries."""

from __future__ import annotations

from datetime import datetime, timezone

import click

from stockledger.application.dto import MovementDTO
from stockledger.domain.exceptions import DomainException
from stockledger.domain.model.movement import Adjustment, MovementType

_common_options = [
    click.option("--product", "product_id", required=True, help="Product ID."),
    click.option("--quantity", required=True, type=int, help="Quantity (positive)."),
    click.option("--reason", default="", help="Free-text reason for the audit trail."),
    click.option("--actor", "actor_id", default="cli", show_default=True, help="Who performed the movement."),
    click.option("--key", "idempotency_key", default=None, help="Idempotency key; a repeated key is applied once."),
]


def _movement_options(func):
    for option in reversed(_common_options):
        func = option(func)
    return func


def _parse_time(value: str | None) -> datetime | None:
    """Parse an ISO date/time; naive values are taken as UTC."""
    if value is None:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        raise click.BadParameter(f"Invalid date '{value}'. Expected ISO format, e.g. 2025-07-01.")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _echo_movement(dto: MovementDTO) -> None:
    route = f"{dto.from_location_id or '-'} -> {dto.to_location_id or '-'}"
    kind = f"{dto.type}({dto.adjustment})" if dto.adjustment else dto.type
    click.echo(
        f"{dto.created_at[:19]:<20} {kind:<22} {dto.product_id:<12} "
        f"{dto.quantity:>7}  {route:<28} {dto.actor_id:<10} {dto.reason}"
    )


def _record(ctx: click.Context, type: MovementType, **kwargs) -> MovementDTO:
    handler = ctx.obj.record_movement()
    try:
        return handler.handle(type, **kwargs)
    except DomainException as exc:
        raise click.ClickException(str(exc))


@click.command("receive")
@click.option("--to", "to_location_id", required=True, help="Receiving location ID.")
@_movement_options
@click.pass_context
def stock_receive(ctx, to_location_id, product_id, quantity, reason, actor_id, idempotency_key) -> None:
    """Receive stock into a location."""
    dto = _record(
        ctx, MovementType.RECEIPT,
        product_id=product_id, quantity=quantity, to_location_id=to_location_id,
        reason=reason, actor_id=actor_id, idempotency_key=idempotency_key,
    )
    click.echo(f"Received {dto.quantity} x {dto.product_id} at {to_location_id} (movement {dto.id})")


@click.command("ship")
@click.option("--from", "from_location_id", required=True, help="Shipping location ID.")
@_movement_options
@click.pass_context
def stock_ship(ctx, from_location_id, product_id, quantity, reason, actor_id, idempotency_key) -> None:
    """Ship stock out of a location."""
    dto = _record(
        ctx, MovementType.SHIPMENT,
        product_id=product_id, quantity=quantity, from_location_id=from_location_id,
        reason=reason, actor_id=actor_id, idempotency_key=idempotency_key,
    )
    click.echo(f"Shipped {dto.quantity} x {dto.product_id} from {from_location_id} (movement {dto.id})")


@click.command("adjust")
@click.option("--location", "location_id", required=True, help="Location ID.")
@click.option(
    "--direction",
    required=True,
    type=click.Choice(["increase", "decrease"], case_sensitive=False),
    help="Whether the count went up or down.",
)
@_movement_options
@click.pass_context
def stock_adjust(ctx, location_id, direction, product_id, quantity, reason, actor_id, idempotency_key) -> None:
    """Correct stock after a count (quantity is always positive)."""
    adjustment = Adjustment(direction.upper())
    locations = (
        {"to_location_id": location_id}
        if adjustment is Adjustment.INCREASE
        else {"from_location_id": location_id}
    )
    dto = _record(
        ctx, MovementType.ADJUSTMENT,
        product_id=product_id, quantity=quantity, adjustment=adjustment,
        reason=reason, actor_id=actor_id, idempotency_key=idempotency_key,
        **locations,
    )
    sign = "+" if adjustment is Adjustment.INCREASE else "-"
    click.echo(f"Adjusted {dto.product_id} at {location_id} by {sign}{dto.quantity} (movement {dto.id})")


@click.command("transfer")
@click.option("--from", "from_location_id", required=True, help="Source location ID.")
@click.option("--to", "to_location_id", required=True, help="Destination location ID.")
@_movement_options
@click.pass_context
def stock_transfer(
    ctx, from_location_id, to_location_id, product_id, quantity, reason, actor_id, idempotency_key
) -> None:
    """Move stock between two locations in one atomic step."""
    handler = ctx.obj.transfer_stock()
    try:
        dto = handler.handle(
            product_id, quantity, from_location_id, to_location_id,
            reason=reason, actor_id=actor_id, idempotency_key=idempotency_key,
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Transferred {quantity} x {product_id} (movement {dto.movement.id})")
    click.echo(f"  {from_location_id:<20} now {dto.source_quantity:>8}")
    click.echo(f"  {to_location_id:<20} now {dto.destination_quantity:>8}")


@click.command("show")
@click.option("--product", "product_id", required=True, help="Product ID.")
@click.pass_context
def stock_show(ctx, product_id: str) -> None:
    """Show a product's stock per location, status and value."""
    try:
        dto = ctx.obj.show_stock().handle(product_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Product {dto.product_id}  (status={dto.status}, reorder at {dto.min_quantity})")
    click.echo()
    click.echo(f"  {'Location':<20} {'Quantity':>10}")
    click.echo(f"  {'-'*31}")
    for line in dto.locations:
        click.echo(f"  {line.location_id:<20} {line.quantity:>10}")
    click.echo(f"  {'-'*31}")
    click.echo(f"  {'Total':<20} {dto.total:>10}")
    click.echo(f"  {'Value at cost':<20} {dto.value:>10}")


@click.command("at")
@click.option("--location", "location_id", required=True, help="Location ID.")
@click.pass_context
def stock_at(ctx, location_id: str) -> None:
    """Show every product held at a location."""
    try:
        lines = ctx.obj.location_stock().handle(location_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not lines:
        click.echo(f"No stock recorded at {location_id}.")
        return

    click.echo(f"{'Product':<20} {'Quantity':>10}")
    click.echo("-" * 31)
    for line in lines:
        click.echo(f"{line.product_id:<20} {line.quantity:>10}")


@click.command("history")
@click.option("--product", "product_id", default=None, help="Only this product.")
@click.option("--location", "location_id", default=None, help="Only movements touching this location.")
@click.option(
    "--type", "type_name", default=None,
    type=click.Choice([t.value for t in MovementType], case_sensitive=False),
    help="Only this movement type.",
)
@click.option("--since", default=None, help="From this date/time (ISO, inclusive).")
@click.option("--until", default=None, help="Up to this date/time (ISO, exclusive).")
@click.option("--limit", default=50, show_default=True, type=int)
@click.option("--offset", default=0, show_default=True, type=int)
@click.pass_context
def stock_history(ctx, product_id, location_id, type_name, since, until, limit, offset) -> None:
    """List recorded movements, newest first."""
    try:
        page = ctx.obj.movement_history().handle(
            product_id=product_id,
            location_id=location_id,
            type=MovementType(type_name.upper()) if type_name else None,
            since=_parse_time(since),
            until=_parse_time(until),
            limit=limit,
            offset=offset,
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not page.movements:
        click.echo("No movements found.")
        return

    for dto in page.movements:
        _echo_movement(dto)
    shown_to = page.offset + len(page.movements)
    click.echo(f"-- {page.offset + 1}-{shown_to} of {page.total}")


@click.command("movement")
@click.option("--id", "movement_id", required=True, help="Movement ID.")
@click.pass_context
def stock_movement(ctx, movement_id: str) -> None:
    """Show a single movement."""
    try:
        dto = ctx.obj.show_movement().handle(movement_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))
    _echo_movement(dto)


@click.command("low")
@click.pass_context
def stock_low(ctx) -> None:
    """List products at or below their reorder threshold."""
    report = ctx.obj.low_stock_report().handle()

    if not report.alerts:
        click.echo("All products are in stock.")
    else:
        click.echo(f"{'Product':<12} {'SKU':<12} {'Name':<20} {'Total':>7} {'Min':>5}  Status")
        click.echo("-" * 72)
        for a in report.alerts:
            click.echo(
                f"{a.product_id:<12} {a.sku:<12} {a.name:<20} {a.total:>7} {a.min_quantity:>5}  {a.status}"
            )
    click.echo(f"Inventory value at cost: {report.inventory_value}")


@click.command("verify")
@click.pass_context
def stock_verify(ctx) -> None:
    """Replay movement history and compare it with current stock."""
    result = ctx.obj.verify_ledger().handle()

    if result.is_consistent:
        click.echo(
            f"Ledger consistent: {result.entries_checked} entries match "
            f"{result.movements_checked} movements."
        )
        return

    for d in result.discrepancies:
        click.echo(
            f"{d.product_id} at {d.location_id}: recorded {d.recorded}, replayed {d.replayed}"
        )
    raise click.ClickException(f"{len(result.discrepancies)} stock entries do not match history")
