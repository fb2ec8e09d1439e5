#!/usr/bin/env python3
"""
Record Store CLI Commands

Capture pages into the store, look records up by tracking number, and manage
the stored records.
"""

from pathlib import Path

import click

from ..core.config import Config
from ..core.json_utils import format_json, write_json
from ..extractors import available_extractors, customs, get_extractor
from ..records.catalog import Catalog, copy_text
from ..records.lookup import LookupService
from ..records.models import OrderRecord
from ..records.reconciler import Reconciler
from ..records.store import RecordStore, StoreWriteError


def _open_store(ctx: click.Context) -> RecordStore:
    config: Config = ctx.obj["config"]
    try:
        return RecordStore.from_config(config)
    except ValueError as e:
        raise click.ClickException(f"Cannot read record store {config.storage.store_file}: {e}") from e


def _summary_line(record: OrderRecord) -> str:
    parts = [record.key]
    if record.tracking_id and record.tracking_id != record.key:
        parts.append(f"tracking {record.tracking_id}")
    if record.carrier:
        parts.append(f"({record.carrier.value})")
    name = record.primary_item_name
    if name:
        parts.append(f"- {name[:50]}")
    return " ".join(parts)


def _echo_record(record: OrderRecord) -> None:
    click.echo(f"Key: {record.key}")
    click.echo(f"  Source: {record.source.value}")
    if record.order_id:
        click.echo(f"  Order ID: {record.order_id}")
    if record.tracking_id:
        carrier = f" ({record.carrier.value})" if record.carrier else ""
        click.echo(f"  Tracking: {record.tracking_id}{carrier}")
    if record.order_date:
        click.echo(f"  Order Date: {record.order_date}")
    if record.total is not None:
        click.echo(f"  Total: {record.total}")
    for item in record.items:
        price = f" @ {item.price}" if item.price is not None else ""
        click.echo(f"  - {item.name} x{item.quantity}{price}")


@click.command()
@click.argument("source")
@click.argument("kind")
@click.argument("page_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--url", help="URL the page was saved from (carries order/item ids)")
@click.pass_context
def capture(ctx: click.Context, source: str, kind: str, page_file: Path, url: str | None) -> None:
    """
    Capture a saved page into the record store.

    SOURCE is the site (amazon, ebay), KIND the page kind (orders, tracking,
    purchases, order, modal) and PAGE_FILE the saved HTML.

    Examples:
      parcels capture amazon orders orders.html
      parcels capture amazon tracking track.html --url "https://...?orderId=112-..."
    """
    config: Config = ctx.obj["config"]
    verbose = ctx.obj.get("verbose", False)

    try:
        extractor = get_extractor(source, kind, config)
    except ValueError as e:
        raise click.ClickException(str(e)) from e

    facts = extractor.extract(page_file.read_text(encoding="utf-8"), url=url)
    if not facts:
        raise click.ClickException(f"Nothing captured from {page_file}")

    reconciler = Reconciler.from_config(config, _open_store(ctx))
    try:
        keys = reconciler.reconcile_many(facts, bulk=extractor.bulk)
    except StoreWriteError as e:
        click.echo(f"❌ Error saving records: {e}", err=True)
        raise click.ClickException(str(e)) from e

    stored = [key for key in keys if key is not None]
    with_tracking = sum(1 for fact in facts if fact.tracking_id)
    click.echo(f"✅ Captured {len(stored)} of {len(facts)} {source} facts ({with_tracking} with tracking)")
    if verbose:
        for key in dict.fromkeys(stored):
            click.echo(f"   {key}")


@click.command()
@click.argument("tracking_id")
@click.option("--copy", "show_copy", is_flag=True, help="Print the declaration clipboard text only")
@click.option("--json", "as_json", is_flag=True, help="Print the stored record as JSON")
@click.pass_context
def lookup(ctx: click.Context, tracking_id: str, show_copy: bool, as_json: bool) -> None:
    """Find the record for a tracking number."""
    record = LookupService(_open_store(ctx)).find_by_tracking(tracking_id)
    if record is None:
        raise click.ClickException(f"No record found for tracking {tracking_id}")

    if show_copy:
        click.echo(copy_text(record))
        return
    if as_json:
        click.echo(format_json({record.key: record.to_dict()}))
        return
    _echo_record(record)


@click.command(name="list")
@click.option("--search", "-s", help="Filter by order id, tracking id, carrier or item name")
@click.pass_context
def list_records(ctx: click.Context, search: str | None) -> None:
    """List records, most recently updated first."""
    records = Catalog(_open_store(ctx)).listing(search)
    if not records:
        click.echo("No matching records" if search else "No records captured yet")
        return
    for record in records:
        click.echo(_summary_line(record))


@click.command()
@click.pass_context
def stats(ctx: click.Context) -> None:
    """Show record counts."""
    store = _open_store(ctx)
    result = Catalog(store).stats()
    click.echo(f"Orders: {result.order_count}")
    click.echo(f"With tracking: {result.tracking_count}")
    click.echo(store.backend.summary_text())


@click.command()
@click.argument("tracking_id")
@click.option("--description", "-d", help="Item description")
@click.option("--quantity", "-q", type=click.IntRange(min=1), default=1, show_default=True, help="Item quantity")
@click.option("--value", help="Item value in dollars, e.g. 19.99")
@click.pass_context
def manual(ctx: click.Context, tracking_id: str, description: str | None, quantity: int, value: str | None) -> None:
    """Add a manual entry for a tracking number."""
    catalog = Catalog(_open_store(ctx))
    try:
        record = catalog.add_manual_entry(tracking_id, description, quantity, value)
    except (ValueError, StoreWriteError) as e:
        raise click.ClickException(str(e)) from e
    click.echo(f"✅ Saved manual entry {record.key}")


@click.command()
@click.argument("key")
@click.pass_context
def delete(ctx: click.Context, key: str) -> None:
    """Delete the record stored under KEY."""
    try:
        deleted = Catalog(_open_store(ctx)).delete(key)
    except StoreWriteError as e:
        raise click.ClickException(str(e)) from e
    if not deleted:
        raise click.ClickException(f"No record with key {key}")
    click.echo(f"Deleted {key}")


@click.command()
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def clear(ctx: click.Context, yes: bool) -> None:
    """Delete all records and manual entries."""
    if not yes:
        click.confirm("Delete all captured data?", abort=True)
    try:
        count = Catalog(_open_store(ctx)).clear_all()
    except StoreWriteError as e:
        raise click.ClickException(str(e)) from e
    click.echo(f"Cleared {count} records")


@click.command()
@click.argument("output", type=click.Path(dir_okay=False, path_type=Path), required=False)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["csv", "json"]),
    default="csv",
    show_default=True,
    help="csv: one row per item; json: records by key",
)
@click.pass_context
def export(ctx: click.Context, output: Path | None, output_format: str) -> None:
    """
    Export records to CSV or JSON.

    OUTPUT defaults to parcels.csv (or parcels.json) in the export directory.
    """
    config: Config = ctx.obj["config"]
    output_path = output or config.export_dir / f"parcels.{output_format}"
    catalog = Catalog(_open_store(ctx))

    try:
        if output_format == "json":
            entries = catalog.entries()
            write_json(output_path, {key: record.to_dict() for key, record in entries.items()})
            click.echo(f"Exported {len(entries)} records to {output_path}")
            return

        frame = catalog.to_dataframe()
        output_path.parent.mkdir(parents=True, exist_ok=True)
        frame.to_csv(output_path, index=False)
    except OSError as e:
        raise click.ClickException(f"Cannot write {output_path}: {e}") from e
    click.echo(f"Exported {len(frame)} rows to {output_path}")


@click.command(name="match-page")
@click.argument("page_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def match_page(ctx: click.Context, page_file: Path) -> None:
    """
    Match tracking numbers on a saved forwarder page to records.

    Works on both the package dashboard and a single declaration page.
    """
    config: Config = ctx.obj["config"]
    if not config.extraction.is_active("customs"):
        raise click.ClickException("Source customs is disabled by PARCELS_SOURCES")

    html = page_file.read_text(encoding="utf-8")
    tracking_ids = customs.find_tracking_numbers(html)
    if not tracking_ids:
        declared = customs.find_declaration_tracking(html)
        tracking_ids = [declared] if declared else []
    if not tracking_ids:
        raise click.ClickException(f"No tracking numbers found in {page_file}")

    matches = LookupService(_open_store(ctx)).match_tracking_numbers(tracking_ids)
    for tracking_id in tracking_ids:
        record = matches.get(tracking_id)
        if record is None:
            click.echo(f"❓ {tracking_id}: no matching record")
        else:
            click.echo(f"✅ {tracking_id}: {_summary_line(record)}")
    click.echo(f"Matched {len(matches)} of {len(tracking_ids)} tracking numbers")


@click.command()
@click.pass_context
def pages(ctx: click.Context) -> None:
    """List the page kinds that can be captured."""
    extractors = available_extractors(ctx.obj["config"])
    if not extractors:
        click.echo("No sources enabled (check PARCELS_SOURCES)")
        return
    for extractor in extractors:
        notes = []
        if extractor.uses_url:
            notes.append("--url")
        if extractor.bulk:
            notes.append("bulk")
        suffix = f" ({', '.join(notes)})" if notes else ""
        click.echo(f"{extractor.source} {extractor.kind}{suffix}")
