"""CLI commands for the stock watcher."""

import json
import logging
import sys
from collections import Counter
from pathlib import Path

import click
import structlog
from pydantic import ValidationError

from stockwatch import __version__
from stockwatch.messaging.errors import ConfigurationError
from stockwatch.messaging.factory import create_messenger
from stockwatch.observability.logging import configure_logging
from stockwatch.reconcile.job import ReconciliationJob
from stockwatch.reconcile.scheduler import ReconciliationService
from stockwatch.settings.app import AppSettings, get_settings
from stockwatch.store.errors import TrackingStoreError
from stockwatch.store.store import TrackingStore
from stockwatch.tracking.errors import MalformedRecordError
from stockwatch.tracking.intake import TrackRequest, register
from stockwatch.tracking.models import ActionKind, decode_record, encode_key


logger = structlog.get_logger()

KIND_CHOICE = click.Choice([kind.value for kind in ActionKind])


def _load_settings(verbose: bool) -> AppSettings:
    """Load settings and configure logging from them."""
    try:
        settings = get_settings()
    except ValidationError as e:
        click.echo("Configuration validation failed:", err=True)
        for error in e.errors():
            loc = ".".join(str(part) for part in error["loc"])
            click.echo(f"  - {loc}: {error['msg']}", err=True)
        sys.exit(1)

    log_level = logging.DEBUG if verbose or settings.verbose else logging.INFO
    configure_logging(level=log_level, json_format=settings.json_logs)
    return settings


def _open_store(db_path: Path | None, settings: AppSettings) -> TrackingStore:
    store = TrackingStore(db_path or settings.db_path)
    try:
        store.connect()
    except TrackingStoreError as e:
        click.echo(f"Error: cannot open database: {e}", err=True)
        sys.exit(1)
    return store


db_option = click.option(
    "--db",
    "db_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Path to SQLite database (defaults to STOCKWATCH_DB_PATH).",
)
verbose_option = click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable debug logging.",
)


@click.group()
@click.version_option(version=__version__)
def cli() -> None:
    """Track product pages and notify when they are in stock or cheaper."""


@cli.command()
@db_option
@verbose_option
def serve(db_path: Path | None, verbose: bool) -> None:
    """Run the reconciliation jobs until interrupted."""
    settings = _load_settings(verbose)
    log = logger.bind(component="cli", command="serve")

    try:
        messenger = create_messenger(settings)
    except ConfigurationError as e:
        log.critical("configuration_error", error=str(e))
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    with _open_store(db_path, settings) as store:
        service = ReconciliationService(store, messenger, settings)
        try:
            service.run_forever()
        except (TrackingStoreError, MalformedRecordError) as e:
            click.echo(f"Error: service stopped: {e}", err=True)
            sys.exit(1)


@cli.command()
@click.option("--from", "channel", required=True, help="Destination channel id.")
@click.option("--url", required=True, help="Product page URL.")
@click.option(
    "--type",
    "kind",
    type=KIND_CHOICE,
    required=True,
    help="What to wait for.",
)
@click.option("--price", default=None, help="Target price (price tracking).")
@click.option(
    "--find-text",
    default=None,
    help="Text marking availability (availability tracking).",
)
@click.option("--selector", default=None, help="CSS selector of the fragment.")
@db_option
@verbose_option
def track(  # noqa: PLR0913
    channel: str,
    url: str,
    kind: str,
    price: str | None,
    find_text: str | None,
    selector: str | None,
    db_path: Path | None,
    verbose: bool,
) -> None:
    """Start tracking a product page for a channel."""
    settings = _load_settings(verbose)

    try:
        request = TrackRequest(
            channel=channel,
            url=url,
            type=ActionKind(kind),
            price=price,
            find_text=find_text,
            selector=selector,
        )
    except ValidationError as e:
        click.echo("Invalid track request:", err=True)
        for error in e.errors():
            loc = ".".join(str(part) for part in error["loc"])
            click.echo(f"  - {loc}: {error['msg']}", err=True)
        sys.exit(1)

    with _open_store(db_path, settings) as store:
        item = register(store, request, settings)

    click.echo(f"Tracking {item.url} for {item.channel} ({item.kind.value})")


@cli.command()
@click.option("--from", "channel", required=True, help="Destination channel id.")
@click.option("--url", required=True, help="Product page URL.")
@click.option("--type", "kind", type=KIND_CHOICE, required=True)
@db_option
@verbose_option
def untrack(
    channel: str,
    url: str,
    kind: str,
    db_path: Path | None,
    verbose: bool,
) -> None:
    """Stop tracking a product page for a channel."""
    settings = _load_settings(verbose)
    bucket = ActionKind(kind).bucket
    key = encode_key(channel, url)

    with _open_store(db_path, settings) as store:
        if not store.get(key, bucket):
            click.echo(f"Not tracked: {url} for {channel} ({kind})", err=True)
            sys.exit(1)
        store.delete(key, bucket)

    click.echo(f"Stopped tracking {url} for {channel} ({kind})")


@cli.command("list")
@click.option("--type", "kind", type=KIND_CHOICE, default=None)
@click.option("--json", "json_output", is_flag=True, help="Output as JSON.")
@db_option
@verbose_option
def list_items(
    kind: str | None,
    json_output: bool,
    db_path: Path | None,
    verbose: bool,
) -> None:
    """List tracked items."""
    settings = _load_settings(verbose)
    kinds = [ActionKind(kind)] if kind else list(ActionKind)

    rows: list[dict[str, str]] = []
    with _open_store(db_path, settings) as store:
        for action in kinds:
            for key, value in sorted(store.get_all(action.bucket).items()):
                try:
                    item = decode_record(action, key, value)
                except MalformedRecordError as e:
                    rows.append(
                        {"type": action.value, "key": key, "error": e.reason}
                    )
                    continue
                rows.append(
                    {
                        "type": action.value,
                        "channel": item.channel,
                        "url": item.url,
                        "selector": item.selector,
                        "criterion": item.criterion,
                    }
                )

    if json_output:
        click.echo(json.dumps(rows, indent=2))
        return

    if not rows:
        click.echo("No tracked items.")
        return
    for row in rows:
        if "error" in row:
            click.echo(f"  [{row['type']}] {row['key']}  (malformed: {row['error']})")
        else:
            click.echo(
                f"  [{row['type']}] {row['channel']}  {row['url']}  "
                f"selector={row['selector']!r} criterion={row['criterion']!r}"
            )


@cli.command()
@click.option("--kind", type=KIND_CHOICE, required=True, help="Kind to reconcile.")
@db_option
@verbose_option
def check(kind: str, db_path: Path | None, verbose: bool) -> None:
    """Run a single reconciliation pass and wait for it to finish."""
    settings = _load_settings(verbose)

    try:
        messenger = create_messenger(settings)
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    with _open_store(db_path, settings) as store:
        job = ReconciliationJob(ActionKind(kind), store, messenger, settings)
        try:
            result = job.run()
            outcomes = result.wait()
        except (TrackingStoreError, MalformedRecordError) as e:
            click.echo(f"Error: pass failed: {e}", err=True)
            sys.exit(1)
        finally:
            job.shutdown()

    counts = Counter(outcome.value for outcome in outcomes)
    click.echo(f"Pass {result.pass_id} ({kind}): {result.launched} checked")
    for outcome, count in sorted(counts.items()):
        click.echo(f"  {outcome}: {count}")
    if result.malformed:
        click.echo(f"  MALFORMED: {result.malformed}")
    if len(outcomes) < result.launched:
        click.echo("Some checks failed with store errors.", err=True)
        sys.exit(1)
