"""Flask CLI commands."""
from __future__ import annotations

from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import click
import httpx
from flask import current_app
from flask.cli import with_appcontext

from .archive import (
    ArchiveExporter,
    CachedPhotoResolver,
    RemotePhotoResolver,
    load_entries_from_backup,
    load_entries_from_store,
)
from .archive.exporter import PHOTOS_DIR_NAME, RAW_EXPORT_NAME
from .config import parse_id_list
from .errors import GuestbookError
from .extensions import db
from .services.entries import EntryStore


def register(app) -> None:
    app.cli.add_command(export_archive_command)


@click.command("export-archive")
@click.option(
    "--output",
    "output_dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Backup directory (defaults to ARCHIVE_DIR).",
)
@click.option(
    "--offline",
    is_flag=True,
    help="Re-render from a previous backup instead of the database and network.",
)
@click.option(
    "--exclude-ids",
    default=None,
    help="Comma separated ids of test entries (defaults to ARCHIVE_EXCLUDED_IDS).",
)
@click.option("--site-url", default="", help="Base URL for site-relative photo links.")
@click.option("--timeout", default=30.0, show_default=True, help="Per-photo download timeout in seconds.")
@with_appcontext
def export_archive_command(
    output_dir: Optional[Path],
    offline: bool,
    exclude_ids: Optional[str],
    site_url: str,
    timeout: float,
) -> None:
    """Write a self-contained archive of every guestbook entry."""
    config = current_app.config
    output_dir = output_dir or Path(config["ARCHIVE_DIR"])
    try:
        excluded = (
            parse_id_list(exclude_ids) if exclude_ids is not None else config["ARCHIVE_EXCLUDED_IDS"]
        )
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="--exclude-ids") from exc
    try:
        tz = ZoneInfo(config["ARCHIVE_TIMEZONE"])
    except ZoneInfoNotFoundError as exc:
        raise click.ClickException(f"Unknown ARCHIVE_TIMEZONE {config['ARCHIVE_TIMEZONE']!r}") from exc

    try:
        if offline:
            entries = load_entries_from_backup(output_dir / RAW_EXPORT_NAME)
            click.echo(f"Loaded {len(entries)} entries from {RAW_EXPORT_NAME}.")
            exporter = ArchiveExporter(
                output_dir,
                CachedPhotoResolver(output_dir / PHOTOS_DIR_NAME),
                excluded_ids=excluded,
                tz=tz,
            )
            summary = exporter.run(entries, write_raw=False)
        else:
            click.echo("Fetching all guestbook entries...")
            entries = load_entries_from_store(EntryStore(db.session))
            click.echo(f"Found {len(entries)} entries.")
            with httpx.Client(timeout=timeout) as client:
                exporter = ArchiveExporter(
                    output_dir,
                    RemotePhotoResolver(
                        output_dir / PHOTOS_DIR_NAME,
                        client,
                        site_url=site_url or config.get("SITE_URL", ""),
                    ),
                    excluded_ids=excluded,
                    tz=tz,
                )
                summary = exporter.run(entries)
    except GuestbookError as exc:
        raise click.ClickException(f"Export failed: {exc}") from exc

    click.secho("\n--- Backup Summary ---", fg="green")
    for line in summary.lines():
        click.echo(line)
    click.echo(f"\nDone! Your backup is in {output_dir}/")
