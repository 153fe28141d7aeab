"""juris export / import — move the record collection as one JSON file."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from jurisanalyzer.cli.common import DbOpt, DirectoryOpt, console, load_config_or_exit, open_store
from jurisanalyzer.cli.errors import err_import_malformed, err_no_records, err_storage_write
from jurisanalyzer.db.models import ImportMalformed
from jurisanalyzer.store import StorageWriteFailure, export_all, export_filename


def export_cmd(
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Target file (default: jurisprudencia_total_<date>.json)."),
    ] = None,
    directory: DirectoryOpt = None,
    db: DbOpt = None,
) -> None:
    """Export every stored record into a single JSON file."""
    cfg = load_config_or_exit()
    with open_store(cfg, directory, db) as store:
        records = store.list_legal_records()

    if not records:
        console.print(err_no_records())
        raise typer.Exit(0)

    target = output or Path(export_filename())
    target.write_bytes(export_all(records))
    console.print(f"[green]✓[/] Exported {len(records)} records to {target}")


def import_cmd(
    source: Annotated[
        Path,
        typer.Argument(exists=True, dir_okay=False, help="JSON file with one record or a list."),
    ],
    directory: DirectoryOpt = None,
    db: DbOpt = None,
) -> None:
    """Import records from an exported JSON file (existing ids are overwritten)."""
    data = source.read_bytes()
    cfg = load_config_or_exit()
    with open_store(cfg, directory, db) as store:
        try:
            report = store.import_records(data)
        except ImportMalformed as exc:
            console.print(err_import_malformed(str(source), str(exc)))
            raise typer.Exit(1) from exc

    for error in report.errors:
        if isinstance(error, StorageWriteFailure):
            console.print(err_storage_write(str(error)))
        else:
            console.print(f"  [yellow]✗ Skipped:[/] {error}")
    console.print(f"[green]✓[/] Imported {len(report.records)} records")
