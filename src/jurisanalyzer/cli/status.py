"""juris status — storage mode, record counts and pending captures."""

from __future__ import annotations

from typing import Annotated

import typer
from rich.panel import Panel
from rich.table import Table

from jurisanalyzer.cli.common import (
    DbOpt,
    DirectoryOpt,
    console,
    load_config_or_exit,
    mode_label,
    open_store,
)
from jurisanalyzer.store import DIRECT

_MAX_ROWS = 20


def status_cmd(
    directory: DirectoryOpt = None,
    db: DbOpt = None,
    all_rows: Annotated[
        bool,
        typer.Option("--all", help="List every record instead of the first 20."),
    ] = False,
) -> None:
    """Show the storage mode, stored records and pending captures."""
    cfg = load_config_or_exit()
    with open_store(cfg, directory, db) as store:
        records = store.list_legal_records()
        pending = store.list_raw_captures()
        location = cfg.storage.directory if store.mode == DIRECT else cfg.storage.db_path

        lines = [
            f"Storage:  {mode_label(store)}  ({location})",
            f"Records:  [bold]{len(records)}[/]",
            f"Pending:  [bold]{len(pending)}[/]",
        ]
        console.print(Panel("\n".join(lines), title="[bold]JurisAnalyzer[/]", expand=False))

    if records:
        table = Table(show_header=True, header_style="bold")
        table.add_column("Processo")
        table.add_column("Data")
        table.add_column("Relator")
        table.add_column("ECLI", style="dim")
        rows = sorted(records, key=lambda r: r.id)
        for r in rows if all_rows else rows[:_MAX_ROWS]:
            table.add_row(r.processo, r.data, r.relator, r.ecli)
        console.print(table)
        if not all_rows and len(rows) > _MAX_ROWS:
            console.print(f"[dim]… {len(rows) - _MAX_ROWS} more (use --all)[/]")

    if pending:
        console.print("[yellow]Pending captures:[/] " + ", ".join(sorted(c.name for c in pending)))
        console.print("  Retry with:  juris process")
