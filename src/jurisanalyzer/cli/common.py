"""Shared CLI wiring: config loading and store selection."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from jurisanalyzer.cli.errors import err_config, err_storage_unavailable
from jurisanalyzer.config import ConfigError, JurisConfig, load_config
from jurisanalyzer.store import DIRECT, StorageService

console = Console()

DirectoryOpt = Annotated[
    Path | None,
    typer.Option("--directory", "-d", help="Store files in this directory (direct mode)."),
]
DbOpt = Annotated[
    Path | None,
    typer.Option("--db", help="SQLite file used when no directory is available."),
]


def load_config_or_exit() -> JurisConfig:
    try:
        return load_config()
    except (ConfigError, OSError) as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1) from exc


def open_store(
    cfg: JurisConfig,
    directory: Path | None = None,
    db: Path | None = None,
) -> StorageService:
    """Select a backend (flags override config) or exit with an error."""
    if directory is not None:
        cfg.storage.directory = str(directory)
    if db is not None:
        cfg.storage.db_path = str(db)

    store = StorageService.from_config(cfg.storage)
    selection = store.select_backend(cfg.storage.directory)
    if not selection.success:
        console.print(err_storage_unavailable(cfg.storage.db_path))
        raise typer.Exit(1)
    return store


def mode_label(store: StorageService) -> str:
    if store.mode == DIRECT:
        return "[green]direct[/]"
    return "[cyan]virtual[/]"
