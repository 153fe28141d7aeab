"""juris capture / batch / process — feed captured input through the orchestrator.

  capture  One candidate: a portal URL, pasted text, a text/HTML file, or stdin.
  batch    A file with one portal URL per line, processed with a fixed delay.
  process  Re-run extraction over the raw captures left pending.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.progress import BarColumn, Progress, TaskProgressColumn, TextColumn

from jurisanalyzer.cli.common import (
    DbOpt,
    DirectoryOpt,
    console,
    load_config_or_exit,
    mode_label,
    open_store,
)
from jurisanalyzer.cli.errors import err_storage_write, warn_deferred, warn_manual_capture
from jurisanalyzer.config import JurisConfig
from jurisanalyzer.extract import FieldExtractor
from jurisanalyzer.ingest import BatchReport, CaptureResult, Orchestrator, Outcome, PortalFetcher
from jurisanalyzer.store import StorageService


def capture_cmd(
    candidate: Annotated[
        str | None,
        typer.Argument(help="Portal URL or decision text. Reads stdin when omitted."),
    ] = None,
    file: Annotated[
        Path | None,
        typer.Option("--file", "-f", exists=True, dir_okay=False, help="Read the capture from a file."),
    ] = None,
    directory: DirectoryOpt = None,
    db: DbOpt = None,
) -> None:
    """Capture one decision (URL or text) and store it as a record."""
    if file is not None:
        text = file.read_text(encoding="utf-8", errors="replace")
    elif candidate is not None:
        text = candidate
    else:
        text = typer.get_text_stream("stdin").read()

    cfg = load_config_or_exit()
    with open_store(cfg, directory, db) as store:
        orchestrator = _build_orchestrator(cfg, store)
        result = orchestrator.handle_candidate(text)
        _print_result(result, text.strip())
        if result.outcome is Outcome.FAILED:
            raise typer.Exit(1)


def batch_cmd(
    url_file: Annotated[
        Path,
        typer.Argument(exists=True, dir_okay=False, help="File with one portal URL per line."),
    ],
    directory: DirectoryOpt = None,
    db: DbOpt = None,
) -> None:
    """Download and store every portal URL listed in URL_FILE."""
    lines = url_file.read_text(encoding="utf-8").splitlines()
    urls = [line.strip() for line in lines if line.strip() and not line.lstrip().startswith("#")]
    if not urls:
        console.print("[yellow]No URLs found in file.[/]")
        raise typer.Exit(0)

    cfg = load_config_or_exit()
    with open_store(cfg, directory, db) as store:
        orchestrator = _build_orchestrator(cfg, store)
        console.print(f"Storage: {mode_label(store)}  |  URLs: [bold]{len(urls)}[/]")

        with Progress(
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            console=console,
        ) as prog:
            task = prog.add_task("Capturing…", total=len(urls))

            def _advance(done: int, total: int, result: CaptureResult) -> None:
                prog.update(task, completed=done)

            try:
                report = orchestrator.process_batch(urls, on_progress=_advance)
            except KeyboardInterrupt:
                orchestrator.cancel()
                console.print("[yellow]Cancelled.[/] Records already stored are kept.")
                raise typer.Exit(130)

        _print_report(report, urls)


def process_cmd(
    directory: DirectoryOpt = None,
    db: DbOpt = None,
) -> None:
    """Retry extraction for raw captures that are still pending."""
    cfg = load_config_or_exit()
    with open_store(cfg, directory, db) as store:
        pending = store.list_raw_captures()
        if not pending:
            console.print("[dim]No pending captures.[/]")
            return
        orchestrator = _build_orchestrator(cfg, store)
        report = orchestrator.process_pending()
        _print_report(report)


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------


def _build_orchestrator(cfg: JurisConfig, store: StorageService) -> Orchestrator:
    return Orchestrator(
        store,
        PortalFetcher.from_config(cfg.ingest),
        extractor=FieldExtractor(cfg.extraction),
        config=cfg.ingest,
    )


def _print_result(result: CaptureResult, candidate: str) -> None:
    if result.outcome is Outcome.PROCESSED and result.record is not None:
        r = result.record
        console.print(f"[green]✓[/] {r.id}  ({r.processo}, {r.data}, {r.relator})")
    elif result.outcome is Outcome.DEFERRED:
        console.print(warn_deferred(result.name or "?", result.message))
    elif result.outcome is Outcome.MANUAL_CAPTURE_REQUIRED:
        console.print(warn_manual_capture(candidate))
    elif result.outcome is Outcome.FAILED:
        console.print(err_storage_write(result.message))
    elif result.outcome is Outcome.IGNORED:
        console.print(f"[dim]↷ Ignored: {result.message}[/]")
    else:
        console.print(f"[dim]↷ {result.outcome.value}[/]")


def _print_report(report: BatchReport, labels: list[str] | None = None) -> None:
    for index, result in enumerate(report.results):
        label = labels[index] if labels else result.name
        if not result.ok:
            console.print(f"  [yellow]✗[/] {label}: {result.outcome.value} {result.message}".rstrip())
    console.print(
        f"[green]✓ {report.succeeded} stored[/]  |  "
        f"[{'red' if report.failed else 'dim'}]{report.failed} not stored[/]"
    )
