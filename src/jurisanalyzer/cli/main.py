"""JurisAnalyzer CLI entry point."""

from __future__ import annotations

import importlib.metadata
import logging
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler

from jurisanalyzer.cli.ask import ask_cmd
from jurisanalyzer.cli.capture import batch_cmd, capture_cmd, process_cmd
from jurisanalyzer.cli.exchange import export_cmd, import_cmd
from jurisanalyzer.cli.status import status_cmd


def _version() -> str:
    try:
        return importlib.metadata.version("jurisanalyzer")
    except importlib.metadata.PackageNotFoundError:
        return "dev"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"jurisanalyzer {_version()}")
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


app = typer.Typer(
    name="juris",
    help=(
        "JurisAnalyzer — capture, structure and query Portuguese court decisions.\n\n"
        "  juris capture URL   Download a decision from the portal and store it.\n"
        "  juris ask QUESTION  Ask the LLM about the stored decisions."
    ),
    add_completion=False,
)


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug logging."),
    ] = False,
) -> None:
    """JurisAnalyzer — capture, structure and query Portuguese court decisions."""
    _configure_logging(verbose)


app.command("capture")(capture_cmd)
app.command("batch")(batch_cmd)
app.command("process")(process_cmd)
app.command("export")(export_cmd)
app.command("import")(import_cmd)
app.command("status")(status_cmd)
app.command("ask")(ask_cmd)


@app.command("version")
def version_cmd() -> None:
    """Show the installed JurisAnalyzer version."""
    typer.echo(f"jurisanalyzer {_version()}")


if __name__ == "__main__":
    app()
