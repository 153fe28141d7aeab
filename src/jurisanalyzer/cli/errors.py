"""JurisAnalyzer rich error messages — actionable feedback.

Every error shown to the user must contain:
  1. What went wrong (clear cause)
  2. The exact action the user should take to fix it

Usage:
    from jurisanalyzer.cli.errors import err_no_api_key
    console.print(err_no_api_key("gemini"))
    raise typer.Exit(1)
"""

from __future__ import annotations


def err_no_api_key(provider: str) -> str:
    """No API key for *provider*.

    Example:
        No API key for 'gemini'. Set:  export GEMINI_API_KEY=...
    """
    env_map = {
        "openai": "OPENAI_API_KEY",
        "anthropic": "ANTHROPIC_API_KEY",
        "gemini": "GEMINI_API_KEY",
        "mistral": "MISTRAL_API_KEY",
        "azure": "AZURE_API_KEY",
    }
    env_var = env_map.get(provider.lower(), f"{provider.upper()}_API_KEY")
    return (
        f"[red]Error:[/] No API key for '{provider}'.\n"
        f"  Set:  export {env_var}=..."
    )


def err_config(message: str) -> str:
    """Config file is invalid or contains a forbidden key."""
    return (
        f"[red]Error:[/] Invalid configuration.\n"
        f"  {message}\n"
        "  Fix juris.yaml (or ~/.jurisanalyzer/config.yaml) and retry."
    )


def err_storage_unavailable(db_path: str) -> str:
    """Neither the directory nor the SQLite backend could be opened."""
    return (
        "[red]Error:[/] No storage available.\n"
        f"  The directory could not be written and '{db_path}' could not be opened.\n"
        "  Check permissions, or point storage elsewhere:  --directory PATH  or  --db PATH"
    )


def err_storage_write(message: str) -> str:
    """A save or delete failed after the backend was selected."""
    return (
        f"[red]Error:[/] Storage write failed: {message}\n"
        "  Check free disk space and permissions, then retry the capture."
    )


def warn_manual_capture(url: str) -> str:
    """Every fetch strategy failed for *url*."""
    return (
        f"[yellow]Manual capture required:[/] could not download '{url}'.\n"
        "  Open the page in a browser, copy its text and run:\n"
        "    juris capture --file page.txt"
    )


def warn_deferred(name: str, message: str) -> str:
    """Extraction failed; the raw capture is kept for a later pass."""
    return (
        f"[yellow]Deferred:[/] '{name}' was saved but could not be parsed ({message}).\n"
        "  Retry later with:  juris process"
    )


def err_import_malformed(path: str, message: str) -> str:
    """Import file is not a record or a list of records."""
    return (
        f"[red]Error:[/] Cannot import '{path}': {message}\n"
        "  Use a file produced by:  juris export"
    )


def err_no_records() -> str:
    """The store holds no records to query or export."""
    return (
        "[yellow]No records stored yet.[/]\n"
        "  Run:  juris capture URL  or  juris batch urls.txt"
    )
