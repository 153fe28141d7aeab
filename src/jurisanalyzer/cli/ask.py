"""juris ask — question the stored decisions through the configured LLM."""

from __future__ import annotations

from typing import Annotated

import typer
from rich.markdown import Markdown

from jurisanalyzer.cli.common import DbOpt, DirectoryOpt, console, load_config_or_exit, open_store
from jurisanalyzer.cli.errors import err_no_api_key, err_no_records
from jurisanalyzer.rag.analyst import ChatMessage, analyze
from jurisanalyzer.rag.llm_client import provider_of, validate_api_key


def ask_cmd(
    question: Annotated[str, typer.Argument(help="Question about the stored decisions.")],
    model: Annotated[
        str | None,
        typer.Option("--model", "-m", help="LiteLLM model (default: llm.model from config)."),
    ] = None,
    interactive: Annotated[
        bool,
        typer.Option("--chat", help="Keep asking follow-up questions until an empty line."),
    ] = False,
    directory: DirectoryOpt = None,
    db: DbOpt = None,
) -> None:
    """Answer QUESTION using the stored records as context."""
    cfg = load_config_or_exit()
    llm_model = model or cfg.llm.model

    try:
        validate_api_key(llm_model)
    except EnvironmentError as exc:
        console.print(err_no_api_key(provider_of(llm_model)))
        raise typer.Exit(1) from exc

    with open_store(cfg, directory, db) as store:
        records = store.list_legal_records()
    if not records:
        console.print(err_no_records())
        raise typer.Exit(0)

    history: list[ChatMessage] = []
    while question:
        with console.status(f"Analysing {len(records)} decisions…"):
            answer = analyze(
                question,
                history,
                records,
                llm_model,
                temperature=cfg.llm.temperature,
                max_context_chars=cfg.llm.max_context_chars,
            )
        console.print(Markdown(answer))
        if not interactive:
            break
        history.extend([ChatMessage("user", question), ChatMessage("assistant", answer)])
        question = typer.prompt("\n?", default="", show_default=False).strip()
