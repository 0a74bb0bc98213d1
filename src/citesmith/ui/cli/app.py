"""Typer application wiring for the citesmith CLI."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from citesmith.core.config import load_config
from citesmith.core.exceptions import ConfigurationError
from citesmith.version import get_version

from .commands import (
    check,
    context,
    delete_key,
    find_key,
    insert_keys,
    labels,
    sort_keys,
    sources,
    swap_key,
)
from .state import debug_enabled, emit_error, set_cli_state


app = typer.Typer(
    help="Resolve and check citations, cross-references, and bibliographies.",
    context_settings={"help_option_names": ["--help", "-h"]},
    no_args_is_help=True,
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"citesmith {get_version()}")
        raise typer.Exit()


@app.callback()
def configure(
    ctx: typer.Context,
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="YAML configuration file (defaults to $CITESMITH_CONFIG).",
            dir_okay=False,
        ),
    ] = None,
    verbose: Annotated[
        int,
        typer.Option("--verbose", "-v", count=True, help="Increase diagnostic output."),
    ] = 0,
    debug: Annotated[
        bool, typer.Option("--debug", help="Show full tracebacks on failure.")
    ] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version", callback=_version_callback, is_eager=True, help="Show the version."
        ),
    ] = False,
) -> None:
    """Load configuration and diagnostics settings shared by every command."""
    try:
        settings = load_config(config)
    except ConfigurationError as exc:
        emit_error(str(exc), exception=exc)
        raise typer.Exit(code=2) from exc
    set_cli_state(ctx=ctx, verbosity=verbose, debug=debug, config=settings)


app.command()(labels)
app.command()(sources)
app.command("find-key")(find_key)
app.command()(context)
app.command()(check)
app.command("insert-keys")(insert_keys)
app.command("delete-key")(delete_key)
app.command("swap-key")(swap_key)
app.command("sort-keys")(sort_keys)


def main() -> None:
    """Entry point compatible with console scripts."""
    try:
        app()
    except typer.Exit:
        raise
    except KeyboardInterrupt as exc:
        if debug_enabled():
            raise
        emit_error("Operation cancelled by user.", exception=exc)
        raise typer.Exit(code=1) from exc
    except SystemExit:
        raise
    except Exception as exc:  # pragma: no cover - defensive catch-all
        from .state import get_cli_state

        state = get_cli_state()
        if state.show_tracebacks:
            from rich.traceback import Traceback

            tb = Traceback.from_exception(
                type(exc),
                exc,
                exc.__traceback__,
                show_locals=state.verbosity >= 2,
            )
            state.err_console.print(tb)
        else:
            emit_error(str(exc), exception=exc)
        raise typer.Exit(code=1) from exc


__all__ = ["app", "main"]
