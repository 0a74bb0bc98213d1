"""Read-only commands: labels, bibliography sources, key lookup, context."""

from __future__ import annotations

from typing import Annotated

import typer

from citesmith.core.bibliography import BibliographyCollection, BibtexRecordStore
from citesmith.core.context import ContextInspector
from citesmith.core.labels import build_label_index

from .._options import InputPathArgument, OffsetOption
from ..diagnostics import CliEmitter
from ..presenter import build_reference_panel, present_labels, present_sources
from ..state import get_cli_state
from ..utils import build_resolver, build_scanner, load_document


def labels(
    input_path: InputPathArgument,
    context: Annotated[
        bool, typer.Option("--context", help="Show the text surrounding each label.")
    ] = False,
) -> None:
    """List labels in the order they are defined."""
    state = get_cli_state()
    document = load_document(input_path)
    index = build_label_index(document, context_indent=state.config.context_indent)
    present_labels(state, index, show_context=context)


def sources(input_path: InputPathArgument) -> None:
    """Show which bibliography files apply to a document."""
    state = get_cli_state()
    document = load_document(input_path)
    resolution = build_resolver(state).resolve(document)
    collection = BibliographyCollection(BibtexRecordStore(emitter=CliEmitter(state)))
    collection.load_sources(resolution)
    present_sources(state, resolution, collection)


def find_key(
    key: Annotated[str, typer.Argument(help="Citation key to look up.")],
    input_path: InputPathArgument,
) -> None:
    """Print the bibliography file that defines KEY for a document."""
    state = get_cli_state()
    document = load_document(input_path)
    resolver = build_resolver(state)
    resolution = resolver.resolve(document)
    path = resolver.find_file_for_key(key, resolution)
    if path is None:
        state.console.print(f"[yellow]'{key}' was not found in any bibliography file.[/]")
        raise typer.Exit(code=1)

    typer.echo(str(path))
    collection = BibliographyCollection()
    collection.load_sources([path])
    reference = collection.find(key)
    if reference is not None:
        state.console.print(build_reference_panel(reference))


def context(input_path: InputPathArgument, offset: OffsetOption) -> None:
    """Describe the citation or reference at a cursor offset."""
    state = get_cli_state()
    document = load_document(input_path)
    scanner = build_scanner(state)
    inspector = ContextInspector(state.config, scanner=scanner, resolver=build_resolver(state, scanner))
    message = inspector.describe(document, offset)
    if message is None:
        state.console.print("[dim]No citation or reference at this position.[/]")
        return
    typer.echo(message)
