"""Helpers shared by CLI commands."""

from __future__ import annotations

from pathlib import Path

import typer

from citesmith.core.bibliography import BibliographyResolver, BibtexRecordStore
from citesmith.core.citations import CitationEditor, Edit
from citesmith.core.document import Document
from citesmith.core.kinds import MarkerRegistry
from citesmith.core.links import MarkerScanner

from .diagnostics import CliEmitter
from .state import CLIState, emit_error


def load_document(path: Path) -> Document:
    """Read ``path`` or exit with an error message."""
    try:
        return Document.from_path(path)
    except (OSError, UnicodeDecodeError) as exc:
        emit_error(f"Unable to read '{path}'.", exception=exc)
        raise typer.Exit(code=1) from exc


def build_scanner(state: CLIState) -> MarkerScanner:
    return MarkerScanner(MarkerRegistry.from_config(state.config))


def build_resolver(state: CLIState, scanner: MarkerScanner | None = None) -> BibliographyResolver:
    emitter = CliEmitter(state)
    return BibliographyResolver(
        state.config,
        scanner=scanner or build_scanner(state),
        records=BibtexRecordStore(emitter=emitter),
        emitter=emitter,
    )


def build_editor(state: CLIState) -> CitationEditor:
    scanner = build_scanner(state)
    return CitationEditor(state.config, scanner=scanner, resolver=build_resolver(state, scanner))


def apply_edit(document: Document, edit: Edit, *, write: bool) -> None:
    """Print or persist the edited document and report the new cursor offset."""
    result = edit.apply(document.text)
    if write and document.path is not None:
        if edit.changed:
            document.path.write_text(result, encoding="utf-8")
    else:
        typer.echo(result, nl=False)
    typer.echo(f"point: {edit.point}", err=True)
