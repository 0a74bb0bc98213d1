"""Commands rewriting the key list of the citation at a cursor offset."""

from __future__ import annotations

from enum import Enum
from typing import Annotated

import typer

from citesmith.core.exceptions import KeyNotInCitationError

from .._options import InputPathArgument, OffsetOption, WriteOption
from ..state import emit_error, get_cli_state
from ..utils import apply_edit, build_editor, load_document


class Direction(str, Enum):
    left = "left"
    right = "right"


def insert_keys(
    input_path: InputPathArgument,
    offset: OffsetOption,
    keys: Annotated[list[str], typer.Argument(help="Keys to insert.")],
    write: WriteOption = False,
) -> None:
    """Insert KEYS at the cursor, creating a citation when none is there."""
    document = load_document(input_path)
    edit = build_editor(get_cli_state()).insert_keys(document, offset, keys)
    apply_edit(document, edit, write=write)


def delete_key(
    input_path: InputPathArgument,
    offset: OffsetOption,
    key: Annotated[
        str | None,
        typer.Option("--key", help="Key to remove instead of the one under the cursor."),
    ] = None,
    write: WriteOption = False,
) -> None:
    """Delete the key under the cursor (the whole citation if it is the last one)."""
    document = load_document(input_path)
    try:
        edit = build_editor(get_cli_state()).delete_key(document, offset, key)
    except KeyNotInCitationError as exc:
        emit_error(str(exc), exception=exc)
        raise typer.Exit(code=1) from exc
    apply_edit(document, edit, write=write)


def swap_key(
    input_path: InputPathArgument,
    offset: OffsetOption,
    direction: Annotated[
        Direction, typer.Option("--direction", "-d", help="Where to move the key.")
    ] = Direction.right,
    write: WriteOption = False,
) -> None:
    """Swap the key under the cursor with its neighbour."""
    document = load_document(input_path)
    step = -1 if direction is Direction.left else 1
    edit = build_editor(get_cli_state()).swap_key(document, offset, step)
    apply_edit(document, edit, write=write)


def sort_keys(
    input_path: InputPathArgument,
    offset: OffsetOption,
    write: WriteOption = False,
) -> None:
    """Sort the keys of the citation at the cursor by publication year."""
    document = load_document(input_path)
    edit = build_editor(get_cli_state()).sort_by_year(document, offset)
    apply_edit(document, edit, write=write)
