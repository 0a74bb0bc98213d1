"""Shared Typer option definitions for CLI commands."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer


InputPathArgument = Annotated[
    Path,
    typer.Argument(
        metavar="DOCUMENT",
        help="Document to inspect (Org/LaTeX text or a BibTeX file).",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
        resolve_path=True,
    ),
]

OffsetOption = Annotated[
    int,
    typer.Option(
        "--offset",
        "-o",
        min=0,
        help="Cursor position as a 0-based character offset into the document.",
    ),
]

WriteOption = Annotated[
    bool,
    typer.Option(
        "--write",
        "-w",
        help="Rewrite the document in place instead of printing the result.",
    ),
]
