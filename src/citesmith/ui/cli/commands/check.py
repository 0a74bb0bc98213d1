"""Implementation of the ``citesmith check`` command."""

from __future__ import annotations

from typing import Annotated

import typer

from citesmith.core.validation import ConsistencyValidator

from .._options import InputPathArgument
from ..presenter import present_report
from ..state import get_cli_state
from ..utils import build_resolver, build_scanner, load_document


def check(
    input_path: InputPathArgument,
    strict: Annotated[
        bool,
        typer.Option("--strict", help="Exit with status 1 when any problem is found."),
    ] = False,
) -> None:
    """Report unresolved citations and references, duplicate labels, and missing files."""
    state = get_cli_state()
    document = load_document(input_path)
    scanner = build_scanner(state)
    validator = ConsistencyValidator(
        state.config, scanner=scanner, resolver=build_resolver(state, scanner)
    )
    report = validator.validate(document)
    present_report(state, report)
    if strict and not report.clean:
        raise typer.Exit(code=1)
