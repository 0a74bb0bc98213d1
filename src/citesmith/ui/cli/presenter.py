"""Rich-aware presenters for CLI output."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path
from typing import TYPE_CHECKING, Any

from citesmith.core.bibliography import BibliographyCollection, SourceResolution
from citesmith.core.labels import Label
from citesmith.core.validation import ValidationReport

from .state import CLIState


if TYPE_CHECKING:  # pragma: no cover - typing only
    from rich.panel import Panel
    from rich.table import Table


def _table(title: str, columns: Sequence[str]) -> Table:
    """Create a Rich table with the house style."""
    from rich import box
    from rich.table import Table

    table = Table(title=title, box=box.SQUARE, show_edge=True, header_style="bold cyan")
    for column in columns:
        table.add_column(column, overflow="fold")
    return table


def format_person_list(persons: Iterable[Mapping[str, object]]) -> str:
    """Join person payloads into a comma-separated string."""
    names: list[str] = []
    for person in persons:
        parts: list[str] = []
        for field in ("first", "middle", "prelast", "last", "lineage"):
            value = person.get(field)
            if isinstance(value, (list, tuple)):
                parts.extend(str(segment) for segment in value if segment)
        text = " ".join(parts) or str(person.get("text") or "").strip()
        if text:
            names.append(text)
    return ", ".join(names)


def build_reference_panel(reference: Mapping[str, Any]) -> Panel:
    """Create a Rich panel that visualises a single bibliography entry."""
    from rich import box
    from rich.panel import Panel
    from rich.table import Table

    fields = {str(key): value for key, value in dict(reference.get("fields") or {}).items()}
    grid = Table.grid(padding=(0, 1))
    grid.add_column(style="bold green", no_wrap=True)
    grid.add_column()

    def _add_field(label: str, value: object) -> None:
        if value is None or (isinstance(value, str) and not value.strip()):
            return
        grid.add_row(label, str(value))

    _add_field("Title", fields.pop("title", None))
    _add_field("Year", fields.pop("year", None))
    _add_field("Journal", fields.pop("journal", None) or fields.pop("booktitle", None))

    persons = reference.get("persons") or {}
    authors = persons.get("author") if isinstance(persons, Mapping) else None
    if authors:
        _add_field("Authors", format_person_list(authors))

    sources = [str(Path(str(path))) for path in reference.get("source_files") or () if path]
    if sources:
        _add_field("Sources", ", ".join(sources))

    for key, value in sorted(fields.items()):
        _add_field(key.title(), value)

    title = f"{reference.get('key', 'Reference')} ({reference.get('type', 'reference')})"
    return Panel(grid, title=title, box=box.SIMPLE)


def present_labels(state: CLIState, labels: Sequence[Label], *, show_context: bool = False) -> None:
    """Render the label index in definition order."""
    console = state.console
    if not labels:
        console.print("[dim]No labels found.[/]")
        return
    columns = ["Name", "Syntax", "Line"]
    if show_context:
        columns.append("Context")
    table = _table("Labels", columns)
    for label in labels:
        row = [label.name, label.syntax.value, str(label.position.line)]
        if show_context:
            row.append(label.context)
        table.add_row(*row)
    console.print(table)


def present_sources(
    state: CLIState,
    resolution: SourceResolution,
    collection: BibliographyCollection,
) -> None:
    """Render resolved bibliography files, their entry counts, and load issues."""
    from rich.text import Text

    console = state.console
    if not resolution:
        console.print("[dim]No bibliography sources resolved.[/]")
        return

    counts = dict(collection.file_stats)
    table = _table(f"Bibliography Files ({resolution.tier.name.lower()})", ["File", "Entries"])
    for source in resolution.sources:
        count = counts.get(source.path.resolve(), 0)
        table.add_row(str(source.path), str(count))
    table.add_row(Text("Total", style="bold"), Text(str(len(collection))))
    console.print(table)

    if collection.issues:
        issues = _table("Warnings", ["Key", "Message", "Source"])
        for issue in collection.issues:
            issues.add_row(
                issue.key or "-",
                issue.message,
                str(issue.source) if issue.source else "-",
            )
        console.print(issues)


def present_report(state: CLIState, report: ValidationReport) -> None:
    """Render every non-empty section of a validation report."""
    console = state.console
    if report.clean:
        console.print("[green]No problems found.[/]")
        return
    for kind, findings in report.sections():
        if not findings:
            continue
        table = _table(f"{kind.title} ({len(findings)})", ["Subject", "Position", "Detail"])
        for finding in findings:
            table.add_row(finding.subject, str(finding.position), finding.detail or "")
        console.print(table)


__all__ = [
    "build_reference_panel",
    "format_person_list",
    "present_labels",
    "present_report",
    "present_sources",
]
