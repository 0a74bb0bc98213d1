"""Label index builder.

Four label syntaxes are recognised concurrently, as alternatives of a single
pattern so that the whole document is scanned once:

- a ``:CUSTOM_ID: name`` heading property,
- a ``#+name: name`` block declaration,
- a LaTeX ``\\label{name}`` command,
- a ``<<name>>`` target.

Each alternative owns exactly one capture group, so ``match.lastindex`` gives
the group holding the label name whatever syntax matched.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
import re

from .document import Document, LineIndex, Position, Span
from .links import LABEL_NAME_PATTERN


class LabelSyntax(str, Enum):
    CUSTOM_ID = "custom_id"
    NAME = "name"
    LATEX = "latex"
    TARGET = "target"


_LABEL_RE = re.compile(
    rf"^[ \t]*:(?i:custom_id):[ \t]+({LABEL_NAME_PATTERN})[ \t]*$"
    rf"|^[ \t]*#\+(?i:name):[ \t]+({LABEL_NAME_PATTERN})[ \t]*$"
    rf"|\\label\{{({LABEL_NAME_PATTERN})\}}"
    r"|(?<!<)<<([^<>\s](?:[^<>\r\n]*[^<>\s])?)>>(?!>)",
    re.MULTILINE,
)

_GROUP_SYNTAX: dict[int, LabelSyntax] = {
    1: LabelSyntax.CUSTOM_ID,
    2: LabelSyntax.NAME,
    3: LabelSyntax.LATEX,
    4: LabelSyntax.TARGET,
}

CONTEXT_LINES_BEFORE = 1
CONTEXT_LINES_AFTER = 2


@dataclass(frozen=True, slots=True)
class Label:
    """A referenceable name and where it is defined."""

    name: str
    span: Span
    position: Position
    syntax: LabelSyntax
    context: str


def _context(text: str, lines: LineIndex, offset: int, indent: int) -> str:
    line = lines.line_number(offset)
    first = max(line - CONTEXT_LINES_BEFORE, 0)
    last = min(line + CONTEXT_LINES_AFTER, len(lines) - 1)
    window = text[lines.line_start(first) : lines.line_end(last)]
    padding = " " * indent
    return "\n".join(f"{padding}{row}" for row in window.split("\n"))


def build_label_index(document: Document | str, *, context_indent: int = 4) -> list[Label]:
    """Return every label definition in document order."""
    if isinstance(document, str):
        document = Document(text=document)
    text = document.text
    lines = document.lines
    labels: list[Label] = []
    for match in _LABEL_RE.finditer(text):
        group = match.lastindex
        if group is None:  # pragma: no cover - every alternative captures
            continue
        labels.append(
            Label(
                name=match.group(group),
                span=Span(match.start(group), match.end(group)),
                position=lines.position(match.start()),
                syntax=_GROUP_SYNTAX[group],
                context=_context(text, lines, match.start(), context_indent),
            )
        )
    return labels


def labels_named(labels: Iterable[Label], name: str) -> list[Label]:
    return [label for label in labels if label.name == name]


def is_label_unique(document: Document | str, name: str) -> bool:
    """Return whether ``name`` is not yet defined, so it can be added safely."""
    return not labels_named(build_label_index(document), name)


def label_names(labels: Iterable[Label]) -> list[str]:
    """Return distinct label names, keeping first-definition order."""
    return list(dict.fromkeys(label.name for label in labels))


__all__ = [
    "Label",
    "LabelSyntax",
    "build_label_index",
    "is_label_unique",
    "label_names",
    "labels_named",
]
