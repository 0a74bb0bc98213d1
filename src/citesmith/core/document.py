"""Immutable document snapshots and the position values derived from them."""

from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass, field
import hashlib
from pathlib import Path


@dataclass(frozen=True, slots=True)
class Span:
    """Half-open character range ``[start, end)`` inside a document snapshot."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start < 0 or self.end < self.start:
            raise ValueError(f"Invalid span [{self.start}, {self.end})")

    def __len__(self) -> int:
        return self.end - self.start

    def contains(self, point: int) -> bool:
        """Return whether ``point`` lies inside the span, end included."""
        return self.start <= point <= self.end

    def slice(self, text: str) -> str:
        return text[self.start : self.end]


@dataclass(frozen=True, slots=True)
class Position:
    """A character offset with its 1-based line and 0-based column."""

    offset: int
    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"


class LineIndex:
    """Offsets of line starts, computed once per snapshot."""

    __slots__ = ("_starts", "_length")

    def __init__(self, text: str) -> None:
        starts = [0]
        position = text.find("\n")
        while position != -1:
            starts.append(position + 1)
            position = text.find("\n", position + 1)
        self._starts = starts
        self._length = len(text)

    def __len__(self) -> int:
        return len(self._starts)

    def line_number(self, offset: int) -> int:
        """Return the 0-based line containing ``offset``."""
        return bisect_right(self._starts, offset) - 1

    def line_start(self, line: int) -> int:
        line = min(max(line, 0), len(self._starts) - 1)
        return self._starts[line]

    def line_end(self, line: int) -> int:
        """Return the offset of the newline ending ``line`` (or the text end)."""
        line = min(max(line, 0), len(self._starts) - 1)
        if line + 1 < len(self._starts):
            return self._starts[line + 1] - 1
        return self._length

    def position(self, offset: int) -> Position:
        line = self.line_number(offset)
        return Position(offset=offset, line=line + 1, column=offset - self._starts[line])


@dataclass(frozen=True)
class Document:
    """A snapshot of document text plus the file it was read from, if any."""

    text: str
    path: Path | None = None
    _lines: LineIndex | None = field(default=None, init=False, repr=False, compare=False)

    @classmethod
    def from_path(cls, path: Path | str) -> Document:
        """Read a UTF-8 document from disk."""
        source = Path(path)
        return cls(text=source.read_text(encoding="utf-8"), path=source)

    @property
    def lines(self) -> LineIndex:
        index = self._lines
        if index is None:
            index = LineIndex(self.text)
            object.__setattr__(self, "_lines", index)
        return index

    @property
    def directory(self) -> Path:
        """Directory used to resolve relative paths referenced by the document."""
        if self.path is None:
            return Path.cwd()
        return self.path.resolve().parent

    @property
    def digest(self) -> str:
        return hashlib.sha1(self.text.encode("utf-8")).hexdigest()

    def position(self, offset: int) -> Position:
        return self.lines.position(offset)

    def with_text(self, text: str) -> Document:
        """Return a fresh snapshot of the same file with new contents."""
        return Document(text=text, path=self.path)

    def resolve_path(self, value: str | Path) -> Path:
        """Resolve a path written in the document against its directory."""
        candidate = Path(value).expanduser()
        if candidate.is_absolute():
            return candidate
        return self.directory / candidate


__all__ = ["Document", "LineIndex", "Position", "Span"]
