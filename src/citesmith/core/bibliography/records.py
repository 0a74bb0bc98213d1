"""Record lookup backed by pybtex.

The engine never interprets BibTeX itself: it only asks "does this file define
this key" and "what are the fields of this entry". `BibtexRecordStore` answers
both with pybtex, parsing each file at most once per modification time.
"""

from __future__ import annotations

from collections.abc import Mapping
import logging
from pathlib import Path
from typing import Protocol, runtime_checkable

from pybtex import errors as pybtex_errors
from pybtex.database import BibliographyData, Entry
from pybtex.database.input import bibtex
from pybtex.exceptions import PybtexError

from ..diagnostics import DiagnosticEmitter, NullEmitter
from .issues import BibliographyIssue


logger = logging.getLogger(__name__)

PERSON_ROLES = ("author", "editor")


@runtime_checkable
class RecordLookup(Protocol):
    """Capability answering key membership and field lookups per file."""

    def has_key(self, key: str, path: Path) -> bool: ...

    def fields(self, key: str, path: Path) -> Mapping[str, str] | None: ...


def entry_fields(entry: Entry) -> dict[str, str]:
    """Flatten an entry into a plain field mapping, persons included."""
    fields = {str(name).lower(): str(value) for name, value in entry.fields.items()}
    for role in PERSON_ROLES:
        persons = entry.persons.get(role)
        if persons and role not in fields:
            fields[role] = " and ".join(str(person) for person in persons)
    fields.setdefault("entrytype", entry.type)
    return fields


class BibtexRecordStore:
    """Parse and cache BibTeX files on demand."""

    def __init__(self, *, emitter: DiagnosticEmitter | None = None) -> None:
        self._emitter = emitter or NullEmitter()
        self._cache: dict[Path, tuple[float, BibliographyData]] = {}
        self._issues: list[BibliographyIssue] = []

    @property
    def issues(self) -> tuple[BibliographyIssue, ...]:
        return tuple(self._issues)

    def clear(self) -> None:
        self._cache.clear()
        self._issues.clear()

    def load(self, path: Path | str) -> BibliographyData | None:
        """Return the parsed data for ``path`` or ``None`` when unreadable."""
        file_path = Path(path).resolve()
        try:
            mtime = file_path.stat().st_mtime
        except OSError as exc:
            self._report(file_path, f"Bibliography file is not readable: {exc.strerror or exc}")
            return None

        cached = self._cache.get(file_path)
        if cached is not None and cached[0] == mtime:
            return cached[1]

        parser = bibtex.Parser()
        # Recoverable problems such as repeated keys are collected instead of
        # raised; pybtex keeps the first definition of a repeated key.
        with pybtex_errors.capture() as recovered:
            try:
                data = parser.parse_file(str(file_path))
            except (OSError, PybtexError) as exc:
                self._report(file_path, f"Failed to parse '{file_path}': {exc}")
                return None
        for problem in recovered:
            self._note(file_path, str(problem))

        logger.debug("parsed %d entries from %s", len(data.entries), file_path)
        self._cache[file_path] = (mtime, data)
        return data

    def keys(self, path: Path | str) -> list[str]:
        data = self.load(path)
        return list(data.entries.keys()) if data is not None else []

    def has_key(self, key: str, path: Path) -> bool:
        data = self.load(path)
        return data is not None and key in data.entries

    def entry(self, key: str, path: Path) -> Entry | None:
        data = self.load(path)
        if data is None:
            return None
        return data.entries.get(key)

    def fields(self, key: str, path: Path) -> Mapping[str, str] | None:
        entry = self.entry(key, path)
        return entry_fields(entry) if entry is not None else None

    def _report(self, path: Path, message: str) -> None:
        self._cache.pop(path, None)
        self._record(path, message)
        self._emitter.event("bibliography_parse_failed", {"path": str(path), "reason": message})

    def _note(self, path: Path, message: str) -> None:
        self._record(path, message)
        self._emitter.event("bibliography_parse_warning", {"path": str(path), "reason": message})

    def _record(self, path: Path, message: str) -> None:
        if not any(issue.source == path and issue.message == message for issue in self._issues):
            self._issues.append(BibliographyIssue(message=message, source=path))


__all__ = ["PERSON_ROLES", "BibtexRecordStore", "RecordLookup", "entry_fields"]
