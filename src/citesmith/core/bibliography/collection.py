"""Ordered aggregation of a document's bibliography sources."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Any

from pybtex.database import Entry, Person
from pybtex.utils import OrderedCaseInsensitiveDict

from .issues import BibliographyIssue
from .records import BibtexRecordStore
from .sources import BibliographySource


class BibliographyCollection:
    """Merge entries from sources in precedence order; the first definition wins."""

    def __init__(self, records: BibtexRecordStore | None = None) -> None:
        self._records = records or BibtexRecordStore()
        # Keys compare case-insensitively, as they do in BibTeX and in pybtex.
        self._entries: OrderedCaseInsensitiveDict = OrderedCaseInsensitiveDict()
        self._sources: OrderedCaseInsensitiveDict = OrderedCaseInsensitiveDict()
        self._issues: list[BibliographyIssue] = []
        self._file_entry_counts: dict[Path, int] = {}
        self._file_order: list[Path] = []

    @property
    def issues(self) -> Sequence[BibliographyIssue]:
        """Return the issues discovered while loading references."""
        return tuple(self._issues)

    @property
    def file_stats(self) -> Sequence[tuple[Path, int]]:
        """Return (file, entry_count) pairs in the order files were processed."""
        return tuple((path, self._file_entry_counts.get(path, 0)) for path in self._file_order)

    def load_sources(self, sources: Iterable[BibliographySource | Path | str]) -> None:
        """Load entries from sources, keeping their order."""
        for source in sources:
            path = source.path if isinstance(source, BibliographySource) else Path(source)
            self._load_file(path)

    def _load_file(self, file_path: Path) -> None:
        file_path = file_path.resolve()
        if file_path in self._file_entry_counts:
            return
        self._file_order.append(file_path)
        data = self._records.load(file_path)
        self._issues.extend(issue for issue in self._records.issues if issue.source == file_path)
        if data is None:
            if not any(issue.source == file_path for issue in self._issues):
                self._issues.append(
                    BibliographyIssue(message="Bibliography file could not be read.", source=file_path)
                )
            self._file_entry_counts[file_path] = 0
            return

        self._file_entry_counts[file_path] = len(data.entries)
        if not data.entries:
            self._issues.append(
                BibliographyIssue(message="No references found in file.", source=file_path)
            )

        for key, entry in data.entries.items():
            if key in self._entries:
                self._sources[key].append(file_path)
                self._issues.append(
                    BibliographyIssue(
                        message="Key is also defined in an earlier source; using the first definition.",
                        key=key,
                        source=file_path,
                    )
                )
                continue
            self._entries[key] = entry
            self._sources[key] = [file_path]

    def source_of(self, reference_key: str) -> Path | None:
        """Return the file whose definition of the key is used."""
        sources = self._sources.get(reference_key)
        return sources[0] if sources else None

    def find(self, reference_key: str) -> dict[str, Any] | None:
        """Return the portable representation of a specific reference."""
        entry = self._entries.get(reference_key)
        if entry is None:
            return None
        return self._portable_entry(entry.key or reference_key, entry, self._sources[reference_key])

    def list_references(self) -> list[dict[str, Any]]:
        """Return all references as portable dictionaries sorted by key."""
        return [
            self._portable_entry(key, self._entries[key], self._sources[key])
            for key in sorted(self._entries)
        ]

    def __contains__(self, reference_key: object) -> bool:
        return isinstance(reference_key, str) and reference_key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def _portable_entry(self, key: str, entry: Entry, sources: list[Path]) -> dict[str, Any]:
        return {
            "key": key,
            "type": entry.type,
            "fields": {str(name): str(value) for name, value in entry.fields.items()},
            "persons": {
                str(role): [self._person_payload(person) for person in persons]
                for role, persons in sorted(entry.persons.items())
            },
            "source_files": [str(path) for path in sources],
        }

    def _person_payload(self, person: Person) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        for attribute, key in (
            ("first_names", "first"),
            ("middle_names", "middle"),
            ("prelast_names", "prelast"),
            ("last_names", "last"),
            ("lineage_names", "lineage"),
        ):
            value = getattr(person, attribute, ())
            payload[key] = [str(part) for part in value]

        payload["text"] = str(person)
        return payload


__all__ = ["BibliographyCollection"]
