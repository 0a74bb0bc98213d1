"""Bibliography source resolution.

A document's bibliography files come from the first tier of the chain below
that yields anything; lower tiers are not consulted once a tier answers.

1. the document is itself a ``.bib`` file,
2. ``bibliography:`` / ``addbibresource:`` markers,
3. raw ``\\addbibresource{...}`` commands,
4. an external locator (by default raw ``\\bibliography{...}`` commands),
5. the configured default bibliography.

When every tier is empty the resolution is empty, which makes every citation
unresolved rather than raising.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from enum import IntEnum
import logging
from pathlib import Path

from ..config import CitesmithConfig
from ..diagnostics import DiagnosticEmitter, NullEmitter
from ..document import Document
from ..keylist import parse_year
from ..links import MarkerScanner, default_scanner
from .records import BibtexRecordStore, RecordLookup


logger = logging.getLogger(__name__)

BIBTEX_SUFFIX = ".bib"

Locator = Callable[[Document], Sequence[Path | str]]


class SourceTier(IntEnum):
    """Precedence tiers, highest first."""

    SELF = 1
    DECLARED = 2
    ADDBIBRESOURCE = 3
    LOCATOR = 4
    DEFAULT = 5
    NONE = 6


@dataclass(frozen=True, slots=True)
class BibliographySource:
    """A candidate bibliography file and the tier it was discovered under."""

    path: Path
    rank: int

    @property
    def tier(self) -> SourceTier:
        return SourceTier(self.rank)


@dataclass(frozen=True, slots=True)
class SourceResolution:
    """Ordered outcome of resolving a document's bibliography files."""

    tier: SourceTier
    sources: tuple[BibliographySource, ...] = ()

    @property
    def paths(self) -> list[Path]:
        return [source.path for source in self.sources]

    def __iter__(self) -> Iterator[BibliographySource]:
        return iter(self.sources)

    def __len__(self) -> int:
        return len(self.sources)

    def __bool__(self) -> bool:
        return bool(self.sources)


def _ordered_unique(paths: Iterable[Path]) -> list[Path]:
    return list(dict.fromkeys(paths))


def with_bibtex_suffix(name: str) -> str:
    """Append ``.bib`` the way BibTeX does for suffix-less database names."""
    return name if Path(name).suffix else f"{name}{BIBTEX_SUFFIX}"


def latex_bibliography_locator(
    document: Document, *, scanner: MarkerScanner | None = None
) -> list[Path]:
    """Locate files declared with LaTeX ``\\bibliography{a,b}`` commands."""
    scanner = scanner or default_scanner()
    return [
        document.resolve_path(with_bibtex_suffix(item.path))
        for item in scanner.latex_bibliography_commands(document.text)
    ]


def _path_as_source(path: BibliographySource | Path | str) -> Path:
    return path.path if isinstance(path, BibliographySource) else Path(path)


class BibliographyResolver:
    """Resolve bibliography sources and map citation keys to files.

    One resolution is cached per document path, tagged with the content digest
    it was built from. A changed digest or ``resolve(..., refresh=True)``
    rebuilds and overwrites that entry.
    """

    def __init__(
        self,
        config: CitesmithConfig | None = None,
        *,
        scanner: MarkerScanner | None = None,
        records: RecordLookup | None = None,
        locator: Locator | None = latex_bibliography_locator,
        emitter: DiagnosticEmitter | None = None,
    ) -> None:
        self.config = config or CitesmithConfig()
        self.scanner = scanner or default_scanner()
        self.emitter = emitter or NullEmitter()
        self.records: RecordLookup = records or BibtexRecordStore(emitter=self.emitter)
        self.locator = locator
        self._cache: dict[Path | None, tuple[str, SourceResolution]] = {}

    def resolve(self, document: Document, *, refresh: bool = False) -> SourceResolution:
        """Return the ordered bibliography sources for ``document``."""
        digest = document.digest
        if not refresh:
            cached = self._cache.get(document.path)
            if cached is not None and cached[0] == digest:
                self.emitter.event(
                    "bibliography_cache_hit", {"document": str(document.path or "<buffer>")}
                )
                return cached[1]

        resolution = self._resolve_chain(document)
        self._cache[document.path] = (digest, resolution)
        self.emitter.event(
            "bibliography_resolved",
            {"tier": resolution.tier.name.lower(), "files": [str(p) for p in resolution.paths]},
        )
        return resolution

    def invalidate(self, document: Document | None = None) -> None:
        """Drop cached resolutions, for one document path or for all."""
        if document is None:
            self._cache.clear()
            return
        self._cache.pop(document.path, None)

    def _resolve_chain(self, document: Document) -> SourceResolution:
        tiers: list[tuple[SourceTier, Callable[[Document], list[Path]]]] = [
            (SourceTier.SELF, self._from_self),
            (SourceTier.DECLARED, self._from_declarations),
            (SourceTier.ADDBIBRESOURCE, self._from_addbibresource),
            (SourceTier.LOCATOR, self._from_locator),
            (SourceTier.DEFAULT, self._from_defaults),
        ]
        for tier, collect in tiers:
            paths = _ordered_unique(collect(document))
            if paths:
                logger.debug("bibliography tier %s yielded %d file(s)", tier.name, len(paths))
                return SourceResolution(
                    tier=tier,
                    sources=tuple(BibliographySource(path=path, rank=int(tier)) for path in paths),
                )
        return SourceResolution(tier=SourceTier.NONE)

    def _from_self(self, document: Document) -> list[Path]:
        if document.path is not None and document.path.suffix.lower() == BIBTEX_SUFFIX:
            return [document.path]
        return []

    def _from_declarations(self, document: Document) -> list[Path]:
        return [
            document.resolve_path(item.path)
            for item in self.scanner.bibliography_declarations(document.text)
        ]

    def _from_addbibresource(self, document: Document) -> list[Path]:
        return [
            document.resolve_path(item.path)
            for item in self.scanner.addbibresource_commands(document.text)
        ]

    def _from_locator(self, document: Document) -> list[Path]:
        if self.locator is None:
            return []
        try:
            located = self.locator(document)
        except Exception as exc:  # external collaborator
            self.emitter.warning("Bibliography locator failed; skipping it.", exc)
            return []
        return [document.resolve_path(path) for path in located]

    def _from_defaults(self, document: Document) -> list[Path]:
        return [document.resolve_path(path) for path in self.config.default_bibliography]

    def find_file_for_key(
        self, key: str, sources: Iterable[BibliographySource | Path | str]
    ) -> Path | None:
        """Return the first source, in resolved order, that defines ``key``."""
        return find_file_for_key(key, sources, self.records)

    def lookup(
        self, key: str, sources: Iterable[BibliographySource | Path | str]
    ) -> tuple[Path, Mapping[str, str]] | None:
        """Return the defining file and field map of ``key``."""
        path = self.find_file_for_key(key, sources)
        if path is None:
            return None
        fields = self.records.fields(key, path)
        if fields is None:
            return None
        return path, fields

    def year_of(self, key: str, sources: Iterable[BibliographySource | Path | str]) -> int | None:
        found = self.lookup(key, sources)
        if found is None:
            return None
        fields = found[1]
        return parse_year(fields.get("year") or fields.get("date"))


def resolve_sources(
    document: Document, config: CitesmithConfig | None = None
) -> SourceResolution:
    """Resolve ``document``'s bibliography sources with a throwaway resolver."""
    return BibliographyResolver(config).resolve(document)


def find_file_for_key(
    key: str,
    sources: Iterable[BibliographySource | Path | str],
    records: RecordLookup | None = None,
) -> Path | None:
    """Return the first file among ``sources`` whose entries include ``key``."""
    lookup = records or BibtexRecordStore()
    for source in sources:
        path = _path_as_source(source)
        if lookup.has_key(key, path):
            return path
    return None


__all__ = [
    "BIBTEX_SUFFIX",
    "BibliographyResolver",
    "BibliographySource",
    "Locator",
    "SourceResolution",
    "SourceTier",
    "find_file_for_key",
    "latex_bibliography_locator",
    "resolve_sources",
    "with_bibtex_suffix",
]
