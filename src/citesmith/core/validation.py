"""Read-only consistency checks over a document snapshot.

Each check returns `Finding` records pointing at the offending text. Nothing
is corrected and nothing raises: a document full of unresolved markers is
still a valid document.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from enum import Enum
import logging

from .bibliography import BibliographyResolver, SourceResolution
from .config import CitesmithConfig
from .document import Document, Position, Span
from .kinds import MarkerRegistry
from .labels import Label, build_label_index
from .links import MarkerScanner, PathReference


logger = logging.getLogger(__name__)


class FindingKind(str, Enum):
    UNRESOLVED_CITATION = "unresolved_citation"
    UNRESOLVED_REFERENCE = "unresolved_reference"
    DUPLICATE_LABEL = "duplicate_label"
    MISSING_FILE = "missing_file"
    MISSING_BIBLIOGRAPHY = "missing_bibliography"

    @property
    def title(self) -> str:
        return self.value.replace("_", " ").capitalize()


@dataclass(frozen=True, slots=True)
class Finding:
    """A reported problem and the position to navigate to."""

    kind: FindingKind
    subject: str
    span: Span
    position: Position
    detail: str | None = None


@dataclass(slots=True)
class ValidationReport:
    """Outcome of running every check against one snapshot."""

    resolution: SourceResolution
    unresolved_citations: list[Finding] = field(default_factory=list)
    unresolved_references: list[Finding] = field(default_factory=list)
    duplicate_labels: list[Finding] = field(default_factory=list)
    missing_files: list[Finding] = field(default_factory=list)
    missing_bibliographies: list[Finding] = field(default_factory=list)

    def __iter__(self) -> Iterator[Finding]:
        yield from self.unresolved_citations
        yield from self.unresolved_references
        yield from self.duplicate_labels
        yield from self.missing_files
        yield from self.missing_bibliographies

    def __len__(self) -> int:
        return sum(1 for _ in self)

    @property
    def clean(self) -> bool:
        return len(self) == 0

    def sections(self) -> list[tuple[FindingKind, list[Finding]]]:
        return [
            (FindingKind.UNRESOLVED_CITATION, self.unresolved_citations),
            (FindingKind.UNRESOLVED_REFERENCE, self.unresolved_references),
            (FindingKind.DUPLICATE_LABEL, self.duplicate_labels),
            (FindingKind.MISSING_FILE, self.missing_files),
            (FindingKind.MISSING_BIBLIOGRAPHY, self.missing_bibliographies),
        ]


class ConsistencyValidator:
    """Find unresolved citations and references, duplicate labels, and missing files."""

    def __init__(
        self,
        config: CitesmithConfig | None = None,
        *,
        scanner: MarkerScanner | None = None,
        resolver: BibliographyResolver | None = None,
    ) -> None:
        self.config = config or CitesmithConfig()
        self.scanner = scanner or MarkerScanner(MarkerRegistry.from_config(self.config))
        self.resolver = resolver or BibliographyResolver(self.config, scanner=self.scanner)

    def validate(self, document: Document, *, refresh: bool = False) -> ValidationReport:
        resolution = self.resolver.resolve(document, refresh=refresh)
        labels = build_label_index(document, context_indent=self.config.context_indent)
        report = ValidationReport(
            resolution=resolution,
            unresolved_citations=self.unresolved_citations(document, resolution),
            unresolved_references=self.unresolved_references(document, labels),
            duplicate_labels=self.duplicate_labels(document, labels),
            missing_files=self.missing_files(document),
            missing_bibliographies=self.missing_bibliographies(document),
        )
        logger.debug("validation of %s produced %d finding(s)", document.path, len(report))
        return report

    def unresolved_citations(
        self, document: Document, resolution: SourceResolution | None = None
    ) -> list[Finding]:
        """Flag every citation key no bibliography source defines."""
        if resolution is None:
            resolution = self.resolver.resolve(document)
        wildcard = self.config.wildcard_key
        known: dict[str, bool] = {}
        findings: list[Finding] = []
        for link in self.scanner.iter_citations(document.text):
            for key, span in zip(link.keys, link.key_spans):
                if key == wildcard:
                    continue
                if key not in known:
                    known[key] = self.resolver.find_file_for_key(key, resolution) is not None
                if not known[key]:
                    findings.append(
                        Finding(
                            kind=FindingKind.UNRESOLVED_CITATION,
                            subject=key,
                            span=span,
                            position=document.position(span.start),
                            detail=f"{link.command_type}:{key}",
                        )
                    )
        return findings

    def unresolved_references(
        self, document: Document, labels: Sequence[Label] | None = None
    ) -> list[Finding]:
        """Flag every reference whose target label is not defined."""
        if labels is None:
            labels = build_label_index(document, context_indent=self.config.context_indent)
        defined = {label.name for label in labels}
        return [
            Finding(
                kind=FindingKind.UNRESOLVED_REFERENCE,
                subject=ref.target_label,
                span=ref.span,
                position=document.position(ref.span.start),
                detail=f"{ref.command_type}:{ref.target_label}",
            )
            for ref in self.scanner.references(document.text)
            if ref.target_label not in defined
        ]

    def duplicate_labels(
        self, document: Document, labels: Sequence[Label] | None = None
    ) -> list[Finding]:
        """Flag every definition of each label defined more than once."""
        if labels is None:
            labels = build_label_index(document, context_indent=self.config.context_indent)
        grouped: dict[str, list[Label]] = defaultdict(list)
        for label in labels:
            grouped[label.name].append(label)
        return [
            Finding(
                kind=FindingKind.DUPLICATE_LABEL,
                subject=label.name,
                span=label.span,
                position=label.position,
                detail=f"{label.syntax.value} ({len(grouped[label.name])} definitions)",
            )
            for label in labels
            if len(grouped[label.name]) > 1
        ]

    def missing_files(self, document: Document) -> list[Finding]:
        """Flag file links and attachments whose path does not exist."""
        return self._missing(document, self.scanner.file_links(document.text), FindingKind.MISSING_FILE)

    def missing_bibliographies(self, document: Document) -> list[Finding]:
        """Flag declared bibliography files that do not exist."""
        declared = [
            *self.scanner.bibliography_declarations(document.text),
            *self.scanner.addbibresource_commands(document.text),
        ]
        declared.sort(key=lambda item: item.span.start)
        return self._missing(document, declared, FindingKind.MISSING_BIBLIOGRAPHY)

    def _missing(
        self, document: Document, references: Sequence[PathReference], kind: FindingKind
    ) -> list[Finding]:
        findings: list[Finding] = []
        for reference in references:
            if document.resolve_path(reference.path).exists():
                continue
            findings.append(
                Finding(
                    kind=kind,
                    subject=reference.path,
                    span=reference.span,
                    position=document.position(reference.span.start),
                    detail=reference.kind,
                )
            )
        return findings


__all__ = ["ConsistencyValidator", "Finding", "FindingKind", "ValidationReport"]
