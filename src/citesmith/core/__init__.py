"""Core engine: label discovery, citation editing, resolution, validation.

Architecture
: `Document` is an immutable snapshot. Every view derived from it (labels,
  citation markers, reference markers, bibliography sources) is recomputed on
  demand and carries spans valid for that snapshot only.
: `MarkerRegistry` holds one descriptor per marker type; `MarkerScanner`
  compiles the registry into patterns once and performs every discovery scan.
: `CitationEditor` turns key-list operations into single `Edit` substitutions.
: `BibliographyResolver` and `ConsistencyValidator` compose the scans with the
  pybtex-backed record store.
"""

from __future__ import annotations

from .bibliography import (
    BibliographyCollection,
    BibliographyResolver,
    BibliographySource,
    BibtexRecordStore,
    SourceResolution,
    SourceTier,
    find_file_for_key,
    resolve_sources,
)
from .citations import CitationEditor, Edit, KeyAtPoint
from .config import CitesmithConfig, load_config
from .context import ContextInspector, IdleTimer, describe_at_point
from .diagnostics import DiagnosticEmitter, LoggingEmitter, NullEmitter
from .document import Document, Position, Span
from .exceptions import (
    CitesmithError,
    ConfigurationError,
    KeyNotInCitationError,
    MarkerError,
    UnknownMarkerTypeError,
)
from .kinds import MarkerFamily, MarkerKind, MarkerRegistry
from .labels import Label, LabelSyntax, build_label_index, is_label_unique
from .links import CitationLink, MarkerScanner, PathReference, ReferenceLink
from .validation import ConsistencyValidator, Finding, FindingKind, ValidationReport


__all__ = [
    "BibliographyCollection",
    "BibliographyResolver",
    "BibliographySource",
    "BibtexRecordStore",
    "CitationEditor",
    "CitationLink",
    "CitesmithConfig",
    "CitesmithError",
    "ConfigurationError",
    "ConsistencyValidator",
    "ContextInspector",
    "DiagnosticEmitter",
    "Document",
    "Edit",
    "Finding",
    "FindingKind",
    "IdleTimer",
    "KeyAtPoint",
    "KeyNotInCitationError",
    "Label",
    "LabelSyntax",
    "LoggingEmitter",
    "MarkerError",
    "MarkerFamily",
    "MarkerKind",
    "MarkerRegistry",
    "MarkerScanner",
    "NullEmitter",
    "PathReference",
    "Position",
    "ReferenceLink",
    "SourceResolution",
    "SourceTier",
    "Span",
    "UnknownMarkerTypeError",
    "ValidationReport",
    "build_label_index",
    "describe_at_point",
    "find_file_for_key",
    "is_label_unique",
    "load_config",
    "resolve_sources",
]
