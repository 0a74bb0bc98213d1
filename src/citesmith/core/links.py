"""Discovery of citation, reference, bibliography, and file markers.

Every scan works on a plain string snapshot and returns immutable view objects
whose spans are valid for that snapshot only. After an edit the caller
rescans instead of adjusting spans.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from functools import lru_cache
import re

from .document import Span
from .kinds import BIBLIOGRAPHY_TYPES, FILE_TYPES, MarkerKind, MarkerRegistry


KEY_PATTERN = r"(?:\*|[\w/+-](?:[\w:./+-]*[\w/+-])?)"
LABEL_NAME_PATTERN = r"[a-zA-Z0-9_:-]+"
DESCRIPTION_SEPARATOR = "::"


@dataclass(frozen=True, slots=True)
class CitationLink:
    """A citation marker carrying an ordered, non-empty list of keys."""

    kind: MarkerKind
    keys: tuple[str, ...]
    span: Span
    path_span: Span
    key_spans: tuple[Span, ...]
    bracketed: bool = False
    description: str | None = None

    @property
    def command_type(self) -> str:
        return self.kind.name

    @property
    def groups_each_key(self) -> bool:
        return self.kind.groups_each_key

    @property
    def keys_start(self) -> int:
        """Offset just past the ``type:`` prefix."""
        return self.path_span.start + len(self.kind.name) + 1

    @property
    def path(self) -> str:
        return f"{self.kind.name}:{','.join(self.keys)}"

    @property
    def pre_text(self) -> str | None:
        if self.description is None:
            return None
        if DESCRIPTION_SEPARATOR in self.description:
            return self.description.split(DESCRIPTION_SEPARATOR, 1)[0].strip()
        return None

    @property
    def post_text(self) -> str | None:
        if self.description is None:
            return None
        if DESCRIPTION_SEPARATOR in self.description:
            return self.description.split(DESCRIPTION_SEPARATOR, 1)[1].strip()
        return self.description.strip()

    def render(self, keys: tuple[str, ...] | None = None) -> str:
        """Return marker text for ``keys`` keeping this marker's wrapping."""
        selected = self.keys if keys is None else keys
        path = f"{self.kind.name}:{','.join(selected)}"
        if not self.bracketed:
            return path
        if self.description is None:
            return f"[[{path}]]"
        return f"[[{path}][{self.description}]]"


@dataclass(frozen=True, slots=True)
class ReferenceLink:
    """One target label of a cross-reference marker."""

    kind: MarkerKind
    target_label: str
    span: Span
    marker_span: Span

    @property
    def command_type(self) -> str:
        return self.kind.name


@dataclass(frozen=True, slots=True)
class PathReference:
    """A file path written in the document, with the span it occupies."""

    kind: str
    path: str
    span: Span


def _split_keys(body: str, offset: int) -> tuple[tuple[str, ...], tuple[Span, ...]]:
    keys: list[str] = []
    spans: list[Span] = []
    cursor = 0
    for segment in body.split(","):
        stripped = segment.strip()
        if stripped:
            start = offset + cursor + (len(segment) - len(segment.lstrip()))
            keys.append(stripped)
            spans.append(Span(start, start + len(stripped)))
        cursor += len(segment) + 1
    return tuple(keys), tuple(spans)


class MarkerScanner:
    """Compiled marker patterns for one registry.

    Patterns are compiled once at construction; every scan is a single
    ``finditer`` pass over the snapshot.
    """

    def __init__(self, registry: MarkerRegistry | None = None) -> None:
        self.registry = registry or MarkerRegistry.from_config()
        cite_types = self.registry.citation_type_pattern
        ref_types = self.registry.reference_type_pattern
        self._citation_re = re.compile(
            rf"\[\[(?P<btype>{cite_types}):(?P<bpath>[^\]\n]*)\]"
            rf"(?:\[(?P<desc>[^\]]*)\])?\]"
            rf"|(?<![\w*\\])(?P<type>{cite_types}):(?P<keys>{KEY_PATTERN}(?:,{KEY_PATTERN})*)"
        )
        self._reference_re = re.compile(
            rf"(?<![\w*\\])(?P<type>{ref_types}):"
            rf"(?P<labels>{LABEL_NAME_PATTERN}(?:,{LABEL_NAME_PATTERN})*)"
        )
        self._type_prefix_re = re.compile(rf"(?<![\w*\\])(?:{cite_types}):$")
        bib_types = "|".join(BIBLIOGRAPHY_TYPES)
        self._bibliography_re = re.compile(
            rf"(?<![\w\\])(?P<type>{bib_types}):(?P<files>[^\s,\]\[]+(?:,[^\s,\]\[]+)*)"
        )
        self._addbibresource_re = re.compile(r"\\addbibresource(?:\[[^\]]*\])?\{(?P<file>[^}]+)\}")
        self._latex_bibliography_re = re.compile(r"\\bibliography\{(?P<files>[^}]+)\}")
        file_types = "|".join(FILE_TYPES)
        self._file_link_re = re.compile(
            rf"\[\[(?P<btype>{file_types}):(?P<bpath>[^\]\n]+)\]"
            rf"|(?<![\w\\])(?P<type>{file_types}):(?P<path>[^\s\]\[]+)"
        )
        self._attachfile_re = re.compile(r"\\attachfile(?:\[[^\]]*\])?\{(?P<file>[^}]+)\}")

    # -- citations -----------------------------------------------------------------

    def iter_citations(self, text: str, start: int = 0) -> Iterator[CitationLink]:
        """Yield well-formed citation markers in document order."""
        for match in self._citation_re.finditer(text, start):
            link = self._citation_from_match(match)
            if link is not None:
                yield link

    def citations(self, text: str) -> list[CitationLink]:
        return list(self.iter_citations(text))

    def citation_at(self, text: str, point: int) -> CitationLink | None:
        """Return the citation whose span contains ``point`` (end inclusive)."""
        for link in self.iter_citations(text):
            if link.span.start > point:
                return None
            if link.span.contains(point):
                return link
        return None

    def parse_citation(self, marker: str) -> CitationLink | None:
        """Parse a standalone marker body such as ``[[cite:a,b][see::p. 4]]``."""
        match = self._citation_re.fullmatch(marker.strip())
        if match is None:
            return None
        return self._citation_from_match(match)

    def follows_type_prefix(self, text: str, point: int) -> bool:
        """Return whether the text before ``point`` ends with a citation ``type:``."""
        line_start = text.rfind("\n", 0, point) + 1
        return self._type_prefix_re.search(text[line_start:point]) is not None

    def _citation_from_match(self, match: re.Match[str]) -> CitationLink | None:
        if match.group("btype") is not None:
            kind = self.registry.get(match.group("btype"))
            body_start = match.start("bpath")
            keys, spans = _split_keys(match.group("bpath"), body_start)
            path_span = Span(match.start("btype"), match.end("bpath"))
            bracketed = True
            description = match.group("desc")
        else:
            kind = self.registry.get(match.group("type"))
            keys, spans = _split_keys(match.group("keys"), match.start("keys"))
            path_span = Span(match.start("type"), match.end("keys"))
            bracketed = False
            description = None
        if not keys:
            return None
        return CitationLink(
            kind=kind,
            keys=keys,
            span=Span(match.start(), match.end()),
            path_span=path_span,
            key_spans=spans,
            bracketed=bracketed,
            description=description,
        )

    # -- references ----------------------------------------------------------------

    def references(self, text: str) -> list[ReferenceLink]:
        """Return one entry per target label, in document order."""
        found: list[ReferenceLink] = []
        for match in self._reference_re.finditer(text):
            kind = self.registry.get(match.group("type"))
            marker_span = Span(match.start(), match.end())
            labels, spans = _split_keys(match.group("labels"), match.start("labels"))
            for label, span in zip(labels, spans):
                found.append(
                    ReferenceLink(kind=kind, target_label=label, span=span, marker_span=marker_span)
                )
        return found

    def reference_at(self, text: str, point: int) -> ReferenceLink | None:
        """Return the reference target under ``point``.

        Within a multi-label marker the label containing the point wins; a point
        on the ``type:`` prefix selects the first label.
        """
        candidates = [ref for ref in self.references(text) if ref.marker_span.contains(point)]
        if not candidates:
            return None
        for ref in candidates:
            if ref.span.contains(point):
                return ref
        return candidates[0]

    # -- bibliography declarations -------------------------------------------------

    def bibliography_declarations(self, text: str) -> list[PathReference]:
        """Return files named by ``bibliography:`` / ``addbibresource:`` markers."""
        found: list[PathReference] = []
        for match in self._bibliography_re.finditer(text):
            files, spans = _split_keys(match.group("files"), match.start("files"))
            for name, span in zip(files, spans):
                found.append(PathReference(kind=match.group("type"), path=name, span=span))
        return found

    def addbibresource_commands(self, text: str) -> list[PathReference]:
        return [
            PathReference(
                kind="\\addbibresource",
                path=match.group("file").strip(),
                span=Span(match.start("file"), match.end("file")),
            )
            for match in self._addbibresource_re.finditer(text)
            if match.group("file").strip()
        ]

    def latex_bibliography_commands(self, text: str) -> list[PathReference]:
        found: list[PathReference] = []
        for match in self._latex_bibliography_re.finditer(text):
            names, spans = _split_keys(match.group("files"), match.start("files"))
            for name, span in zip(names, spans):
                found.append(PathReference(kind="\\bibliography", path=name, span=span))
        return found

    # -- file links ----------------------------------------------------------------

    def file_links(self, text: str) -> list[PathReference]:
        """Return ``file:``/``attachfile:`` links and ``\\attachfile`` commands."""
        found: list[PathReference] = []
        for match in self._file_link_re.finditer(text):
            # Bracketed links may contain spaces; bare links end at whitespace.
            group = "bpath" if match.group("btype") is not None else "path"
            kind = match.group("btype") or match.group("type")
            raw = match.group(group)
            # Org search options (``file:notes.org::*Heading``) are not part of the path.
            path = raw.split("::", 1)[0]
            if path:
                start = match.start(group)
                found.append(PathReference(kind=kind, path=path, span=Span(start, start + len(path))))
        for match in self._attachfile_re.finditer(text):
            path = match.group("file").strip()
            if path:
                found.append(
                    PathReference(
                        kind="\\attachfile",
                        path=path,
                        span=Span(match.start("file"), match.end("file")),
                    )
                )
        found.sort(key=lambda item: item.span.start)
        return found


@lru_cache(maxsize=1)
def default_scanner() -> MarkerScanner:
    """Return a scanner for the default marker registry."""
    return MarkerScanner()


__all__ = [
    "DESCRIPTION_SEPARATOR",
    "KEY_PATTERN",
    "LABEL_NAME_PATTERN",
    "CitationLink",
    "MarkerScanner",
    "PathReference",
    "ReferenceLink",
    "default_scanner",
]
