"""Edit operations on multi-key citation markers.

Every operation reads a text snapshot and a cursor offset and returns an
`Edit`: a single span replacement plus the cursor offset to use afterwards.
Nothing is mutated in place; markers found before an edit are stale once it
is applied and must be rediscovered.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
import logging

from . import keylist
from .bibliography import BibliographyResolver, SourceResolution
from .config import CitesmithConfig
from .document import Document, Span
from .exceptions import KeyNotInCitationError
from .kinds import MarkerRegistry
from .links import CitationLink, MarkerScanner


logger = logging.getLogger(__name__)

_OPENERS = "([{\"'"


@dataclass(frozen=True, slots=True)
class Edit:
    """A single text substitution and the resulting cursor position."""

    span: Span
    replacement: str
    point: int

    @classmethod
    def noop(cls, point: int) -> Edit:
        return cls(span=Span(point, point), replacement="", point=point)

    @property
    def changed(self) -> bool:
        return bool(self.replacement) or bool(len(self.span))

    def apply(self, text: str) -> str:
        return f"{text[: self.span.start]}{self.replacement}{text[self.span.end :]}"


@dataclass(frozen=True, slots=True)
class KeyAtPoint:
    """The key of a citation marker selected by a cursor position."""

    link: CitationLink
    index: int

    @property
    def key(self) -> str:
        return self.link.keys[self.index]

    @property
    def span(self) -> Span:
        return self.link.key_spans[self.index]


def _text_of(document: Document | str) -> str:
    return document.text if isinstance(document, Document) else document


def key_index_at(text: str, link: CitationLink, point: int) -> int:
    """Return the index of the key segment containing ``point``.

    A point before the first key selects the first key. A point past the key
    list (inside the description or the closing brackets) selects the last key.
    """
    if point > link.path_span.end:
        return len(link.keys) - 1
    index = 0
    for position in range(1, len(link.keys)):
        previous_end = link.key_spans[position - 1].end
        comma = text.find(",", previous_end, link.key_spans[position].start)
        boundary = comma + 1 if comma != -1 else link.key_spans[position].start
        if point >= boundary:
            index = position
        else:
            break
    return index


def rendered_key_spans(link: CitationLink, keys: tuple[str, ...], origin: int) -> list[Span]:
    """Spans of ``keys`` inside ``link.render(keys)`` written at ``origin``."""
    cursor = origin + (2 if link.bracketed else 0) + len(link.kind.name) + 1
    spans: list[Span] = []
    for key in keys:
        spans.append(Span(cursor, cursor + len(key)))
        cursor += len(key) + 1
    return spans


class CitationEditor:
    """Navigate and rewrite the key lists of citation markers."""

    def __init__(
        self,
        config: CitesmithConfig | None = None,
        *,
        scanner: MarkerScanner | None = None,
        resolver: BibliographyResolver | None = None,
    ) -> None:
        self.config = config or CitesmithConfig()
        self.scanner = scanner or MarkerScanner(MarkerRegistry.from_config(self.config))
        self._resolver = resolver

    @property
    def resolver(self) -> BibliographyResolver:
        if self._resolver is None:
            self._resolver = BibliographyResolver(self.config, scanner=self.scanner)
        return self._resolver

    # -- lookup --------------------------------------------------------------------

    def parse(self, marker: str) -> CitationLink | None:
        return self.scanner.parse_citation(marker)

    def link_at(self, document: Document | str, point: int) -> CitationLink | None:
        return self.scanner.citation_at(_text_of(document), point)

    def key_at_point(self, document: Document | str, point: int) -> KeyAtPoint | None:
        text = _text_of(document)
        link = self.scanner.citation_at(text, point)
        if link is None:
            return None
        return KeyAtPoint(link=link, index=key_index_at(text, link, point))

    # -- navigation ----------------------------------------------------------------

    def next_key(self, document: Document | str, point: int) -> int:
        """Return the start of the following key, crossing into the next marker."""
        text = _text_of(document)
        link = self.scanner.citation_at(text, point)
        if link is not None:
            for span in link.key_spans:
                if span.start > point:
                    return span.start
            search_from = link.span.end
        else:
            search_from = point
        for candidate in self.scanner.iter_citations(text):
            if candidate.span.start >= search_from and candidate.span.start > point:
                return candidate.keys_start
        return point

    def previous_key(self, document: Document | str, point: int) -> int:
        """Return the start of the preceding key, crossing into the previous marker."""
        text = _text_of(document)
        link = self.scanner.citation_at(text, point)
        boundary = point
        if link is not None:
            for span in reversed(link.key_spans):
                if span.start < point:
                    return span.start
            boundary = link.span.start
        previous: CitationLink | None = None
        for candidate in self.scanner.iter_citations(text):
            if candidate.span.end >= boundary:
                break
            previous = candidate
        if previous is None:
            return point
        return previous.keys_start

    # -- edits ---------------------------------------------------------------------

    def insert_keys(self, document: Document | str, point: int, keys: Iterable[str]) -> Edit:
        """Insert ``keys`` relative to the cursor.

        Inside a marker before its first key the keys are prepended; elsewhere
        in (or right after) a marker they follow the key under the cursor. After
        a bare ``type:`` being typed they are written in place. Anywhere else a
        new marker of the default type is created.
        """
        text = _text_of(document)
        new_keys = keylist.clean_keys(keys)
        if not new_keys:
            return Edit.noop(point)

        link = self.scanner.citation_at(text, point)
        if link is not None:
            if point < link.key_spans[0].start:
                index = 0
            else:
                index = key_index_at(text, link, point) + 1
            updated = keylist.insert_keys(link.keys, index, new_keys)
            last = index + len(new_keys) - 1
            return self._rewrite(link, updated, lambda spans: spans[last].end)

        if self.scanner.follows_type_prefix(text, point):
            joined = ",".join(new_keys)
            return Edit(span=Span(point, point), replacement=joined, point=point + len(joined))

        return self._new_marker(text, point, new_keys)

    def delete_key(
        self, document: Document | str, point: int, key: str | None = None
    ) -> Edit:
        """Remove the key under the cursor, or ``key`` from the marker at the cursor."""
        text = _text_of(document)
        link = self.scanner.citation_at(text, point)
        if link is None:
            return Edit.noop(point)

        index = key_index_at(text, link, point)
        if key is not None and link.keys[index] != key:
            if key not in link.keys:
                raise KeyNotInCitationError(key, link.keys)
            index = link.keys.index(key)

        remaining = keylist.delete_index(link.keys, index)
        if not remaining:
            return self._remove_marker(text, link)
        if index < len(remaining):
            return self._rewrite(link, remaining, lambda spans: spans[index].start)
        return self._rewrite(link, remaining, lambda spans: spans[-1].end)

    def replace_key(
        self,
        document: Document | str,
        point: int,
        key: str,
        replacements: Iterable[str],
    ) -> Edit:
        """Replace ``key`` with one or more keys at its former position."""
        text = _text_of(document)
        link = self.scanner.citation_at(text, point)
        if link is None:
            return Edit.noop(point)
        new_keys = keylist.clean_keys(replacements)
        if not new_keys:
            return self.delete_key(text, point, key)
        updated = keylist.replace_key(link.keys, key, new_keys)
        last = link.keys.index(key) + len(new_keys) - 1
        return self._rewrite(link, updated, lambda spans: spans[last].end)

    def swap_key(self, document: Document | str, point: int, direction: int) -> Edit:
        """Move the key under the cursor one slot left (-1) or right (+1)."""
        text = _text_of(document)
        located = self.key_at_point(text, point)
        if located is None:
            return Edit.noop(point)
        swapped, target = keylist.swap_keys(located.link.keys, located.index, direction)
        if target == located.index:
            return Edit.noop(point)
        return self._rewrite(located.link, swapped, lambda spans: spans[target].start)

    def sort_by_year(
        self,
        document: Document | str,
        point: int,
        resolution: SourceResolution | None = None,
    ) -> Edit:
        """Sort the marker's keys by publication year, oldest first."""
        if not isinstance(document, Document):
            document = Document(document)
        link = self.scanner.citation_at(document.text, point)
        if link is None:
            return Edit.noop(point)
        resolver = self.resolver
        sources = resolution if resolution is not None else resolver.resolve(document)
        ordered = keylist.sort_by_year(link.keys, lambda key: resolver.year_of(key, sources))
        if ordered == link.keys:
            return Edit.noop(point)
        return self._rewrite(link, ordered, lambda spans: spans[0].start)

    # -- helpers -------------------------------------------------------------------

    def _rewrite(
        self, link: CitationLink, keys: tuple[str, ...], cursor: Callable[[list[Span]], int]
    ) -> Edit:
        replacement = link.render(keys)
        spans = rendered_key_spans(link, keys, link.span.start)
        logger.debug("rewriting %s marker at %d: %s", link.command_type, link.span.start, keys)
        return Edit(span=link.span, replacement=replacement, point=cursor(spans))

    def _remove_marker(self, text: str, link: CitationLink) -> Edit:
        end = link.span.end
        while end < len(text) and text[end] in " \t":
            end += 1
        had_space = end > link.span.end
        before = text[link.span.start - 1] if link.span.start > 0 else ""
        keep_space = had_space and before not in ("", " ", "\t", "\n")
        return Edit(
            span=Span(link.span.start, end),
            replacement=" " if keep_space else "",
            point=link.span.start,
        )

    def _new_marker(self, text: str, point: int, keys: tuple[str, ...]) -> Edit:
        kind = self.scanner.registry.get(self.config.default_cite_type)
        path = f"{kind.name}:{','.join(keys)}"
        marker = f"[[{path}]]" if self.config.bracketed_links else path
        before = text[point - 1] if point > 0 else ""
        after = text[point] if point < len(text) else ""
        prefix = " " if before and not before.isspace() and before not in _OPENERS else ""
        suffix = " " if after and (after.isalnum() or after == "_") else ""
        replacement = f"{prefix}{marker}{suffix}"
        return Edit(
            span=Span(point, point),
            replacement=replacement,
            point=point + len(prefix) + len(marker),
        )


__all__ = ["CitationEditor", "Edit", "KeyAtPoint", "key_index_at", "rendered_key_spans"]
