"""Messages describing the marker under the cursor, and the idle timer driving them."""

from __future__ import annotations

from collections.abc import Callable, Mapping
import logging
from threading import Lock, Timer

from .bibliography import BibliographyResolver
from .citations import key_index_at
from .config import CitesmithConfig
from .document import Document
from .kinds import MarkerRegistry
from .labels import build_label_index, labels_named
from .links import MarkerScanner


logger = logging.getLogger(__name__)


def summarize_entry(fields: Mapping[str, str]) -> str:
    """Return a one-line author/title/year summary of an entry."""
    parts = [
        fields.get("author") or fields.get("editor") or "",
        fields.get("title", "").strip("{}"),
        fields.get("year") or fields.get("date", "")[:4],
    ]
    return ", ".join(part for part in parts if part)


class ContextInspector:
    """Build the message an idle check shows for the marker at a position."""

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

    def describe(self, document: Document, point: int) -> str | None:
        """Return a message for the reference or citation at ``point``, if any."""
        reference = self.scanner.reference_at(document.text, point)
        if reference is not None:
            labels = build_label_index(document, context_indent=self.config.context_indent)
            matches = labels_named(labels, reference.target_label)
            if not matches:
                return f"No label named '{reference.target_label}'."
            if len(matches) > 1:
                lines = ", ".join(str(label.position.line) for label in matches)
                return f"Label '{reference.target_label}' is defined {len(matches)} times (lines {lines})."
            return matches[0].context

        link = self.scanner.citation_at(document.text, point)
        if link is None:
            return None
        key = link.keys[key_index_at(document.text, link, point)]
        found = self.resolver.lookup(key, self.resolver.resolve(document))
        if found is None:
            return f"'{key}' is not defined in any bibliography file."
        path, fields = found
        return f"{summarize_entry(fields)} ({path.name})"


def describe_at_point(
    document: Document, point: int, config: CitesmithConfig | None = None
) -> str | None:
    """Describe the marker at ``point`` with a throwaway inspector."""
    return ContextInspector(config).describe(document, point)


class IdleTimer:
    """Call ``callback`` every ``interval`` seconds until cancelled.

    Cancelling stops future calls; a callback already running finishes.
    """

    def __init__(self, interval: float, callback: Callable[[], object]) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.interval = interval
        self._callback = callback
        self._lock = Lock()
        self._timer: Timer | None = None
        self._cancelled = False

    @property
    def active(self) -> bool:
        with self._lock:
            return self._timer is not None and not self._cancelled

    def start(self) -> None:
        with self._lock:
            self._cancelled = False
            self._schedule()

    def cancel(self) -> None:
        with self._lock:
            self._cancelled = True
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def _schedule(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
        timer = Timer(self.interval, self._fire)
        timer.daemon = True
        self._timer = timer
        timer.start()

    def _fire(self) -> None:
        with self._lock:
            if self._cancelled:
                return
        try:
            self._callback()
        except Exception:
            logger.exception("idle callback failed")
        with self._lock:
            if not self._cancelled:
                self._schedule()


__all__ = ["ContextInspector", "IdleTimer", "describe_at_point", "summarize_entry"]
