"""Exception hierarchy for the citation and cross-reference engine."""

from __future__ import annotations

from collections.abc import Sequence


class CitesmithError(RuntimeError):
    """Base exception for citesmith failures."""


class ConfigurationError(CitesmithError):
    """Raised when a configuration file or value cannot be validated."""


class MarkerError(CitesmithError):
    """Base exception for marker edit failures."""


class KeyNotInCitationError(MarkerError):
    """Raised when an edit targets a key the citation marker does not carry."""

    def __init__(self, key: str, keys: Sequence[str]) -> None:
        self.key = key
        self.keys = tuple(keys)
        listed = ", ".join(self.keys) or "<none>"
        super().__init__(f"Key '{key}' is not part of the citation ({listed}).")


class UnknownMarkerTypeError(MarkerError):
    """Raised when a marker type name is not registered."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown marker type '{name}'.")


def exception_messages(exc: BaseException) -> list[str]:
    """Return the collected message chain for an exception and its causes."""
    messages: list[str] = []
    visited: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in visited:
        visited.add(id(current))
        text = str(current).strip()
        if text:
            first_line = text.splitlines()[0].strip()
            if first_line:
                messages.append(first_line)
        current = current.__cause__ or current.__context__
    return messages


def exception_hint(exc: BaseException) -> str | None:
    """Return the most specific message available for an exception chain."""
    messages = exception_messages(exc)
    return messages[-1] if messages else None


__all__ = [
    "CitesmithError",
    "ConfigurationError",
    "KeyNotInCitationError",
    "MarkerError",
    "UnknownMarkerTypeError",
    "exception_hint",
    "exception_messages",
]
