"""Diagnostic abstractions shared by the resolution and validation layers."""

from __future__ import annotations

from collections.abc import Mapping
import logging
from typing import Any, Protocol, runtime_checkable


logger = logging.getLogger(__name__)


@runtime_checkable
class DiagnosticEmitter(Protocol):
    """Interface used to surface warnings, errors, and structured events."""

    debug_enabled: bool

    def warning(self, message: str, exc: BaseException | None = None) -> None: ...

    def error(self, message: str, exc: BaseException | None = None) -> None: ...

    def event(self, name: str, payload: Mapping[str, Any]) -> None: ...


class NullEmitter:
    """Emitter that ignores every diagnostic."""

    debug_enabled: bool = False

    def warning(self, message: str, exc: BaseException | None = None) -> None:
        return

    def error(self, message: str, exc: BaseException | None = None) -> None:
        return

    def event(self, name: str, payload: Mapping[str, Any]) -> None:
        return


class LoggingEmitter:
    """Emitter that forwards diagnostics to the standard logging module."""

    def __init__(
        self, *, logger_obj: logging.Logger | None = None, debug_enabled: bool = False
    ) -> None:
        self._logger = logger_obj or logger
        self.debug_enabled = debug_enabled

    def warning(self, message: str, exc: BaseException | None = None) -> None:
        if exc is not None:
            self._logger.warning(message, exc_info=exc)
        else:
            self._logger.warning(message)

    def error(self, message: str, exc: BaseException | None = None) -> None:
        if exc is not None:
            self._logger.error(message, exc_info=exc)
        else:
            self._logger.error(message)

    def event(self, name: str, payload: Mapping[str, Any]) -> None:
        message = format_event_message(name, payload)
        if message:
            self._logger.info(message)
            return
        self._logger.debug("diagnostic event %s: %s", name, dict(payload))


def format_event_message(name: str, payload: Mapping[str, Any]) -> str | None:
    """Return a human-friendly summary for selected diagnostic events."""
    data = dict(payload)

    if name == "bibliography_resolved":
        tier = data.get("tier") or "<unknown>"
        files = [str(item) for item in data.get("files") or ()]
        listed = ", ".join(files) if files else "no files"
        return f"Bibliography resolved via {tier}: {listed}"

    if name == "bibliography_cache_hit":
        document = data.get("document") or "<buffer>"
        return f"Reusing cached bibliography sources for {document}"

    if name == "bibliography_parse_failed":
        path = data.get("path") or "<unknown>"
        reason = data.get("reason")
        suffix = f" ({reason})" if reason else ""
        return f"Could not read bibliography {path}{suffix}"

    if name == "bibliography_parse_warning":
        path = data.get("path") or "<unknown>"
        return f"Bibliography {path}: {data.get('reason') or 'recovered from a parse problem'}"

    return None


__all__ = [
    "DiagnosticEmitter",
    "LoggingEmitter",
    "NullEmitter",
    "format_event_message",
]
