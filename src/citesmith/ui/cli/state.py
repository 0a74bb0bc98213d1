"""Shared CLI state management utilities."""

from __future__ import annotations

from collections.abc import Mapping
from contextvars import ContextVar
from dataclasses import dataclass, field
import sys
from typing import TYPE_CHECKING, Any

import click
import typer

from citesmith.core.config import CitesmithConfig


if TYPE_CHECKING:
    from rich.console import Console

__all__ = [
    "CLIState",
    "debug_enabled",
    "emit_error",
    "emit_warning",
    "get_cli_state",
    "render_message",
    "set_cli_state",
]


@dataclass(slots=True)
class CLIState:
    """Shared state controlling CLI diagnostics and configuration."""

    verbosity: int = 0
    show_tracebacks: bool = False
    config: CitesmithConfig = field(default_factory=CitesmithConfig)
    events: dict[str, list[dict[str, Any]]] = field(default_factory=dict, init=False)
    _console: Console | None = field(default=None, init=False, repr=False)
    _err_console: Console | None = field(default=None, init=False, repr=False)

    @property
    def console(self) -> Console:
        """Return a lazily instantiated stdout console."""
        from rich.console import Console

        current = getattr(self._console, "file", None)
        if self._console is None or current is not sys.stdout:
            self._console = Console(file=sys.stdout)
        return self._console

    @property
    def err_console(self) -> Console:
        """Return a lazily instantiated stderr console."""
        from rich.console import Console

        current = getattr(self._err_console, "file", None)
        if self._err_console is None or current is not sys.stderr:
            self._err_console = Console(file=sys.stderr, highlight=False)
        return self._err_console

    def record_event(self, name: str, payload: Mapping[str, Any] | None = None) -> None:
        """Store a structured diagnostic event for later presentation."""
        entry = dict(payload or {})
        self.events.setdefault(name, []).append(entry)

    def consume_events(self, name: str) -> list[dict[str, Any]]:
        """Retrieve and clear events for the given name."""
        return self.events.pop(name, [])


_STATE_VAR: ContextVar[CLIState | None] = ContextVar("citesmith_cli_state", default=None)


def get_cli_state(
    ctx: typer.Context | click.Context | None = None,
    *,
    create: bool = True,
) -> CLIState:
    """Return the CLI state associated with the active Typer context."""
    if ctx is None:
        candidate = click.get_current_context(silent=True)
        if isinstance(candidate, click.Context):
            ctx = candidate

    state: CLIState | None = None

    if isinstance(ctx, click.Context):
        current_ctx: click.Context | None = ctx
        while current_ctx is not None:
            obj = getattr(current_ctx, "obj", None)
            if isinstance(obj, CLIState):
                state = obj
                break
            current_ctx = current_ctx.parent
        if state is None and create:
            state = CLIState()
            ctx.obj = state
        if state is not None:
            _STATE_VAR.set(state)

    if state is None:
        fallback = _STATE_VAR.get(None)
        if fallback is None:
            if not create:
                raise RuntimeError("CLI state is not initialised for this context.")
            fallback = CLIState()
            _STATE_VAR.set(fallback)
        state = fallback

    return state


def set_cli_state(
    *,
    ctx: typer.Context | None = None,
    verbosity: int | None = None,
    debug: bool | None = None,
    config: CitesmithConfig | None = None,
) -> CLIState:
    """Update the CLI state, returning the current instance."""
    state = get_cli_state(ctx)
    if verbosity is not None:
        state.verbosity = max(0, verbosity)
    if debug is not None:
        state.show_tracebacks = debug
    if config is not None:
        state.config = config
    return state


def _exception_chain(exc: BaseException) -> list[str]:
    chain: list[str] = []
    visited: set[int] = set()
    current = exc.__cause__ or exc.__context__
    while current is not None and id(current) not in visited:
        visited.add(id(current))
        chain.append(f"{type(current).__name__}: {current}")
        current = current.__cause__ or current.__context__
    return chain


def render_message(
    level: str,
    message: str,
    *,
    exception: BaseException | None = None,
) -> None:
    """Render a formatted message to the console, including optional diagnostics."""
    state = get_cli_state()

    if level == "info":
        state.err_console.log(message)
        return

    from rich.text import Text

    style = "red" if level == "error" else "yellow"
    text = Text.assemble((f"{level}: ", f"bold {style}"), (message, style))
    extra_lines: list[str] = []
    if exception is not None and state.verbosity >= 1:
        detail = str(exception).strip()
        if detail and detail not in message:
            extra_lines.append(detail)
        extra_lines.append(f"type: {type(exception).__name__}")
        if state.verbosity >= 2:
            chain = _exception_chain(exception)
            if chain:
                extra_lines.append("caused by:")
                extra_lines.extend(f"  {entry}" for entry in chain)

    if extra_lines:
        text.append("\n")
        text.append("\n".join(extra_lines), style=style)

    state.err_console.print(text)


def emit_warning(message: str, *, exception: BaseException | None = None) -> None:
    """Log a warning-level message to stderr respecting verbosity settings."""
    render_message("warning", message, exception=exception)


def emit_error(message: str, *, exception: BaseException | None = None) -> None:
    """Log an error-level message to stderr respecting verbosity settings."""
    render_message("error", message, exception=exception)


def debug_enabled() -> bool:
    """Return whether full tracebacks should be displayed."""
    try:
        return get_cli_state(create=False).show_tracebacks
    except RuntimeError:
        return False
