"""Marker kind descriptors and the registry that turns them into patterns."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from enum import Enum
from functools import cached_property
import re

from .config import CitesmithConfig
from .exceptions import UnknownMarkerTypeError


class MarkerFamily(str, Enum):
    """Closed set of marker families understood by the engine."""

    CITATION = "citation"
    REFERENCE = "reference"
    BIBLIOGRAPHY = "bibliography"
    FILE = "file"


BIBLIOGRAPHY_TYPES: tuple[str, ...] = ("bibliography", "addbibresource")
FILE_TYPES: tuple[str, ...] = ("file", "attachfile")


@dataclass(frozen=True, slots=True)
class MarkerKind:
    """Capability record describing one marker type."""

    name: str
    family: MarkerFamily
    groups_each_key: bool = False
    export_command: str | None = None

    @property
    def is_citation(self) -> bool:
        return self.family is MarkerFamily.CITATION


def citation_kind(name: str) -> MarkerKind:
    """Build the descriptor for a citation command.

    Multi-cite commands (``cites``, ``parencites``...) typeset every key in its
    own group instead of a single comma-joined argument.
    """
    stem = name.rstrip("*")
    return MarkerKind(
        name=name,
        family=MarkerFamily.CITATION,
        groups_each_key=stem.endswith("cites"),
        export_command=f"\\{name}",
    )


def reference_kind(name: str) -> MarkerKind:
    return MarkerKind(name=name, family=MarkerFamily.REFERENCE, export_command=f"\\{name}")


def _alternation(names: Iterable[str]) -> str:
    # Longest first so ``citep*`` wins over ``citep`` and ``cite``.
    ordered = sorted(set(names), key=lambda item: (-len(item), item))
    return "|".join(re.escape(name) for name in ordered)


class MarkerRegistry:
    """Lookup table of marker kinds, populated once from configuration."""

    def __init__(self, kinds: Iterable[MarkerKind] = ()) -> None:
        self._kinds: dict[str, MarkerKind] = {}
        for kind in kinds:
            self.register(kind)

    @classmethod
    def from_config(cls, config: CitesmithConfig | None = None) -> MarkerRegistry:
        config = config or CitesmithConfig()
        kinds: list[MarkerKind] = [citation_kind(name) for name in config.citation_types]
        kinds.extend(reference_kind(name) for name in config.reference_types)
        kinds.extend(
            MarkerKind(name=name, family=MarkerFamily.BIBLIOGRAPHY) for name in BIBLIOGRAPHY_TYPES
        )
        kinds.extend(MarkerKind(name=name, family=MarkerFamily.FILE) for name in FILE_TYPES)
        return cls(kinds)

    def register(self, kind: MarkerKind) -> None:
        """Add a kind, replacing any previous kind of the same name."""
        self._kinds[kind.name] = kind
        self.__dict__.pop("citation_type_pattern", None)
        self.__dict__.pop("reference_type_pattern", None)

    def get(self, name: str) -> MarkerKind:
        try:
            return self._kinds[name]
        except KeyError as exc:
            raise UnknownMarkerTypeError(name) from exc

    def __contains__(self, name: object) -> bool:
        return name in self._kinds

    def __iter__(self) -> Iterator[MarkerKind]:
        return iter(self._kinds.values())

    def names(self, family: MarkerFamily) -> list[str]:
        return [kind.name for kind in self._kinds.values() if kind.family is family]

    @cached_property
    def citation_type_pattern(self) -> str:
        """Regex alternation matching every registered citation type."""
        return _alternation(self.names(MarkerFamily.CITATION))

    @cached_property
    def reference_type_pattern(self) -> str:
        return _alternation(self.names(MarkerFamily.REFERENCE))


__all__ = [
    "BIBLIOGRAPHY_TYPES",
    "FILE_TYPES",
    "MarkerFamily",
    "MarkerKind",
    "MarkerRegistry",
    "citation_kind",
    "reference_kind",
]
