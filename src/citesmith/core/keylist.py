"""Pure algorithms over ordered citation key sequences."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
import math
import re

from .exceptions import KeyNotInCitationError


Keys = tuple[str, ...]

_YEAR_RE = re.compile(r"\d{4}")


def clean_keys(keys: Iterable[str]) -> Keys:
    """Strip whitespace and drop empty items, keeping order and duplicates."""
    cleaned: list[str] = []
    for key in keys:
        for part in key.split(","):
            stripped = part.strip()
            if stripped:
                cleaned.append(stripped)
    return tuple(cleaned)


def insert_keys(keys: Sequence[str], index: int, new_keys: Iterable[str]) -> Keys:
    """Insert ``new_keys`` so that the first lands at position ``index``."""
    index = min(max(index, 0), len(keys))
    return (*keys[:index], *clean_keys(new_keys), *keys[index:])


def delete_key(keys: Sequence[str], key: str) -> Keys:
    """Remove the first occurrence of ``key``."""
    try:
        index = list(keys).index(key)
    except ValueError as exc:
        raise KeyNotInCitationError(key, keys) from exc
    return delete_index(keys, index)


def delete_index(keys: Sequence[str], index: int) -> Keys:
    return (*keys[:index], *keys[index + 1 :])


def replace_key(keys: Sequence[str], key: str, replacements: Iterable[str]) -> Keys:
    """Swap ``key`` for ``replacements`` at its former position."""
    try:
        index = list(keys).index(key)
    except ValueError as exc:
        raise KeyNotInCitationError(key, keys) from exc
    return (*keys[:index], *clean_keys(replacements), *keys[index + 1 :])


def swap_keys(keys: Sequence[str], index: int, direction: int) -> tuple[Keys, int]:
    """Exchange the key at ``index`` with its neighbour.

    Returns the new sequence and the moved key's new index. Moving past either
    end leaves the sequence untouched.
    """
    if direction not in (-1, 1):
        raise ValueError("direction must be -1 or 1")
    target = index + direction
    if not 0 <= index < len(keys) or not 0 <= target < len(keys):
        return tuple(keys), index
    swapped = list(keys)
    swapped[index], swapped[target] = swapped[target], swapped[index]
    return tuple(swapped), target


def parse_year(value: object) -> int | None:
    """Extract a four digit year from a field value."""
    if value is None:
        return None
    match = _YEAR_RE.search(str(value))
    return int(match.group(0)) if match else None


def sort_by_year(
    keys: Sequence[str],
    year_of: Callable[[str], object] | Mapping[str, object],
) -> Keys:
    """Stable ascending sort by year; keys without a usable year sort first."""
    lookup = year_of.get if isinstance(year_of, Mapping) else year_of

    def _sort_key(key: str) -> float:
        year = parse_year(lookup(key))
        return -math.inf if year is None else float(year)

    return tuple(sorted(keys, key=_sort_key))


__all__ = [
    "Keys",
    "clean_keys",
    "delete_index",
    "delete_key",
    "insert_keys",
    "parse_year",
    "replace_key",
    "sort_by_year",
    "swap_keys",
]
