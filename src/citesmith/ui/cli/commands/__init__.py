"""CLI command implementations."""

from __future__ import annotations

from .check import check
from .lookup import context, find_key, labels, sources
from .keys import delete_key, insert_keys, sort_keys, swap_key


__all__ = [
    "check",
    "context",
    "delete_key",
    "find_key",
    "insert_keys",
    "labels",
    "sort_keys",
    "sources",
    "swap_key",
]
