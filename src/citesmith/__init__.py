"""Primary public API for citesmith."""

from __future__ import annotations

from citesmith.core import *  # noqa: F401,F403
from citesmith.core import __all__ as _core_all
from citesmith.version import get_version


__version__ = get_version()

__all__ = [*_core_all, "__version__", "get_version"]
