"""Bibliography sources and record lookups.

Architecture
: `BibliographyResolver` walks the source precedence chain for a document and
  caches the outcome per document snapshot. Callers thread the returned
  `SourceResolution` through later calls instead of relying on global state.
: `BibtexRecordStore` is the only component that reads BibTeX. It parses with
  pybtex and answers key membership and field lookups per file.
: `BibliographyCollection` merges the resolved files in precedence order for
  listings and reports.

Usage Example

```pycon
>>> from citesmith.core.document import Document
>>> from citesmith.core.bibliography import BibliographyResolver
>>> resolver = BibliographyResolver()
>>> resolution = resolver.resolve(Document("bibliography:refs.bib\\n"))
>>> [path.name for path in resolution.paths]
['refs.bib']
```
"""

from __future__ import annotations

from .collection import BibliographyCollection
from .issues import BibliographyIssue
from .records import BibtexRecordStore, RecordLookup, entry_fields
from .sources import (
    BibliographyResolver,
    BibliographySource,
    Locator,
    SourceResolution,
    SourceTier,
    find_file_for_key,
    latex_bibliography_locator,
    resolve_sources,
    with_bibtex_suffix,
)


__all__ = [
    "BibliographyCollection",
    "BibliographyIssue",
    "BibliographyResolver",
    "BibliographySource",
    "BibtexRecordStore",
    "Locator",
    "RecordLookup",
    "SourceResolution",
    "SourceTier",
    "entry_fields",
    "find_file_for_key",
    "latex_bibliography_locator",
    "resolve_sources",
    "with_bibtex_suffix",
]
