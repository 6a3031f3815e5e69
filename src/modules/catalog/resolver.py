"""Catalog resolver.

Maps an operator's item selector to exactly one catalog entry.

- An explicit selection (a row picked from a presented list) is trusted
  verbatim once its mandatory fields are present.
- A bare SKU id is looked up in the snapshot.  Several matches mean the
  SKU id does not key a unique row.  The first match is returned as a
  degraded fallback together with an ``AmbiguityWarning``.  That fallback
  exists for backward compatibility only; ``strict=True`` turns it into
  an ``AmbiguousCatalogKey`` error instead.

The resolver holds nothing but the snapshot it was built with, so the
same input always resolves to the same entry.
"""

from __future__ import annotations

from typing import Iterable, Optional

import structlog

from modules.catalog.dtos import (
    AmbiguityWarning,
    CatalogEntry,
    CatalogSelection,
    Resolution,
)
from modules.catalog.exceptions import (
    AmbiguousCatalogKey,
    CatalogEntryNotFound,
    IncompleteCatalogEntry,
)

logger = structlog.get_logger(__name__)


class CatalogResolver:
    """Resolve selectors against one catalog snapshot."""

    def __init__(self, entries: Iterable[CatalogEntry], *, strict: bool = False) -> None:
        self._entries = tuple(entries)
        self._strict = strict

    def resolve(
        self,
        selector_key: Optional[str],
        explicit_entry: Optional[CatalogSelection] = None,
    ) -> Resolution:
        """Resolve a selector to one catalog entry.

        Raises:
            IncompleteCatalogEntry: the explicit entry misses mandatory
                fields, or nothing was selected at all.
            CatalogEntryNotFound: no row carries ``selector_key``.
            AmbiguousCatalogKey: several rows match and ``strict`` is set.
        """
        if explicit_entry is not None:
            return Resolution(entry=self._accept(explicit_entry))

        if not selector_key:
            raise IncompleteCatalogEntry(
                "No catalog item selected.", missing_fields=("sku_id",)
            )

        matches = [entry for entry in self._entries if entry.sku_id == selector_key]
        if not matches:
            raise CatalogEntryNotFound(
                f"SKU '{selector_key}' not found in catalog.",
                selector_key=selector_key,
            )
        if len(matches) == 1:
            return Resolution(entry=matches[0])

        warning = AmbiguityWarning(selector_key=selector_key, candidates=tuple(matches))
        logger.warning(
            "catalog.ambiguous_sku",
            selector_key=selector_key,
            match_count=warning.match_count,
            product_ids=[entry.product_id for entry in matches],
            strict=self._strict,
        )
        if self._strict:
            raise AmbiguousCatalogKey(warning)
        return Resolution(entry=matches[0], ambiguity=warning)

    @staticmethod
    def _accept(selection: CatalogSelection) -> CatalogEntry:
        missing = selection.missing_fields()
        if missing:
            raise IncompleteCatalogEntry(
                f"Catalog selection is missing: {', '.join(missing)}.",
                missing_fields=missing,
            )
        return CatalogEntry(**selection.model_dump(exclude_none=True))
