"""Django ORM implementation of the Catalog repository.

Satisfies ``ICatalogRepository`` by projecting ``StockLevel`` rows (with
product and SKU joined) into ``CatalogEntry`` DTOs.  Soft-deleted rows,
products or SKUs are invisible to the engine.
"""

from __future__ import annotations

from typing import List, Optional

import structlog
from django.core.exceptions import ValidationError

from modules.catalog.dtos import CatalogEntry
from modules.catalog.models import StockLevel
from modules.catalog.repositories.interfaces import ICatalogRepository

logger = structlog.get_logger(__name__)


class CatalogDjangoRepository(ICatalogRepository):
    """Concrete catalog repository backed by Django ORM."""

    def _live_rows(self):
        return (
            StockLevel.objects.alive()
            .filter(product__deleted_at__isnull=True, sku__deleted_at__isnull=True)
            .select_related("product", "sku")
            .order_by("created_at", "id")
        )

    def get_by_id(self, id: str) -> Optional[CatalogEntry]:
        """Retrieve one catalog row by ``StockLevel`` primary key.

        Returns ``None`` for non-existent or invalid IDs.
        """
        try:
            stock = self._live_rows().filter(id=id).first()
        except (ValueError, ValidationError):
            return None
        return CatalogEntry.from_entity(stock) if stock else None

    def query_catalog(self) -> List[CatalogEntry]:
        entries = [CatalogEntry.from_entity(stock) for stock in self._live_rows()]
        logger.info("catalog.snapshot_loaded", entry_count=len(entries))
        return entries

    def find_by_sku(self, sku_id: str) -> List[CatalogEntry]:
        try:
            rows = list(self._live_rows().filter(sku_id=sku_id))
        except (ValueError, ValidationError):
            return []
        return [CatalogEntry.from_entity(stock) for stock in rows]
