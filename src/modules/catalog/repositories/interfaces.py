"""Catalog repository interface.

The finalization engine reads the catalog only through this contract:
a full snapshot per finalize attempt, never a lock or reservation.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, List

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.catalog.dtos import CatalogEntry


class ICatalogRepository(IRepository["CatalogEntry"]):
    """Repository contract for the live catalog/inventory view."""

    @abstractmethod
    def query_catalog(self) -> List[CatalogEntry]:
        """Return the full current catalog snapshot, in catalog order."""

    @abstractmethod
    def find_by_sku(self, sku_id: str) -> List[CatalogEntry]:
        """Return every catalog row stocked under ``sku_id``."""
