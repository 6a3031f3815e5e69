"""Catalog DTOs.

Immutable Pydantic v2 models exchanged between the catalog repository,
the resolver and the order finalization service.

- ``CatalogEntry``: one live catalog/inventory row.
- ``CatalogSelection``: a possibly partial row picked by the operator.
- ``AmbiguityWarning``: a SKU id that matched more than one row.
- ``Resolution``: resolver output.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict

if TYPE_CHECKING:
    from modules.catalog.models import StockLevel

MANDATORY_SELECTION_FIELDS: Tuple[str, ...] = (
    "product_id",
    "product_name",
    "sku_id",
    "sku_code",
)


class CatalogEntry(BaseModel):
    """One catalog row as seen by the engine.

    ``available_quantity`` is signed: a negative value is a backorder
    carried over from earlier sales.
    """

    model_config = ConfigDict(frozen=True)

    product_id: str
    product_name: str
    category: str = ""
    sku_id: str
    sku_code: str
    unit_type: str = ""
    available_quantity: Decimal = Decimal("0")
    total_weight: Decimal = Decimal("0")

    @property
    def key(self) -> Tuple[str, str]:
        return (self.product_id, self.sku_id)

    @classmethod
    def from_entity(cls, stock: StockLevel) -> CatalogEntry:
        """Build an entry from a ``StockLevel`` with product and sku joined."""
        return cls(
            product_id=str(stock.product_id),
            product_name=stock.product.name,  # type: ignore[attr-defined]
            category=stock.product.category,  # type: ignore[attr-defined]
            sku_id=str(stock.sku_id),
            sku_code=stock.sku.code,  # type: ignore[attr-defined]
            unit_type=stock.unit_type,
            available_quantity=stock.available_quantity,
            total_weight=stock.total_weight,
        )


class CatalogSelection(BaseModel):
    """A row the operator picked from a presented list.

    Every field is optional because the hosting form may hand over a
    half-filled row; the resolver rejects it unless all mandatory fields
    are present.
    """

    model_config = ConfigDict(frozen=True)

    product_id: Optional[str] = None
    product_name: Optional[str] = None
    category: Optional[str] = None
    sku_id: Optional[str] = None
    sku_code: Optional[str] = None
    unit_type: Optional[str] = None
    available_quantity: Optional[Decimal] = None
    total_weight: Optional[Decimal] = None

    def missing_fields(self) -> List[str]:
        missing = []
        for name in MANDATORY_SELECTION_FIELDS:
            value = getattr(self, name)
            if value is None or (isinstance(value, str) and not value.strip()):
                missing.append(name)
        return missing

    @classmethod
    def from_entry(cls, entry: CatalogEntry) -> CatalogSelection:
        return cls(**entry.model_dump())


class AmbiguityWarning(BaseModel):
    """A SKU id keyed more than one catalog row.

    This is a catalog data-integrity defect.  ``candidates`` lists every
    matching row in catalog order; the resolver fell back to the first.
    """

    model_config = ConfigDict(frozen=True)

    selector_key: str
    candidates: Tuple[CatalogEntry, ...]

    @property
    def match_count(self) -> int:
        return len(self.candidates)

    @property
    def message(self) -> str:
        return (
            f"SKU '{self.selector_key}' matches {self.match_count} catalog rows; "
            f"using '{self.candidates[0].product_name}'."
        )


class Resolution(BaseModel):
    """Resolver output: exactly one entry plus an optional ambiguity flag."""

    model_config = ConfigDict(frozen=True)

    entry: CatalogEntry
    ambiguity: Optional[AmbiguityWarning] = None

    @property
    def is_degraded(self) -> bool:
        """``True`` when the entry is a first-match fallback."""
        return self.ambiguity is not None
