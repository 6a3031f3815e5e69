"""Inventory reconciliation DTOs."""

from __future__ import annotations

from decimal import Decimal
from enum import StrEnum
from typing import Optional

from pydantic import BaseModel, ConfigDict

from modules.orders.dtos import OrderLine


class WarningType(StrEnum):
    NOT_FOUND = "not_found"
    SHORT = "short"


class ReconciliationWarning(BaseModel):
    """Advisory flag for one order line.

    ``SHORT``: fulfilling the line drives stock negative;
    ``resulting_quantity`` is that negative figure.
    ``NOT_FOUND``: the line's (product, SKU) vanished from the catalog.
    """

    model_config = ConfigDict(frozen=True)

    type: WarningType
    line: OrderLine
    requested_quantity: Decimal
    current_quantity: Optional[Decimal] = None
    resulting_quantity: Optional[Decimal] = None

    @property
    def line_id(self) -> str:
        return self.line.line_id

    @property
    def message(self) -> str:
        if self.type == WarningType.NOT_FOUND:
            return (
                f"{self.line.product_name} ({self.line.sku_code}) is no longer "
                f"in the catalog."
            )
        return (
            f"Insufficient inventory for {self.line.product_name}. "
            f"Available: {self.current_quantity}, requested: "
            f"{self.requested_quantity}, resulting stock: {self.resulting_quantity}"
        )
