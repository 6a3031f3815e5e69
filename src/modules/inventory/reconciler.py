"""Inventory reconciler.

Checks resolved order lines against a live catalog snapshot.  Nothing is
locked or reserved: two operators validating against the same stock can
both pass, and the over-commitment shows up later as negative stock.
Warnings are advisory; the caller decides whether to proceed.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import structlog

from modules.catalog.dtos import CatalogEntry
from modules.inventory.dtos import ReconciliationWarning, WarningType
from modules.orders.dtos import OrderLine

logger = structlog.get_logger(__name__)

StockKey = Tuple[str, str]


class InventoryReconciler:
    """Classify each line as sufficient, short or not found."""

    def __init__(self, entries: Iterable[CatalogEntry]) -> None:
        self._index: Dict[StockKey, CatalogEntry] = {}
        for entry in entries:
            self._index.setdefault(entry.key, entry)

    def reconcile(
        self,
        lines: Sequence[OrderLine],
        credited: Optional[Mapping[StockKey, Decimal]] = None,
    ) -> List[ReconciliationWarning]:
        """Return one warning per short or missing line; empty means clean.

        ``credited`` maps ``(product_id, sku_id)`` to quantity the order
        being edited already took out of stock.  It is added back before
        comparing, since saving the edit releases it.
        """
        credited = credited or {}
        warnings: List[ReconciliationWarning] = []

        for line in lines:
            log = logger.bind(
                line_id=line.line_id,
                product_id=line.product_id,
                sku_id=line.sku_id,
            )
            entry = self._index.get(line.key)
            if entry is None:
                log.warning("inventory.line_not_found")
                warnings.append(
                    ReconciliationWarning(
                        type=WarningType.NOT_FOUND,
                        line=line,
                        requested_quantity=line.quantity,
                    )
                )
                continue

            current = entry.available_quantity + credited.get(line.key, Decimal("0"))
            resulting = current - line.quantity
            if resulting < 0:
                log.warning(
                    "inventory.short_stock",
                    current_quantity=str(current),
                    requested_quantity=str(line.quantity),
                    resulting_quantity=str(resulting),
                )
                warnings.append(
                    ReconciliationWarning(
                        type=WarningType.SHORT,
                        line=line,
                        current_quantity=current,
                        requested_quantity=line.quantity,
                        resulting_quantity=resulting,
                    )
                )

        logger.info(
            "inventory.reconciled",
            line_count=len(lines),
            warning_count=len(warnings),
        )
        return warnings
