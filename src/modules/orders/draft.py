"""Draft containers for one finalize attempt.

- ``OrderDraft``: the operator's mutable working copy.  Owned by exactly
  one ``OrderFinalizationService``; only that service mutates it.
- ``FinalizationDraft``: the immutable snapshot produced by ``finalize()``
  and held unchanged across the confirmation pause.  It is what the
  persistence collaborator receives.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Dict, Optional, Tuple
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict

from modules.catalog.dtos import AmbiguityWarning
from modules.inventory.dtos import ReconciliationWarning
from modules.orders.dtos import LineRequest, OrderHeader, OrderLine, OrderTotals
from modules.payments.dtos import PaymentAllocation, PaymentInstrument


class OrderDraft:
    """Mutable working copy of an order being assembled."""

    def __init__(self, draft_id: Optional[UUID] = None) -> None:
        self.draft_id: UUID = draft_id or uuid4()
        self.header = OrderHeader()
        self.lines: Dict[str, LineRequest] = {}
        self.payments: Dict[str, PaymentInstrument] = {}
        self.discount = Decimal("0")
        self.source_order_id: Optional[str] = None
        # Stock already taken by the order being edited, per (product, sku).
        self.credited: Dict[Tuple[str, str], Decimal] = {}

    @property
    def is_empty(self) -> bool:
        return not self.lines and not self.payments and self.source_order_id is None

    def preview_totals(self) -> OrderTotals:
        """Totals from the raw line requests, before resolution."""
        return OrderTotals.compute(
            (line.preview_total for line in self.lines.values()), self.discount
        )


class FinalizationDraft(BaseModel):
    """Immutable result of one finalize attempt."""

    model_config = ConfigDict(frozen=True)

    draft_id: UUID
    header: OrderHeader
    order_lines: Tuple[OrderLine, ...]
    totals: OrderTotals
    payment_instruments: Tuple[PaymentInstrument, ...] = ()
    allocation: Optional[PaymentAllocation] = None
    reconciliation_warnings: Tuple[ReconciliationWarning, ...] = ()
    ambiguity_warnings: Tuple[AmbiguityWarning, ...] = ()
    source_order_id: Optional[str] = None

    @property
    def computed_totals(self) -> OrderTotals:
        return self.totals

    @property
    def requires_confirmation(self) -> bool:
        return bool(self.reconciliation_warnings)

    @property
    def is_edit(self) -> bool:
        return self.source_order_id is not None
