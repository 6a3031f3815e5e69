"""Domain events for the Orders bounded context.

``aggregate_id`` is the finalization draft id.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class OrderSubmitted(DomainEvent):
    """Raised once a draft has been persisted."""

    order_id: str = ""
    total: Decimal = Decimal("0")
    credit_financed: Decimal = Decimal("0")
    warning_count: int = 0
    is_edit: bool = False


@dataclass(frozen=True)
class StockWarningsRaised(DomainEvent):
    """Raised when a finalized draft needs confirmation of stock warnings."""

    warning_count: int = 0


@dataclass(frozen=True)
class FinalizationAborted(DomainEvent):
    """Raised when the operator discards a draft."""

    state: str = ""
