"""Order repository interface.

Extends ``IRepository[OrderRecord]`` with the two round trips the
finalization service makes: reading a committed order back for the edit
flow, and committing a finalized draft.

The service layer depends exclusively on this contract (DIP).
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.orders.draft import FinalizationDraft
    from modules.orders.dtos import OrderRecord


class IOrderRepository(IRepository["OrderRecord"]):
    """Repository contract for committed sales orders.

    An order, its items and its payments are written as one unit.
    """

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[OrderRecord]:
        """Retrieve a committed order, or ``None``."""

    @abstractmethod
    def query_order(self, order_id: str) -> OrderRecord:
        """Retrieve a committed order.

        Raises:
            OrderNotFound: no live order has this id.
        """

    @abstractmethod
    def persist_order(self, draft: FinalizationDraft) -> str:
        """Commit a finalized draft and return the order id.

        Creates a new order, or replaces the lines and payments of
        ``draft.source_order_id`` for an edit.  Persisting the same
        ``draft_id`` twice returns the first order's id.

        Raises:
            PersistenceError: the write failed; nothing was committed.
        """
