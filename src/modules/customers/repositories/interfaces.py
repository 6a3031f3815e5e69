"""Customer repository interface.

The finalization engine only needs a customer's credit line.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.customers.dtos import CreditProfile


class ICustomerRepository(IRepository["CreditProfile"]):
    """Repository contract for customer credit look-ups."""

    @abstractmethod
    def get_credit_profile(self, customer_id: str) -> CreditProfile:
        """Return the credit snapshot of an active customer.

        Raises:
            CustomerNotFound: no live customer with that id.
            InactiveCustomer: the customer exists but is inactive.
        """
