"""Customer DTOs handed to the finalization engine.

``CreditProfile`` is a read-only snapshot of a customer's credit line.
The engine never mutates it.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

if TYPE_CHECKING:
    from modules.customers.models import Customer


class CreditProfile(BaseModel):
    """Immutable credit snapshot: permanent limit and outstanding balance."""

    model_config = ConfigDict(frozen=True)

    customer_id: str = ""
    limit: Decimal
    current_balance: Decimal = Decimal("0")
    payment_terms: int = 30

    @classmethod
    def from_entity(cls, customer: Customer) -> CreditProfile:
        return cls(
            customer_id=str(customer.id),
            limit=customer.credit_limit,
            current_balance=customer.current_balance,
            payment_terms=customer.payment_terms,
        )
