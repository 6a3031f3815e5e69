"""Customer model with a credit line.

Business rules implemented:
- Inactive customer cannot place orders (enforced when the finalization
  service selects the customer).
- ``credit_limit`` cannot be negative.
- ``current_balance`` is the outstanding amount already charged to the
  account.  The finalization engine only reads it; a separate ledger
  process updates it.
- Soft delete via ``deleted_at`` (inherited from SoftDeleteModel).
"""

from __future__ import annotations

from decimal import Decimal

import structlog
from django.core.exceptions import ValidationError
from django.db import models

from modules.core.models import SoftDeleteModel

logger = structlog.get_logger(__name__)


class Customer(SoftDeleteModel):
    """Customer aggregate root."""

    name = models.CharField(max_length=255)
    email = models.EmailField(max_length=254, blank=True, default="")
    phone = models.CharField(max_length=20, blank=True, default="")
    address = models.TextField(blank=True, default="")
    credit_limit = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
    )
    current_balance = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
    )
    payment_terms = models.PositiveIntegerField(default=30)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "customers"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["is_active"], name="customers_active_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(credit_limit__gte=0),
                name="customers_credit_limit_non_negative",
            ),
        ]

    def clean(self) -> None:
        super().clean()
        if self.credit_limit is not None and self.credit_limit < 0:
            logger.warning("customer.negative_credit_limit", customer_id=str(self.id))
            raise ValidationError({"credit_limit": "Credit limit cannot be negative."})

    @property
    def available_credit(self) -> Decimal:
        return self.credit_limit - self.current_balance

    def __str__(self) -> str:
        return self.name
