"""SalesOrder, SalesOrderItem and SalesOrderPayment models.

Business rules implemented:
- Order number auto-generated as human-readable identifier.
- ``draft_id`` is unique: one committed order per finalization draft,
  which makes a replayed submission return the existing order.
- Customer and catalog FKs use PROTECT to preserve financial history.
- SalesOrderItem snapshots product name, SKU code and price.
- SalesOrderItem ``total_price`` is always ``quantity * unit_price``
  (calculated on save).
- Payments are stored as submitted, including the synthesized credit
  instrument (flagged ``is_implicit``).
"""

from __future__ import annotations

import secrets
from decimal import Decimal
from typing import Any

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from modules.core.models import BaseModel, SoftDeleteModel
from modules.orders.constants import (
    ORDER_NUMBER_MAX_RETRIES,
    SaleType,
    SalesOrderStatus,
)
from modules.payments.constants import PaymentKind

SALE_TYPE_CHOICES = [(value.value, value.name.title()) for value in SaleType]
PAYMENT_KIND_CHOICES = [(kind.value, kind.label) for kind in PaymentKind]


class SalesOrder(SoftDeleteModel):
    """Committed sales order (``SO-YYYYMMDD-XXXXXX``)."""

    order_number = models.CharField(max_length=20, unique=True, editable=False)
    draft_id = models.UUIDField(unique=True, null=True, blank=True)
    customer = models.ForeignKey(
        "customers.Customer",
        on_delete=models.PROTECT,
        related_name="sales_orders",
    )
    status = models.CharField(
        max_length=20,
        choices=SalesOrderStatus.choices,
        default=SalesOrderStatus.COMPLETED,
    )
    sale_type = models.CharField(
        max_length=20, choices=SALE_TYPE_CHOICES, default=SaleType.LOCAL.value
    )
    order_date = models.DateField(default=timezone.localdate)
    delivery_date = models.DateField(null=True, blank=True)
    delivery_address = models.TextField(blank=True, default="")
    payment_terms = models.PositiveIntegerField(default=30)
    notes = models.TextField(blank=True, default="")
    subtotal = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    discount_amount = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )
    total_amount = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )
    credit_financed = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )
    credit_increase_total = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )

    class Meta:
        db_table = "sales_orders"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="sales_orders_status_idx"),
            models.Index(fields=["-created_at"], name="sales_orders_created_idx"),
        ]

    @staticmethod
    def generate_order_number() -> str:
        """Generate a human-readable order number: ``SO-YYYYMMDD-XXXXXX``."""
        now = timezone.now()
        suffix = secrets.token_hex(3).upper()
        return f"SO-{now:%Y%m%d}-{suffix}"

    def save(self, *args: Any, **kwargs: Any) -> None:
        if not self.order_number:
            for _ in range(ORDER_NUMBER_MAX_RETRIES):
                candidate = self.generate_order_number()
                if not SalesOrder.objects.filter(order_number=candidate).exists():
                    self.order_number = candidate
                    break
            else:
                raise RuntimeError(
                    f"Failed to generate unique order_number after "
                    f"{ORDER_NUMBER_MAX_RETRIES} attempts"
                )
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.order_number} ({self.status})"


class SalesOrderItem(BaseModel):
    """Line item snapshot of a committed order."""

    order = models.ForeignKey(
        "orders.SalesOrder",
        on_delete=models.CASCADE,
        related_name="items",
    )
    product = models.ForeignKey(
        "catalog.Product",
        on_delete=models.PROTECT,
        related_name="order_items",
    )
    sku = models.ForeignKey(
        "catalog.Sku",
        on_delete=models.PROTECT,
        related_name="order_items",
    )
    line_id = models.CharField(max_length=64, blank=True, default="")
    product_name = models.CharField(max_length=255)
    sku_code = models.CharField(max_length=64)
    unit_type = models.CharField(max_length=20, blank=True, default="")
    quantity = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        validators=[MinValueValidator(Decimal("0.001"))],
    )
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    total_price = models.DecimalField(max_digits=14, decimal_places=2, editable=False)

    class Meta:
        db_table = "sales_order_items"
        ordering = ["created_at", "id"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gt=0),
                name="sales_order_items_quantity_positive",
            ),
        ]

    def clean(self) -> None:
        super().clean()
        if self.quantity is not None and self.quantity <= 0:
            raise ValidationError({"quantity": "Quantity must be greater than zero."})

    def save(self, *args: Any, **kwargs: Any) -> None:
        self.total_price = self.quantity * self.unit_price
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.product_name} / {self.sku_code} x{self.quantity}"


class SalesOrderPayment(BaseModel):
    """One payment instrument attached to a committed order."""

    order = models.ForeignKey(
        "orders.SalesOrder",
        on_delete=models.CASCADE,
        related_name="payments",
    )
    kind = models.CharField(max_length=20, choices=PAYMENT_KIND_CHOICES)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    reference_number = models.CharField(max_length=100, blank=True, default="")
    proof_artifact = models.CharField(max_length=255, blank=True, default="")
    remarks = models.TextField(blank=True, default="")
    is_implicit = models.BooleanField(default=False)

    class Meta:
        db_table = "sales_order_payments"
        ordering = ["created_at", "id"]

    def __str__(self) -> str:
        return f"{self.kind} {self.amount}"
