"""Catalog models: products, SKUs and per-(product, SKU) stock levels.

Business rules implemented:
- A SKU code is normalised to uppercase on save.
- A catalog row is a ``StockLevel``: one (product, SKU) pair with its
  live available quantity.  The same SKU may be stocked under several
  products; such rows make the SKU id an ambiguous lookup key.
- ``available_quantity`` is signed.  Negative stock is a prior backorder,
  not an error.
- Soft delete via ``deleted_at`` (inherited from SoftDeleteModel).
"""

from __future__ import annotations

from decimal import Decimal

import structlog
from django.db import models

from modules.core.models import SoftDeleteModel

logger = structlog.get_logger(__name__)


class Product(SoftDeleteModel):
    """A sellable product (e.g. "Basmati Rice")."""

    name = models.CharField(max_length=255)
    category = models.CharField(max_length=100, blank=True, default="")

    class Meta:
        db_table = "catalog_products"
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class Sku(SoftDeleteModel):
    """A stock-keeping unit (pack size / grade) of a product line."""

    code = models.CharField(max_length=64)
    description = models.CharField(max_length=255, blank=True, default="")

    class Meta:
        db_table = "catalog_skus"
        ordering = ["code"]

    def save(self, *args, **kwargs) -> None:
        if self.code:
            self.code = self.code.strip().upper()
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return self.code


class StockLevel(SoftDeleteModel):
    """Live inventory for one (product, SKU) pair: one catalog row."""

    product = models.ForeignKey(
        "catalog.Product",
        on_delete=models.PROTECT,
        related_name="stock_levels",
    )
    sku = models.ForeignKey(
        "catalog.Sku",
        on_delete=models.PROTECT,
        related_name="stock_levels",
    )
    unit_type = models.CharField(max_length=20, blank=True, default="")
    available_quantity = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        default=Decimal("0"),
    )
    total_weight = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        default=Decimal("0"),
    )

    class Meta:
        db_table = "catalog_stock_levels"
        ordering = ["created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["product", "sku"],
                name="stock_levels_product_sku_unique",
            ),
        ]

    def adjust(self, delta: Decimal) -> None:
        """Apply a signed quantity change; the result may go negative."""
        self.available_quantity += delta
        self.save(update_fields=["available_quantity", "updated_at"])
        if self.available_quantity < 0:
            logger.warning(
                "catalog.negative_stock",
                product_id=str(self.product_id),
                sku_id=str(self.sku_id),
                available_quantity=str(self.available_quantity),
            )

    def __str__(self) -> str:
        return f"{self.product} / {self.sku} ({self.available_quantity})"
