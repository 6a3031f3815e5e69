from decimal import Decimal

import pytest

from modules.catalog.models import Product, Sku, StockLevel
from modules.customers.models import Customer


@pytest.fixture()
def customer():
    return Customer.objects.create(
        name="Sharma Traders",
        email="accounts@sharmatraders.example",
        phone="9800000001",
        address="12 Market Road, Indore",
        credit_limit=Decimal("5000.00"),
        current_balance=Decimal("1000.00"),
        payment_terms=15,
        is_active=True,
    )


@pytest.fixture()
def make_stock():
    """Create a (product, SKU) catalog row with the given stock."""

    def _make(product_name="Basmati Rice", sku_code="br-25", quantity="10", sku=None):
        product = Product.objects.create(name=product_name, category="Grains")
        sku = sku or Sku.objects.create(code=sku_code)
        return StockLevel.objects.create(
            product=product,
            sku=sku,
            unit_type="bag",
            available_quantity=Decimal(quantity),
            total_weight=Decimal("250"),
        )

    return _make
