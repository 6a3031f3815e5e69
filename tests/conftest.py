from decimal import Decimal
from uuid import uuid4

import pytest

from modules.catalog.dtos import CatalogEntry


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture()
def make_entry():
    """Factory for ``CatalogEntry`` rows with fresh ids."""

    def _make(
        *,
        product_id=None,
        product_name="Basmati Rice",
        sku_id=None,
        sku_code="BR-25KG",
        available_quantity="100",
        unit_type="bag",
    ):
        return CatalogEntry(
            product_id=product_id or str(uuid4()),
            product_name=product_name,
            category="Grains",
            sku_id=sku_id or str(uuid4()),
            sku_code=sku_code,
            unit_type=unit_type,
            available_quantity=Decimal(available_quantity),
            total_weight=Decimal("0"),
        )

    return _make
