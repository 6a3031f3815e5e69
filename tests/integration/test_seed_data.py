"""Integration tests for the seed_data management command."""

from io import StringIO

import pytest
from django.core.management import call_command

from modules.catalog.models import Product, Sku, StockLevel
from modules.catalog.repositories import CatalogDjangoRepository
from modules.customers.models import Customer

pytestmark = pytest.mark.integration


def test_seed_data_populates_catalog_and_customers():
    out = StringIO()

    call_command("seed_data", stdout=out)

    assert Customer.objects.count() == 5
    assert Product.objects.count() == 6
    assert Sku.objects.count() == 4
    assert StockLevel.objects.count() == 11
    assert "Seed completed" in out.getvalue()


def test_seed_data_is_rerunnable():
    call_command("seed_data", stdout=StringIO())
    call_command("seed_data", stdout=StringIO())

    assert Customer.objects.count() == 5
    assert StockLevel.objects.count() == 11


def test_shared_bag_sku_matches_several_catalog_rows():
    call_command("seed_data", stdout=StringIO())
    bag = Sku.objects.get(code="BAG-25")

    entries = CatalogDjangoRepository().find_by_sku(str(bag.id))

    assert len(entries) == 4
