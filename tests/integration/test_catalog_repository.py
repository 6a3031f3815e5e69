"""Integration tests for CatalogDjangoRepository."""

from __future__ import annotations

from decimal import Decimal

import pytest

from modules.catalog.repositories import CatalogDjangoRepository

pytestmark = pytest.mark.integration


@pytest.fixture()
def repo():
    return CatalogDjangoRepository()


def test_query_catalog_projects_live_rows(repo, make_stock):
    stock = make_stock(quantity="-2")

    (entry,) = repo.query_catalog()

    assert entry.product_id == str(stock.product_id)
    assert entry.product_name == "Basmati Rice"
    assert entry.category == "Grains"
    assert entry.sku_id == str(stock.sku_id)
    assert entry.sku_code == "BR-25"
    assert entry.unit_type == "bag"
    assert entry.available_quantity == Decimal("-2")


def test_soft_deleted_rows_are_hidden(repo, make_stock):
    kept = make_stock(product_name="Kept")
    make_stock(product_name="Row deleted").delete()
    gone_product = make_stock(product_name="Product deleted")
    gone_product.product.delete()

    entries = repo.query_catalog()

    assert [entry.product_name for entry in entries] == ["Kept"]
    assert entries[0].sku_id == str(kept.sku_id)


def test_shared_sku_yields_several_rows_in_catalog_order(repo, make_stock):
    first = make_stock(product_name="Rice A")
    second = make_stock(product_name="Rice B", sku=first.sku)

    matches = repo.find_by_sku(str(first.sku_id))

    assert [m.product_id for m in matches] == [
        str(first.product_id),
        str(second.product_id),
    ]


def test_lookups_with_invalid_ids(repo):
    assert repo.find_by_sku("not-a-uuid") == []
    assert repo.get_by_id("not-a-uuid") is None


def test_get_by_id(repo, make_stock):
    stock = make_stock()

    assert repo.get_by_id(str(stock.id)).sku_code == "BR-25"
