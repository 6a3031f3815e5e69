"""Unit tests for CatalogResolver.

Covers:
- Explicit selections are trusted once mandatory fields are present.
- Incomplete selections name the missing fields.
- Single, missing and duplicate SKU lookups.
- Strict mode turns the first-match fallback into an error.
- Resolution is repeatable.
"""

from __future__ import annotations

import logging

import pytest

from modules.catalog.dtos import CatalogSelection
from modules.catalog.exceptions import (
    AmbiguousCatalogKey,
    CatalogEntryNotFound,
    IncompleteCatalogEntry,
)
from modules.catalog.resolver import CatalogResolver
from shared.domain.exceptions import DataIntegrityWarning, ResolutionError

pytestmark = pytest.mark.unit


@pytest.fixture()
def duplicate_rows(make_entry):
    first = make_entry(product_name="Basmati Rice", sku_id="X", sku_code="X-1")
    second = make_entry(product_name="Sona Masoori", sku_id="X", sku_code="X-1")
    return first, second


class TestExplicitSelection:
    def test_complete_selection_is_trusted_verbatim(self, make_entry):
        entry = make_entry(available_quantity="4")
        resolver = CatalogResolver([])

        resolution = resolver.resolve(None, CatalogSelection.from_entry(entry))

        assert resolution.entry == entry
        assert resolution.ambiguity is None
        assert not resolution.is_degraded

    def test_selection_wins_over_selector_key(self, make_entry, duplicate_rows):
        chosen = duplicate_rows[1]
        resolver = CatalogResolver(duplicate_rows)

        resolution = resolver.resolve("X", CatalogSelection.from_entry(chosen))

        assert resolution.entry.product_name == "Sona Masoori"
        assert resolution.ambiguity is None

    def test_missing_fields_are_named(self):
        selection = CatalogSelection(product_id="p-1", product_name="  ", sku_id="s-1")

        with pytest.raises(IncompleteCatalogEntry) as exc_info:
            CatalogResolver([]).resolve(None, selection)

        assert exc_info.value.missing_fields == ("product_name", "sku_code")
        assert "product_name" in str(exc_info.value)

    def test_nothing_selected_is_incomplete(self):
        with pytest.raises(IncompleteCatalogEntry) as exc_info:
            CatalogResolver([]).resolve(None)

        assert isinstance(exc_info.value, ResolutionError)
        assert exc_info.value.missing_fields == ("sku_id",)


class TestSelectorKeyLookup:
    def test_single_match_resolves(self, make_entry):
        entry = make_entry(sku_id="SKU-1")
        other = make_entry(sku_id="SKU-2")

        resolution = CatalogResolver([other, entry]).resolve("SKU-1")

        assert resolution.entry == entry
        assert not resolution.is_degraded

    def test_unknown_key_raises_not_found(self, make_entry):
        with pytest.raises(CatalogEntryNotFound) as exc_info:
            CatalogResolver([make_entry()]).resolve("NOPE")

        assert exc_info.value.selector_key == "NOPE"
        assert isinstance(exc_info.value, ResolutionError)

    def test_duplicate_key_falls_back_to_first_row(self, duplicate_rows):
        first, second = duplicate_rows

        resolution = CatalogResolver(duplicate_rows).resolve("X")

        assert resolution.entry == first
        assert resolution.is_degraded
        assert resolution.ambiguity.selector_key == "X"
        assert resolution.ambiguity.match_count == 2
        assert resolution.ambiguity.candidates == (first, second)
        assert "matches 2 catalog rows" in resolution.ambiguity.message

    def test_duplicate_key_is_logged(self, duplicate_rows, caplog):
        with caplog.at_level(logging.WARNING, logger="modules.catalog.resolver"):
            CatalogResolver(duplicate_rows).resolve("X")

        assert any(
            "catalog.ambiguous_sku" in record.getMessage() for record in caplog.records
        )

    def test_strict_mode_rejects_duplicate_key(self, duplicate_rows):
        resolver = CatalogResolver(duplicate_rows, strict=True)

        with pytest.raises(AmbiguousCatalogKey) as exc_info:
            resolver.resolve("X")

        assert isinstance(exc_info.value, DataIntegrityWarning)
        assert exc_info.value.warning.match_count == 2


class TestIdempotence:
    def test_same_explicit_entry_resolves_identically(self, make_entry):
        selection = CatalogSelection.from_entry(make_entry())
        resolver = CatalogResolver([])

        assert resolver.resolve(None, selection) == resolver.resolve(None, selection)

    def test_same_key_resolves_identically(self, duplicate_rows):
        resolver = CatalogResolver(duplicate_rows)

        assert resolver.resolve("X") == resolver.resolve("X")
