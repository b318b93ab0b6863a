"""Tests for resolving suggestions against a category catalog."""

import pytest
from expense_ocr.catalog import CatalogEntry, CategoryCatalog

SEED_CATALOG = [
    {'id': 1, 'name': '식비'},
    {'id': 2, 'name': '교통비'},
    {'id': 3, 'name': '쇼핑'},
    {'id': 4, 'name': '문화/여가'},
    {'id': 5, 'name': '의료/건강'},
    {'id': 10, 'name': '기타'},
]


class TestCategoryCatalog:
    """Test suite for CategoryCatalog.resolve."""

    def setup_method(self):
        self.catalog = CategoryCatalog(SEED_CATALOG)

    def test_resolves_through_seed_names(self):
        assert self.catalog.resolve("Food") == 1
        assert self.catalog.resolve("Entertainment") == 4
        assert self.catalog.resolve("Other") == 10

    def test_exact_display_name(self):
        catalog = CategoryCatalog([CatalogEntry(id='a', name='Food')])
        assert catalog.resolve("Food") == 'a'

    def test_fuzzy_match_on_renamed_entry(self):
        catalog = CategoryCatalog([{'id': 7, 'name': 'Medical / Health'}])
        assert catalog.resolve("Medical/Health") == 7

    def test_unresolvable_returns_none(self):
        catalog = CategoryCatalog([{'id': 3, 'name': 'Groceries'}])
        assert catalog.resolve("Shopping") is None

    def test_empty_label(self):
        assert self.catalog.resolve("") is None

    def test_unsupported_entry(self):
        with pytest.raises(TypeError):
            CategoryCatalog(["식비"])
