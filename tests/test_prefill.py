"""Tests for expense draft pre-filling."""

from expense_ocr import ParsedReceipt, UNKNOWN_MERCHANT
from expense_ocr.catalog import CategoryCatalog
from expense_ocr.prefill import ExpenseDraft, apply_parsed_receipt


class TestApplyParsedReceipt:
    """Test suite for apply_parsed_receipt."""

    def setup_method(self):
        self.catalog = CategoryCatalog([{'id': 1, 'name': '식비'}, {'id': 10, 'name': '기타'}])
        self.parsed = ParsedReceipt(
            merchant_name="스타벅스 강남점",
            total_amount=9500,
            date="2024-10-30",
            items=["아메리카노 4,500"],
            suggested_category="Food",
            raw_text="...",
        )

    def test_all_fields_applied(self):
        draft, notes = apply_parsed_receipt(ExpenseDraft(), self.parsed, self.catalog)

        assert draft.category_id == 1
        assert draft.amount == 9500
        assert draft.description == "스타벅스 강남점"
        assert draft.date == "2024-10-30"
        assert len(notes) == 4

    def test_placeholder_and_zero_are_ignored(self):
        parsed = ParsedReceipt(merchant_name=UNKNOWN_MERCHANT, total_amount=0, date="2024-01-01")
        original = ExpenseDraft(amount=3000, description="점심", date="2024-01-02")

        draft, notes = apply_parsed_receipt(original, parsed)

        assert draft.amount == 3000
        assert draft.description == "점심"
        assert draft.date == "2024-01-01"
        assert notes == ["date: 2024-01-01"]

    def test_unchanged_fields_produce_no_notes(self):
        original = ExpenseDraft(amount=9500, description="스타벅스 강남점", date="2024-10-30", category_id=1)

        draft, notes = apply_parsed_receipt(original, self.parsed, self.catalog)

        assert draft == original
        assert notes == []

    def test_without_catalog_category_untouched(self):
        draft, _ = apply_parsed_receipt(ExpenseDraft(category_id=99), self.parsed)
        assert draft.category_id == 99

    def test_receipt_image_attached(self):
        draft, notes = apply_parsed_receipt(
            ExpenseDraft(), self.parsed, receipt_image_url="/uploads/receipt-1-2.jpg"
        )
        assert draft.receipt_image_url == "/uploads/receipt-1-2.jpg"
        assert "receipt image attached" in notes
