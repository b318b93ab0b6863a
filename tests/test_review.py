"""Tests for the review queue."""

from expense_ocr import ParsedReceipt
from expense_ocr.review import ReviewQueue


def make_receipt(**overrides):
    fields = dict(
        merchant_name="GS25 역삼점",
        total_amount=5000,
        date="2024-01-05",
        items=["삼각김밥 1,200"],
        suggested_category="Shopping",
        raw_text="GS25 역삼점\n삼각김밥 1,200\n합계 5,000\n2024-01-05",
    )
    fields.update(overrides)
    return ParsedReceipt(**fields)


class TestReviewQueue:
    """Test suite for ReviewQueue."""

    def setup_method(self):
        self.queue = ReviewQueue()

    def test_complete_receipt_not_reviewed(self):
        assert not self.queue.should_review(make_receipt(), ocr_confidence=0.9, date_found=True)

    def test_reasons(self):
        parsed = make_receipt(total_amount=0, merchant_name="Unknown", suggested_category="Other")

        reasons = self.queue.review_reasons(parsed, ocr_confidence=0.1, date_found=False,
                                            category_matches=["Food", "Transportation"])

        assert "missing amount" in reasons
        assert "no date on receipt, defaulted to today" in reasons
        assert "unknown merchant" in reasons
        assert "unknown category" in reasons
        assert "ambiguous category (Food, Transportation)" in reasons
        assert "low OCR quality (0.10)" in reasons

    def test_add_from_extraction(self):
        parsed = make_receipt(total_amount=0, raw_text="x" * 300)

        queued = self.queue.add_from_extraction("receipts/a.jpg", parsed, ocr_confidence=0.8)

        assert queued
        item = self.queue.items[0]
        assert item.reason == "missing amount"
        assert item.suggested_amount == 0
        assert item.merchant_name == "GS25 역삼점"
        assert item.raw_snippet == "x" * 200 + "..."

    def test_add_from_extraction_skips_complete(self):
        assert not self.queue.add_from_extraction("receipts/a.jpg", make_receipt())
        assert self.queue.items == []

    def test_detect_duplicates(self):
        extractions = [
            {'file_path': 'a.jpg', 'merchant_name': 'GS25', 'date': '2024-01-05', 'total_amount': 10000},
            {'file_path': 'b.jpg', 'merchant_name': 'GS25', 'date': '2024-01-05', 'total_amount': 10200},
            {'file_path': 'c.jpg', 'merchant_name': 'GS25', 'date': '2024-01-06', 'total_amount': 10000},
        ]

        conflicts = self.queue.detect_conflicts(extractions)

        assert sorted(c.file_path for c in conflicts) == ['a.jpg', 'b.jpg']
        assert all(c.reason == "Potential duplicate receipt" for c in conflicts)

    def test_different_amounts_not_duplicates(self):
        extractions = [
            {'file_path': 'a.jpg', 'merchant_name': 'GS25', 'date': '2024-01-05', 'total_amount': 10000},
            {'file_path': 'b.jpg', 'merchant_name': 'GS25', 'date': '2024-01-05', 'total_amount': 12000},
        ]
        assert self.queue.detect_conflicts(extractions) == []

    def test_summary(self):
        assert self.queue.get_summary() == {"total": 0}

        self.queue.add_from_extraction("a.jpg", make_receipt(total_amount=0, suggested_category="Other"))
        self.queue.add_item("b.jpg", reason="Processing failed: boom")

        summary = self.queue.get_summary()
        assert summary["total"] == 2
        assert summary["category_issues"] == 1
        assert summary["missing_data"] == 1
        assert summary["reason_breakdown"]["missing amount"] == 1

        self.queue.clear()
        assert self.queue.items == []
