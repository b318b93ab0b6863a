"""Review queue for receipt suggestions a human should double-check."""

import logging
from typing import Dict, List, Optional, Any
from dataclasses import dataclass
from pathlib import Path

from .parsers.base import ParsedReceipt, UNKNOWN_MERCHANT, DEFAULT_CATEGORY

logger = logging.getLogger(__name__)


@dataclass
class ReviewItem:
    """Represents a receipt that needs manual review."""
    file_path: str
    reason: str
    suggested_date: Optional[str] = None
    suggested_amount: Optional[int] = None
    suggested_category: Optional[str] = None
    merchant_name: Optional[str] = None
    raw_snippet: str = ""
    confidence_scores: Optional[Dict[str, float]] = None


class ReviewQueue:
    """Manages receipts that need manual review."""

    def __init__(self, ocr_threshold: float = 0.3):
        """
        Initialize review queue.

        Args:
            ocr_threshold: Minimum OCR confidence accepted without review
        """
        self.items: List[ReviewItem] = []
        self.ocr_threshold = ocr_threshold

    def review_reasons(self,
                       parsed: ParsedReceipt,
                       ocr_confidence: float = 1.0,
                       date_found: bool = True,
                       category_matches: Optional[List[str]] = None) -> List[str]:
        """
        List why a parsed receipt should be reviewed.

        Args:
            parsed: Parser output
            ocr_confidence: Overall OCR confidence (0..1)
            date_found: False when the date was defaulted to today
            category_matches: Every category whose keywords hit

        Returns:
            Reasons, empty when the suggestion looks complete
        """
        reasons = []

        if not parsed.total_amount:
            reasons.append("missing amount")
        if not date_found:
            reasons.append("no date on receipt, defaulted to today")
        if parsed.merchant_name == UNKNOWN_MERCHANT:
            reasons.append("unknown merchant")
        if parsed.suggested_category == DEFAULT_CATEGORY:
            reasons.append("unknown category")
        if category_matches and len(category_matches) > 1:
            reasons.append(f"ambiguous category ({', '.join(category_matches)})")
        if ocr_confidence < self.ocr_threshold:
            reasons.append(f"low OCR quality ({ocr_confidence:.2f})")

        return reasons

    def should_review(self, parsed: ParsedReceipt, **kwargs) -> bool:
        """True if the parsed receipt should be sent to review."""
        return bool(self.review_reasons(parsed, **kwargs))

    def add_item(self,
                 file_path: str,
                 reason: str,
                 suggested_date: Optional[str] = None,
                 suggested_amount: Optional[int] = None,
                 suggested_category: Optional[str] = None,
                 merchant_name: Optional[str] = None,
                 raw_snippet: str = "",
                 confidence_scores: Optional[Dict[str, float]] = None):
        """Add an item to the review queue."""
        item = ReviewItem(
            file_path=file_path,
            reason=reason,
            suggested_date=suggested_date,
            suggested_amount=suggested_amount,
            suggested_category=suggested_category,
            merchant_name=merchant_name,
            raw_snippet=raw_snippet,
            confidence_scores=confidence_scores
        )

        self.items.append(item)
        logger.debug(f"Added to review queue: {Path(file_path).name} - {reason}")

    def add_from_extraction(self,
                            file_path: str,
                            parsed: ParsedReceipt,
                            ocr_confidence: float = 1.0,
                            date_found: bool = True,
                            category_matches: Optional[List[str]] = None) -> bool:
        """
        Queue a parsed receipt if its suggestion is uncertain.

        Returns:
            True if the receipt was queued
        """
        reasons = self.review_reasons(parsed, ocr_confidence=ocr_confidence,
                                      date_found=date_found, category_matches=category_matches)
        if not reasons:
            return False

        logger.info(f"Sending {Path(file_path).name} to review: {'; '.join(reasons)}")

        # Single-line snippet without control characters (Excel rejects them)
        snippet = parsed.raw_text.replace('\n', ' ')[:200]
        snippet = ''.join(char for char in snippet if ord(char) >= 32)
        if len(parsed.raw_text) > 200:
            snippet += "..."

        self.add_item(
            file_path=file_path,
            reason="; ".join(reasons),
            suggested_date=parsed.date,
            suggested_amount=parsed.total_amount,
            suggested_category=parsed.suggested_category,
            merchant_name=parsed.merchant_name,
            raw_snippet=snippet,
            confidence_scores={'ocr': ocr_confidence}
        )
        return True

    def detect_conflicts(self, extractions: List[Dict[str, Any]]) -> List[ReviewItem]:
        """
        Detect likely duplicate receipts across a batch.

        Receipts with the same merchant and date whose amounts are within
        3% of each other are reported.

        Args:
            extractions: Result dicts with merchant_name, date, total_amount

        Returns:
            List of review items for the duplicates
        """
        conflicts = []

        by_merchant_date = {}
        for extraction in extractions:
            key = (extraction.get('merchant_name', ''), extraction.get('date', ''))
            by_merchant_date.setdefault(key, []).append(extraction)

        for (merchant, date), group in by_merchant_date.items():
            if len(group) < 2:
                continue

            amounts = [item.get('total_amount', 0) for item in group if item.get('total_amount')]
            if len(amounts) < 2:
                continue

            max_amount = max(amounts)
            min_amount = min(amounts)
            if (max_amount - min_amount) / max_amount <= 0.03:
                for item in group:
                    conflicts.append(ReviewItem(
                        file_path=item.get('file_path', ''),
                        reason="Potential duplicate receipt",
                        suggested_date=date,
                        suggested_amount=item.get('total_amount'),
                        suggested_category=item.get('suggested_category'),
                        merchant_name=merchant,
                        raw_snippet=f"Similar to {len(group)-1} other receipts: {merchant} on {date}"
                    ))

        return conflicts

    def get_summary(self) -> Dict[str, Any]:
        """Get summary statistics for the review queue."""
        if not self.items:
            return {"total": 0}

        reason_counts = {}
        for item in self.items:
            for reason in item.reason.split(';'):
                reason = reason.strip()
                reason_counts[reason] = reason_counts.get(reason, 0) + 1

        return {
            "total": len(self.items),
            "category_issues": sum(1 for item in self.items if 'category' in item.reason.lower()),
            "ocr_issues": sum(1 for item in self.items if 'ocr' in item.reason.lower()),
            "missing_data": sum(1 for item in self.items
                                if 'missing' in item.reason.lower() or 'no date' in item.reason.lower()),
            "reason_breakdown": reason_counts
        }

    def clear(self):
        """Clear all items from the review queue."""
        self.items.clear()
        logger.info("Review queue cleared")
