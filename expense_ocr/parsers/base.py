"""Shared types and patterns for receipt text parsers."""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

UNKNOWN_MERCHANT = "Unknown"
DEFAULT_CATEGORY = "Other"

# Digits with optional thousands separators, e.g. 1,500 or 25,000
GROUPED_NUMBER = r'\d{1,3}(?:,\d{3})*'


@dataclass
class ReceiptText:
    """OCR text of one receipt, split into trimmed non-empty lines."""
    raw_text: str
    lines: Optional[List[str]] = None

    def __post_init__(self):
        if self.raw_text is None:
            self.raw_text = ""
        if self.lines is None:
            self.lines = [line.strip() for line in self.raw_text.split('\n') if line.strip()]


@dataclass(frozen=True)
class ParsedReceipt:
    """Best-guess expense record extracted from receipt text."""
    merchant_name: str = UNKNOWN_MERCHANT
    total_amount: int = 0
    date: str = ""
    items: Tuple[str, ...] = ()
    suggested_category: str = DEFAULT_CATEGORY
    raw_text: str = ""

    def __post_init__(self):
        object.__setattr__(self, 'items', tuple(self.items))

    def to_dict(self) -> Dict[str, Any]:
        """Wire form used by the API and the CLI."""
        return {
            'merchantName': self.merchant_name,
            'totalAmount': self.total_amount,
            'date': self.date,
            'items': list(self.items),
            'suggestedCategory': self.suggested_category,
            'rawText': self.raw_text,
        }
