"""Receipt text parsing: OCR text in, best-guess expense record out."""

import logging
from datetime import date
from pathlib import Path
from typing import Optional, Tuple

from .classify import CategoryRule, load_category_rules, suggest_category
from .parsers import (
    ParsedReceipt,
    ReceiptText,
    extract_date,
    extract_items,
    extract_merchant_name,
    extract_total_amount,
)

logger = logging.getLogger(__name__)


def parse_receipt_text(text: Optional[str],
                       today: Optional[date] = None,
                       rules: Optional[Tuple[CategoryRule, ...]] = None) -> ParsedReceipt:
    """
    Parse raw OCR text of one receipt.

    Each field comes from an independent pass over the same lines. The
    function never raises for string input: missing signals fall back to
    the placeholder merchant, amount 0, today's date, no items and the
    "Other" category.

    Args:
        text: Raw OCR output, may be empty or noisy
        today: Reference date for the date pass, defaults to date.today()
        rules: Category rule table, defaults to the bundled rules

    Returns:
        ParsedReceipt with the original text preserved in raw_text
    """
    receipt = ReceiptText(raw_text=text or "")
    lines = receipt.lines

    merchant_name = extract_merchant_name(lines)
    total_amount = extract_total_amount(lines)
    receipt_date = extract_date(lines, today)
    items = extract_items(lines)
    category = suggest_category(merchant_name, items, rules)

    logger.debug(f"Parsed receipt: merchant={merchant_name}, amount=₩{total_amount:,}, "
                 f"date={receipt_date}, items={len(items)}, category={category}")

    return ParsedReceipt(
        merchant_name=merchant_name,
        total_amount=total_amount,
        date=receipt_date,
        items=items,
        suggested_category=category,
        raw_text=receipt.raw_text,
    )


class ReceiptParser:
    """Receipt parser bound to a category rule table and an optional fixed clock."""

    def __init__(self, rules_path: Optional[Path] = None, today: Optional[date] = None):
        """
        Initialize the parser.

        Args:
            rules_path: Category rules YAML, defaults to the bundled table
            today: Pin the reference date (useful for reproducible runs)
        """
        self.rules = load_category_rules(rules_path)
        self.today = today

    def parse(self, text: Optional[str]) -> ParsedReceipt:
        """Parse one receipt's OCR text."""
        return parse_receipt_text(text, today=self.today, rules=self.rules)
