"""Merchant name extraction."""

from typing import List

from .base import UNKNOWN_MERCHANT


def extract_merchant_name(lines: List[str]) -> str:
    """
    Return the merchant name of a receipt.

    Receipts print the store name first, so the first non-empty line is
    taken verbatim. No plausibility check is made.
    """
    if not lines:
        return UNKNOWN_MERCHANT
    return lines[0]
