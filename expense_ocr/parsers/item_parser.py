"""Line item extraction."""

import re
from typing import List

from .base import GROUPED_NUMBER
from .date_parser import DATE_PATTERNS

# Totals, payment method, date/time, phone, address, business registration
METADATA_PATTERN = re.compile(r'총|합계|금액|카드|현금|date|time|tel|주소|사업자', re.IGNORECASE)
PRICE_PATTERN = re.compile(GROUPED_NUMBER)
MIN_ITEM_LENGTH = 3


def is_metadata_line(line: str) -> bool:
    """True for lines describing the receipt rather than a purchased item."""
    if METADATA_PATTERN.search(line):
        return True
    return any(pattern.search(line) for pattern, _ in DATE_PATTERNS)


def extract_items(lines: List[str]) -> List[str]:
    """
    Return lines that look like priced entries, in receipt order.

    Metadata lines are dropped even when they carry a number. Duplicates
    are kept.
    """
    items = []
    for line in lines:
        if is_metadata_line(line):
            continue
        if PRICE_PATTERN.search(line) and len(line.strip()) > MIN_ITEM_LENGTH:
            items.append(line)
    return items
