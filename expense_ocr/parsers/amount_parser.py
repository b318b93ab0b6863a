"""Total amount extraction for Korean receipts."""

import re
import logging
from typing import List

from .base import GROUPED_NUMBER

logger = logging.getLogger(__name__)

# Total phrasings in declaration order. Every pattern is tried on every line.
AMOUNT_PATTERNS = (
    re.compile(r'총\s*금액\s*[:\s]*(' + GROUPED_NUMBER + r')'),   # 총금액 (total amount)
    re.compile(r'합계\s*[:\s]*(' + GROUPED_NUMBER + r')'),        # 합계 (sum)
    re.compile(r'total\s*[:\s]*(' + GROUPED_NUMBER + r')', re.IGNORECASE),
    re.compile(r'(' + GROUPED_NUMBER + r')\s*원?$'),              # trailing number, optional 원
)


def parse_grouped_number(value: str) -> int:
    """Convert '15,000' to 15000."""
    return int(value.replace(',', ''))


def extract_total_amount(lines: List[str]) -> int:
    """
    Return the largest amount matched by any total pattern on any line.

    The scan is exhaustive: the true total is not reliably the first or
    last matching token, so the biggest total-looking number wins.
    Matches are never summed.

    Args:
        lines: Trimmed, non-empty receipt lines

    Returns:
        Amount in whole won, 0 when nothing matches
    """
    total = 0

    for line in lines:
        for pattern in AMOUNT_PATTERNS:
            match = pattern.search(line)
            if not match:
                continue

            amount = parse_grouped_number(match.group(1))
            if amount > total:
                logger.debug(f"New amount candidate {amount} from {line!r}")
                total = amount

    return total
