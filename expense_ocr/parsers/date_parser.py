"""Transaction date extraction."""

import re
import logging
from datetime import date
from typing import List, Optional

logger = logging.getLogger(__name__)

# Date patterns in priority order: (pattern, pattern_type)
DATE_PATTERNS = (
    (re.compile(r'(\d{4})[.-](\d{1,2})[.-](\d{1,2})'), 'full'),           # YYYY.MM.DD / YYYY-MM-DD
    (re.compile(r'(\d{2})[.-](\d{1,2})[.-](\d{1,2})'), 'short'),          # YY.MM.DD / YY-MM-DD
    (re.compile(r'(\d{4})년\s*(\d{1,2})월\s*(\d{1,2})일'), 'korean_long'),  # YYYY년 MM월 DD일
)


def expand_year(year: str, today: date) -> int:
    """Place a two-digit year in the current century."""
    if len(year) == 2:
        century = (today.year // 100) * 100
        return century + int(year)
    return int(year)


def match_date(line: str, today: Optional[date] = None) -> Optional[str]:
    """
    Return the ISO date carried by a single line, if any.

    The first pattern (in declaration order) that matches the line wins.
    Month and day are zero-padded; no calendar validation is applied.
    """
    today = today or date.today()

    for pattern, pattern_type in DATE_PATTERNS:
        match = pattern.search(line)
        if not match:
            continue

        year, month, day = match.groups()
        iso_date = f"{expand_year(year, today)}-{int(month):02d}-{int(day):02d}"
        logger.debug(f"Matched {pattern_type} date {iso_date} in {line!r}")
        return iso_date

    return None


def find_date(lines: List[str], today: Optional[date] = None) -> Optional[str]:
    """Return the date from the first line that carries one, or None."""
    for line in lines:
        found = match_date(line, today)
        if found:
            return found
    return None


def extract_date(lines: List[str], today: Optional[date] = None) -> str:
    """
    Extract the transaction date, first matching line wins.

    Args:
        lines: Trimmed, non-empty receipt lines
        today: Reference date for century expansion and the default

    Returns:
        ISO date string; today's date when no line carries a date
    """
    today = today or date.today()
    return find_date(lines, today) or today.isoformat()
