"""Receipt text parsers - one pure function per extracted field."""

from .base import ReceiptText, ParsedReceipt, UNKNOWN_MERCHANT, DEFAULT_CATEGORY
from .merchant_parser import extract_merchant_name
from .amount_parser import extract_total_amount
from .date_parser import extract_date, find_date, match_date
from .item_parser import extract_items, is_metadata_line

__all__ = [
    'ReceiptText',
    'ParsedReceipt',
    'UNKNOWN_MERCHANT',
    'DEFAULT_CATEGORY',
    'extract_merchant_name',
    'extract_total_amount',
    'extract_date',
    'find_date',
    'match_date',
    'extract_items',
    'is_metadata_line',
]
