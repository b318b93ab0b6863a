"""Receipt OCR for expense tracking - turn receipt text into expense suggestions."""

__version__ = "1.0.0"

from .parsers import ParsedReceipt, ReceiptText, UNKNOWN_MERCHANT, DEFAULT_CATEGORY
from .parse import ReceiptParser, parse_receipt_text
from .classify import CategoryRule, load_category_rules, suggest_category
from .catalog import CategoryCatalog, CatalogEntry
from .prefill import ExpenseDraft, apply_parsed_receipt
from .review import ReviewQueue, ReviewItem

__all__ = [
    'ParsedReceipt',
    'ReceiptText',
    'UNKNOWN_MERCHANT',
    'DEFAULT_CATEGORY',
    'ReceiptParser',
    'parse_receipt_text',
    'CategoryRule',
    'load_category_rules',
    'suggest_category',
    'CategoryCatalog',
    'CatalogEntry',
    'ExpenseDraft',
    'apply_parsed_receipt',
    'ReviewQueue',
    'ReviewItem',
]
