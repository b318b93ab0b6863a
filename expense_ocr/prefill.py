"""Pre-fill an expense form from a parsed receipt."""

import logging
from dataclasses import dataclass, replace
from typing import Any, List, Optional, Tuple

from .catalog import CategoryCatalog
from .parsers.base import ParsedReceipt, UNKNOWN_MERCHANT

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExpenseDraft:
    """User-editable expense form values."""
    amount: int = 0
    description: str = ""
    date: str = ""
    category_id: Optional[Any] = None
    receipt_image_url: Optional[str] = None


def apply_parsed_receipt(draft: ExpenseDraft,
                         parsed: ParsedReceipt,
                         catalog: Optional[CategoryCatalog] = None,
                         receipt_image_url: Optional[str] = None) -> Tuple[ExpenseDraft, List[str]]:
    """
    Use a parsed receipt as defaults for an expense draft.

    Only fields the receipt actually provides are taken; the placeholder
    merchant and a zero amount leave the draft untouched.

    Args:
        draft: Current form values
        parsed: Parser output
        catalog: User's category catalog for resolving the suggestion
        receipt_image_url: Public url of the stored receipt image

    Returns:
        Tuple of (updated draft, list of update notes)
    """
    changes = {}
    notes = []

    if catalog is not None:
        entry = catalog.resolve_entry(parsed.suggested_category)
        if entry and entry.id != draft.category_id:
            changes['category_id'] = entry.id
            notes.append(f"category: {entry.name}")

    if parsed.total_amount and parsed.total_amount != draft.amount:
        changes['amount'] = parsed.total_amount
        notes.append(f"amount: ₩{parsed.total_amount:,}")

    merchant = parsed.merchant_name
    if merchant and merchant != UNKNOWN_MERCHANT and merchant != draft.description:
        changes['description'] = merchant
        notes.append(f"description: {merchant}")

    if parsed.date and parsed.date != draft.date:
        changes['date'] = parsed.date
        notes.append(f"date: {parsed.date}")

    if receipt_image_url:
        changes['receipt_image_url'] = receipt_image_url
        notes.append("receipt image attached")

    if notes:
        logger.info(f"Pre-filled expense from receipt: {', '.join(notes)}")
    else:
        logger.info("Receipt analysed but nothing to pre-fill")

    return replace(draft, **changes), notes
