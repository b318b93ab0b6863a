"""Excel export of parsed receipts and review data."""

import logging
from typing import List, Dict, Any, Optional
from dataclasses import replace
from pathlib import Path
import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill, Alignment
from openpyxl.utils import get_column_letter

from .review import ReviewItem

logger = logging.getLogger(__name__)

HEADERS = ["File Name", "Date", "Merchant", "Amount", "Category", "Items",
           "Review Status", "Review Reason", "Raw Snippet"]
COLUMN_WIDTHS = [25, 12, 25, 12, 18, 50, 12, 40, 60]


class ExcelExporter:
    """Export expenses and review items to a single Excel sheet."""

    def __init__(self, output_path: Path):
        """
        Initialize Excel exporter.

        Args:
            output_path: Path for the output Excel file
        """
        self.output_path = output_path
        self.workbook = Workbook()

    def export_expenses(self,
                        expenses: List[Dict[str, Any]],
                        review_items: List[ReviewItem],
                        include_summary: bool = True):
        """
        Export expenses and review data to a consolidated Excel sheet.

        Args:
            expenses: Expense dicts from create_expense_dict
            review_items: Items needing review
            include_summary: Whether to add the statistics section on top
        """
        try:
            if "Sheet" in self.workbook.sheetnames:
                self.workbook.remove(self.workbook["Sheet"])

            self._create_consolidated_sheet(expenses, review_items, include_summary)

            self.output_path.parent.mkdir(parents=True, exist_ok=True)
            self.workbook.save(str(self.output_path))

            logger.info(f"Excel file exported to: {self.output_path}")

        except Exception as e:
            logger.error(f"Failed to export Excel file: {e}")
            raise

    def _write_row(self, ws, row: int, expense: Dict[str, Any], status: str,
                   review_item: Optional[ReviewItem]):
        values = [
            expense.get('file_name', ''),
            expense.get('date', ''),
            expense.get('merchant_name', ''),
            expense.get('amount', 0),
            expense.get('category', 'Other'),
            expense.get('items', ''),
            status,
            review_item.reason if review_item else "",
            review_item.raw_snippet if review_item else "",
        ]
        for col, value in enumerate(values, 1):
            ws.cell(row=row, column=col, value=value)

    @staticmethod
    def merge_review_items(review_items: List[ReviewItem]) -> Dict[str, ReviewItem]:
        """
        Group review items by source file path.

        A file flagged more than once (e.g. low quality and a duplicate)
        keeps every reason, joined with "; ".
        """
        merged: Dict[str, ReviewItem] = {}
        for item in review_items:
            existing = merged.get(item.file_path)
            if existing is None:
                merged[item.file_path] = item
                continue
            reasons = existing.reason.split("; ")
            reasons += [r for r in item.reason.split("; ") if r not in reasons]
            merged[item.file_path] = replace(
                existing,
                reason="; ".join(reasons),
                raw_snippet=existing.raw_snippet or item.raw_snippet,
            )
        return merged

    def _create_consolidated_sheet(self, expenses: List[Dict[str, Any]],
                                   review_items: List[ReviewItem], include_summary: bool):
        """Summary first, then OK expenses, then expenses under review."""
        ws = self.workbook.create_sheet("Expenses")
        current_row = 1

        if include_summary:
            current_row = self._add_summary_section(ws, expenses, current_row)
            current_row += 2

        # Keyed by full path, receipts in different folders may share a name
        review_lookup = self.merge_review_items(review_items)

        ws.cell(row=current_row, column=1, value="ALL EXPENSES").font = Font(bold=True, size=14)
        current_row += 2

        for col, header in enumerate(HEADERS, 1):
            cell = ws.cell(row=current_row, column=col, value=header)
            cell.font = Font(bold=True)
            cell.fill = PatternFill(start_color="E6E6E6", end_color="E6E6E6", fill_type="solid")
            cell.alignment = Alignment(horizontal="center")
        current_row += 1

        ok_expenses = [e for e in expenses if e.get('file_path', '') not in review_lookup]
        flagged = [e for e in expenses if e.get('file_path', '') in review_lookup]

        for expense in ok_expenses:
            self._write_row(ws, current_row, expense, "OK", None)
            current_row += 1

        for expense in flagged:
            self._write_row(ws, current_row, expense, "REVIEW", review_lookup[expense['file_path']])
            current_row += 1

        # Review items without an expense row (e.g. OCR failures)
        exported_paths = {e.get('file_path') for e in expenses}
        for file_path, item in review_lookup.items():
            if file_path in exported_paths:
                continue
            orphan = {
                'file_name': Path(file_path).name,
                'date': item.suggested_date or '',
                'merchant_name': item.merchant_name or '',
                'amount': item.suggested_amount or '',
                'category': item.suggested_category or '',
            }
            self._write_row(ws, current_row, orphan, "REVIEW", item)
            current_row += 1

        for i, width in enumerate(COLUMN_WIDTHS, 1):
            ws.column_dimensions[get_column_letter(i)].width = width

        logger.info(f"Created sheet with {len(expenses)} expenses and {len(review_items)} review items")

    def _add_summary_section(self, ws, expenses: List[Dict[str, Any]], start_row: int) -> int:
        """Totals, per-category and per-month breakdowns."""
        if not expenses:
            ws.cell(row=start_row, column=1, value="No expenses to summarize")
            return start_row + 1

        stats = self.summarize(expenses)

        ws.cell(row=start_row, column=1, value="EXPENSE SUMMARY").font = Font(bold=True, size=14)
        current_row = start_row + 2

        ws.cell(row=current_row, column=1, value="Total Expenses:").font = Font(bold=True)
        ws.cell(row=current_row, column=2, value=stats['count'])
        ws.cell(row=current_row, column=4, value="Total Amount:").font = Font(bold=True)
        ws.cell(row=current_row, column=5, value=f"₩{stats['total']:,}")
        ws.cell(row=current_row, column=7, value="Average Amount:").font = Font(bold=True)
        ws.cell(row=current_row, column=8, value=f"₩{stats['average']:,.0f}")
        current_row += 2

        ws.cell(row=current_row, column=1, value="Category Breakdown:").font = Font(bold=True)
        current_row += 1
        for col, header in enumerate(["Category", "Count", "Amount", "Share"], 1):
            ws.cell(row=current_row, column=col, value=header).font = Font(bold=True)
        current_row += 1
        for row in stats['by_category']:
            ws.cell(row=current_row, column=1, value=row['category'])
            ws.cell(row=current_row, column=2, value=row['count'])
            ws.cell(row=current_row, column=3, value=f"₩{row['total']:,}")
            ws.cell(row=current_row, column=4, value=f"{row['percentage']:.1f}%")
            current_row += 1

        current_row += 1
        ws.cell(row=current_row, column=1, value="Monthly Totals:").font = Font(bold=True)
        current_row += 1
        for row in stats['by_month']:
            ws.cell(row=current_row, column=1, value=row['month'])
            ws.cell(row=current_row, column=2, value=row['count'])
            ws.cell(row=current_row, column=3, value=f"₩{row['total']:,}")
            current_row += 1

        return current_row

    @staticmethod
    def summarize(expenses: List[Dict[str, Any]]) -> Dict[str, Any]:
        """
        Aggregate expenses for the summary section.

        Returns:
            Dict with count, total, average, by_category (sorted by amount,
            with percentage of total) and by_month (YYYY-MM, ascending)
        """
        if not expenses:
            return {'count': 0, 'total': 0, 'average': 0.0, 'by_category': [], 'by_month': []}

        df = pd.DataFrame(expenses)
        df['amount'] = pd.to_numeric(df['amount'], errors='coerce').fillna(0).astype(int)
        total = int(df['amount'].sum())

        by_category = []
        grouped = df.groupby('category')['amount'].agg(['count', 'sum']).sort_values('sum', ascending=False)
        for category, row in grouped.iterrows():
            category_total = int(row['sum'])
            by_category.append({
                'category': category,
                'count': int(row['count']),
                'total': category_total,
                'percentage': category_total * 100 / total if total > 0 else 0.0,
            })

        df['month'] = df['date'].astype(str).str[:7]
        by_month = []
        for month, row in df.groupby('month')['amount'].agg(['count', 'sum']).sort_index().iterrows():
            by_month.append({'month': month, 'count': int(row['count']), 'total': int(row['sum'])})

        return {
            'count': len(df),
            'total': total,
            'average': float(df['amount'].mean()),
            'by_category': by_category,
            'by_month': by_month,
        }

    @staticmethod
    def create_expense_dict(parsed: Dict[str, Any], file_path: str = "") -> Dict[str, Any]:
        """
        Create an expense row from a processing result.

        Args:
            parsed: Result dict with merchant_name, total_amount, date,
                items, suggested_category
            file_path: Source file path, matched against review items

        Returns:
            Expense dictionary
        """
        return {
            'date': parsed.get('date') or '',
            'merchant_name': parsed.get('merchant_name') or '',
            'amount': parsed.get('total_amount') or 0,
            'category': parsed.get('suggested_category') or 'Other',
            'items': ' / '.join(parsed.get('items') or []),
            'file_name': Path(file_path).name if file_path else '',
            'file_path': str(file_path),
        }
