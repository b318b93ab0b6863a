"""Command-line interface for receipt OCR and expense suggestion."""

import logging
import click
from pathlib import Path
from typing import List, Dict, Any, Optional
import json
from concurrent.futures import ThreadPoolExecutor, as_completed
from tqdm import tqdm
import sys
from datetime import date, datetime

from .classify import matching_categories
from .parse import ReceiptParser
from .parsers import ReceiptText, find_date
from .review import ReviewQueue
from .export import ExcelExporter
from .upload import store_receipt

logger = logging.getLogger(__name__)

RECEIPT_SUFFIXES = {'.pdf', '.png', '.jpg', '.jpeg', '.gif'}


def setup_logging(debug: bool = False):
    """Configure root logging once for the CLI process."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stderr)]
    )


class ReceiptProcessor:
    """OCR and parse receipt files, one at a time or as a batch."""

    def __init__(self,
                 rules_path: Optional[Path] = None,
                 max_workers: int = 4,
                 force_ocr: bool = False,
                 today: Optional[date] = None,
                 ocr_processor=None):
        """
        Initialize the receipt processor.

        Args:
            rules_path: Category rules YAML, defaults to the bundled table
            max_workers: Number of parallel workers
            force_ocr: Force OCR even if a PDF has embedded text
            today: Pin the reference date for parsing
            ocr_processor: OCR engine, an OCRProcessor is created when omitted
        """
        if ocr_processor is None:
            from .ocr import OCRProcessor
            ocr_processor = OCRProcessor()

        self.ocr_processor = ocr_processor
        self.parser = ReceiptParser(rules_path=rules_path, today=today)
        self.review_queue = ReviewQueue()
        self.max_workers = max_workers
        self.force_ocr = force_ocr

        self.stats = {
            'total_files': 0,
            'processed': 0,
            'failed': 0,
            'review_items': 0
        }

    def find_receipt_files(self, input_dir: Path) -> List[Path]:
        """Find all receipt files (PDF and image formats) under the input directory."""
        receipt_files = sorted(
            path for path in input_dir.rglob('*')
            if path.is_file() and path.suffix.lower() in RECEIPT_SUFFIXES
        )
        logger.info(f"Found {len(receipt_files)} receipt files in {input_dir}")
        return receipt_files

    def process_single_file(self, receipt_path: Path, output_dir: Optional[Path] = None) -> Dict[str, Any]:
        """
        OCR and parse one receipt file.

        A failure is logged, counted and queued for review; it never
        aborts the batch.

        Returns:
            Dictionary with parsed fields, OCR confidence and review flag
        """
        try:
            ocr_result = self.ocr_processor.extract_text(receipt_path, output_dir, force_ocr=self.force_ocr)
            text = ocr_result['full_text']
            ocr_confidence = ocr_result['confidence']

            parsed = self.parser.parse(text)
            needs_review = self.review_queue.add_from_extraction(
                file_path=str(receipt_path),
                parsed=parsed,
                ocr_confidence=ocr_confidence,
                date_found=find_date(ReceiptText(text).lines, self.parser.today) is not None,
                category_matches=matching_categories(parsed.merchant_name, parsed.items, self.parser.rules),
            )

            self.stats['processed'] += 1
            return {
                'file_path': str(receipt_path),
                'merchant_name': parsed.merchant_name,
                'total_amount': parsed.total_amount,
                'date': parsed.date,
                'items': list(parsed.items),
                'suggested_category': parsed.suggested_category,
                'ocr_confidence': ocr_confidence,
                'needs_review': needs_review,
            }

        except Exception as e:
            logger.error(f"Failed to process {receipt_path}: {e}")
            self.stats['failed'] += 1

            self.review_queue.add_item(
                file_path=str(receipt_path),
                reason=f"Processing failed: {e}",
                raw_snippet=f"Error: {e}"
            )

            return {
                'file_path': str(receipt_path),
                'merchant_name': None,
                'total_amount': None,
                'date': None,
                'items': [],
                'suggested_category': None,
                'ocr_confidence': 0.0,
                'needs_review': True,
                'error': str(e)
            }

    def process_batch(self, input_dir: Path, output_dir: Path) -> List[Dict[str, Any]]:
        """
        Process every receipt file in the input directory.

        Args:
            input_dir: Directory containing receipts
            output_dir: Output directory, OCR JSON is cached under ocr_json/

        Returns:
            List of per-file results
        """
        receipt_files = self.find_receipt_files(input_dir)
        self.stats['total_files'] = len(receipt_files)

        if not receipt_files:
            logger.warning("No receipt files found!")
            return []

        ocr_output_dir = output_dir / 'ocr_json'
        ocr_output_dir.mkdir(parents=True, exist_ok=True)

        results = []
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            future_to_file = {
                executor.submit(self.process_single_file, receipt_file, ocr_output_dir): receipt_file
                for receipt_file in receipt_files
            }

            with tqdm(total=len(receipt_files), desc="Processing receipts") as pbar:
                for future in as_completed(future_to_file):
                    results.append(future.result())
                    pbar.update(1)
                    pbar.set_postfix({
                        'processed': self.stats['processed'],
                        'failed': self.stats['failed']
                    })

        results.sort(key=lambda r: r['file_path'])

        parsed_results = [r for r in results if not r.get('error')]
        self.review_queue.items.extend(self.review_queue.detect_conflicts(parsed_results))
        self.stats['review_items'] = len(self.review_queue.items)

        logger.info(f"Batch processing complete. Processed: {self.stats['processed']}, "
                    f"Failed: {self.stats['failed']}, Review items: {self.stats['review_items']}")
        return results


def _parse_today(ctx, param, value: Optional[str]) -> Optional[date]:
    if value is None:
        return None
    try:
        return datetime.strptime(value, '%Y-%m-%d').date()
    except ValueError:
        raise click.BadParameter("expected YYYY-MM-DD")


@click.group()
@click.option('--debug', is_flag=True, help='Enable debug output')
def cli(debug: bool):
    """Receipt OCR - turn receipt photos into expense suggestions."""
    setup_logging(debug)


@cli.command()
@click.argument('source', type=click.File('r', encoding='utf-8', errors='replace'), default='-')
@click.option('--rules', type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help='Category rules YAML file')
@click.option('--today', callback=_parse_today, help='Reference date YYYY-MM-DD')
def parse(source, rules: Optional[Path], today: Optional[date]):
    """
    Parse OCR text from SOURCE (file or '-' for stdin) and print JSON.

    Example:
        receipts parse receipt.txt --today 2024-01-05
    """
    try:
        parser = ReceiptParser(rules_path=rules, today=today)
    except ValueError as e:
        raise click.ClickException(str(e))

    parsed = parser.parse(source.read())
    click.echo(json.dumps(parsed.to_dict(), ensure_ascii=False, indent=2))


@cli.command()
@click.argument('image', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option('--upload-dir', default='uploads', type=click.Path(file_okay=False, path_type=Path),
              help='Directory where the receipt image is stored')
@click.option('--rules', type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help='Category rules YAML file')
@click.option('--lang', default='kor+eng', help='Tesseract languages')
def scan(image: Path, upload_dir: Path, rules: Optional[Path], lang: str):
    """
    Store a receipt image, OCR it and print the suggested expense.

    Example:
        receipts scan ./receipt.jpg --upload-dir ./uploads
    """
    try:
        parser = ReceiptParser(rules_path=rules)
        stored_path, image_url = store_receipt(image, upload_dir)
    except ValueError as e:
        raise click.ClickException(str(e))

    from .ocr import OCRError, OCRProcessor

    try:
        ocr_result = OCRProcessor(lang=lang).extract_text(stored_path)
    except OCRError as e:
        logger.error(f"OCR processing error: {e}")
        # Keep stored images only for receipts that were read
        stored_path.unlink(missing_ok=True)
        raise click.ClickException(f"OCR processing failed: {e}")

    parsed_data = parser.parse(ocr_result['full_text']).to_dict()
    parsed_data['receiptImageUrl'] = image_url

    click.echo(json.dumps({
        'success': True,
        'extractedText': ocr_result['full_text'],
        'parsedData': parsed_data,
    }, ensure_ascii=False, indent=2))


@cli.command()
@click.option('--in', 'input_dir', required=True, type=click.Path(exists=True, path_type=Path),
              help='Input directory containing receipts')
@click.option('--out', 'output_dir', required=True, type=click.Path(path_type=Path),
              help='Output directory for results')
@click.option('--rules', type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help='Category rules YAML file')
@click.option('--max-workers', default=4, type=int, help='Maximum number of parallel workers')
@click.option('--no-summary', is_flag=True, help='Omit the summary section in Excel output')
@click.option('--force-ocr', is_flag=True, help='Force OCR even if embedded text exists')
def run(input_dir: Path, output_dir: Path, rules: Optional[Path], max_workers: int,
        no_summary: bool, force_ocr: bool):
    """
    Process a folder of receipts and write an Excel workbook.

    Example:
        receipts run --in ./receipts --out ./out
    """
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"Input directory: {input_dir}, output directory: {output_dir}")

        processor = ReceiptProcessor(rules_path=rules, max_workers=max_workers, force_ocr=force_ocr)
        results = processor.process_batch(input_dir, output_dir)

        if not results:
            logger.error("No files were processed!")
            return

        expenses = [
            ExcelExporter.create_expense_dict(result, result['file_path'])
            for result in results if not result.get('error')
        ]

        excel_path = output_dir / f"expenses_{datetime.now().strftime('%Y%m%d_%H%M%S')}.xlsx"
        ExcelExporter(excel_path).export_expenses(
            expenses=expenses,
            review_items=processor.review_queue.items,
            include_summary=not no_summary
        )

        click.echo("=" * 50)
        click.echo("PROCESSING SUMMARY")
        click.echo("=" * 50)
        click.echo(f"Total files found: {processor.stats['total_files']}")
        click.echo(f"Successfully processed: {processor.stats['processed']}")
        click.echo(f"Failed: {processor.stats['failed']}")
        click.echo(f"Items needing review: {len(processor.review_queue.items)}")
        click.echo(f"Excel: {excel_path}")

    except Exception as e:
        logger.error(f"Processing failed: {e}")
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


if __name__ == '__main__':
    cli()
