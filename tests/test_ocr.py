"""Tests for the Tesseract OCR adapter (engine calls are stubbed)."""

from pathlib import Path

import pytest
from PIL import Image

from expense_ocr import ocr
from expense_ocr.ocr import OCRError, OCRProcessor

GOOD_TEXT_LAYER = (
    "GoodMart Gangnam branch, Seoul\n"
    "Milk 2,500 Bread 3,000 Eggs 4,000\n"
    "Total 9,500 paid by card\n"
    "2024-01-05 14:30\n"
)


class TestOCRProcessor:
    """Test suite for OCRProcessor."""

    def test_missing_tesseract(self, monkeypatch):
        def not_found():
            raise ocr.pytesseract.TesseractNotFoundError()

        monkeypatch.setattr(ocr.pytesseract, 'get_tesseract_version', not_found)

        with pytest.raises(OCRError):
            OCRProcessor()

    def test_recognize_averages_word_confidence(self, fake_engine):
        fake_engine(data={'text': ['스타벅스', ' ', '4,500', 'x'],
                             'conf': ['90', '-1', '70', '-1']})

        result = OCRProcessor()._recognize(Image.new('RGB', (60, 30), 'white'))

        assert result['text'] == "스타벅스\n합계 4,500"
        assert result['confidence'] == pytest.approx(0.8)

    def test_recognize_without_words(self, fake_engine):
        fake_engine(data={'text': ['', ' '], 'conf': ['-1', '-1']})

        result = OCRProcessor()._recognize(Image.new('RGB', (60, 30), 'white'))

        assert result['confidence'] == 0.0

    def test_run_pages_joins_text_and_averages(self, monkeypatch, fake_engine):
        fake_engine(text="page")
        pages = iter([
            {'text': ['a'], 'conf': ['90']},
            {'text': ['b'], 'conf': ['50']},
        ])
        monkeypatch.setattr(ocr.pytesseract, 'image_to_data', lambda *args, **kwargs: next(pages))
        image = Image.new('RGB', (60, 30), 'white')

        result = OCRProcessor()._run_pages(Path("scan.pdf"), [image, image], "abc")

        assert result['full_text'] == "page\npage"
        assert [page['page_number'] for page in result['pages']] == [1, 2]
        assert result['confidence'] == pytest.approx(0.7)
        assert result['file_hash'] == "abc"

    def test_image_result_is_cached(self, fake_engine, receipt_image, tmp_path):
        calls = fake_engine()
        image_path = receipt_image("receipt.png")
        cache_dir = tmp_path / "ocr_json"
        processor = OCRProcessor()

        first = processor.extract_text(image_path, cache_dir)
        second = processor.extract_text(image_path, cache_dir)

        assert first['full_text'] == "스타벅스\n합계 4,500"
        assert second == first
        assert calls['image_to_string'] == 1
        assert len(list(cache_dir.glob("receipt_*.json"))) == 1

    def test_unreadable_image(self, fake_engine, tmp_path):
        fake_engine()
        broken = tmp_path / "broken.png"
        broken.write_bytes(b"not an image")

        with pytest.raises(OCRError):
            OCRProcessor().extract_text(broken)

    def test_unsupported_file_type(self, fake_engine, tmp_path):
        fake_engine()
        notes = tmp_path / "notes.txt"
        notes.write_text("hello")

        with pytest.raises(OCRError, match="Unsupported"):
            OCRProcessor().extract_text(notes)


class TestEmbeddedText:
    """PDF text layer handling."""

    def setup_method(self):
        self.reads = 0

    @pytest.fixture(autouse=True)
    def engine(self, fake_engine):
        fake_engine()

    def make_processor(self, monkeypatch, text_layer):
        processor = OCRProcessor()

        def extract_embedded_text(pdf_path):
            self.reads += 1
            if isinstance(text_layer, Exception):
                raise text_layer
            return text_layer

        monkeypatch.setattr(processor, 'extract_embedded_text', extract_embedded_text)
        monkeypatch.setattr(processor, 'extract_text_from_pdf',
                            lambda pdf_path, output_dir=None: {'full_text': 'ocr', 'confidence': 0.5})
        return processor

    def write_pdf(self, tmp_path) -> Path:
        pdf_path = tmp_path / "invoice.pdf"
        pdf_path.write_bytes(b"%PDF-1.4 stub")
        return pdf_path

    def test_quality_gate(self, monkeypatch, tmp_path):
        pdf_path = self.write_pdf(tmp_path)

        assert self.make_processor(monkeypatch, GOOD_TEXT_LAYER).has_embedded_text(pdf_path)
        assert not self.make_processor(monkeypatch, "GoodMart\n합계").has_embedded_text(pdf_path)
        assert not self.make_processor(monkeypatch, "\x01\x02\x03\x04\n" * 20).has_embedded_text(pdf_path)
        assert not self.make_processor(monkeypatch, OCRError("broken")).has_embedded_text(pdf_path)

    def test_text_layer_read_once_and_cached(self, monkeypatch, tmp_path):
        pdf_path = self.write_pdf(tmp_path)
        cache_dir = tmp_path / "ocr_json"
        processor = self.make_processor(monkeypatch, GOOD_TEXT_LAYER)

        first = processor.extract_text(pdf_path, cache_dir)
        second = processor.extract_text(pdf_path, cache_dir)

        assert first['full_text'] == GOOD_TEXT_LAYER
        assert first['confidence'] == ocr.EMBEDDED_TEXT_CONFIDENCE
        assert second == first
        assert self.reads == 1

    def test_poor_text_layer_falls_back_to_ocr(self, monkeypatch, tmp_path):
        processor = self.make_processor(monkeypatch, "GoodMart")

        result = processor.extract_text(self.write_pdf(tmp_path))

        assert result['full_text'] == "ocr"

    def test_force_ocr_skips_text_layer(self, monkeypatch, tmp_path):
        processor = self.make_processor(monkeypatch, GOOD_TEXT_LAYER)

        result = processor.extract_text(self.write_pdf(tmp_path), force_ocr=True)

        assert result['full_text'] == "ocr"
        assert self.reads == 0
