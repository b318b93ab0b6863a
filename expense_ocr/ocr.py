"""Tesseract OCR wrapper for Korean/English receipt images."""

import logging
import json
from pathlib import Path
from typing import Dict, List, Any, Optional
import hashlib
import cv2
import numpy as np
from PIL import Image

try:
    import pytesseract
    from pdf2image import convert_from_path
except ImportError:
    print("Required packages not installed. Run: pip install pytesseract pdf2image")
    raise

logger = logging.getLogger(__name__)

IMAGE_SUFFIXES = {'.jpg', '.jpeg', '.png', '.gif'}
EMBEDDED_TEXT_CONFIDENCE = 0.95


class OCRError(RuntimeError):
    """Raised when the OCR engine cannot read a receipt."""


class OCRProcessor:
    """Wrapper for Tesseract with receipt-oriented preprocessing."""

    def __init__(self, lang: str = "kor+eng", psm: int = 6, tesseract_cmd: Optional[str] = None):
        """
        Initialize OCR processor.

        Args:
            lang: Tesseract language packs to load
            psm: Page segmentation mode (6 = uniform block of text)
            tesseract_cmd: Path to the tesseract binary if not on PATH
        """
        self.lang = lang
        self.config = f"--oem 3 --psm {psm}"
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd
        self._check_engine()

    def _check_engine(self):
        """Fail early when the tesseract binary is missing."""
        try:
            version = pytesseract.get_tesseract_version()
            logger.info(f"Tesseract {version} initialized (lang={self.lang})")
        except pytesseract.TesseractNotFoundError as e:
            logger.error("Tesseract binary not found; install tesseract-ocr with the kor language pack")
            raise OCRError("Tesseract OCR is not installed") from e

    def get_file_hash(self, file_path: Path) -> str:
        """Generate hash for file to detect duplicates."""
        with open(file_path, 'rb') as f:
            return hashlib.md5(f.read()).hexdigest()

    @staticmethod
    def preprocess(image: Image.Image) -> np.ndarray:
        """Grayscale, denoise and binarise a receipt photo."""
        img_array = np.array(image.convert('RGB'))
        gray = cv2.cvtColor(img_array, cv2.COLOR_RGB2GRAY)
        denoised = cv2.fastNlMeansDenoising(gray, h=10)
        _, binary = cv2.threshold(denoised, 0, 255, cv2.THRESH_BINARY + cv2.THRESH_OTSU)
        return binary

    def _recognize(self, image: Image.Image) -> Dict[str, Any]:
        """Run Tesseract on one page and return its text and mean confidence."""
        processed = self.preprocess(image)
        text = pytesseract.image_to_string(processed, lang=self.lang, config=self.config)

        data = pytesseract.image_to_data(
            processed, lang=self.lang, config=self.config, output_type=pytesseract.Output.DICT
        )
        confidences = [float(c) for c, word in zip(data['conf'], data['text'])
                       if word.strip() and float(c) >= 0]
        confidence = sum(confidences) / len(confidences) / 100.0 if confidences else 0.0

        return {'text': text, 'confidence': confidence}

    def _load_cached(self, json_path: Optional[Path]) -> Optional[Dict[str, Any]]:
        if json_path and json_path.exists():
            logger.info(f"Loading cached OCR result {json_path.name}")
            with open(json_path, 'r', encoding='utf-8') as f:
                return json.load(f)
        return None

    def _save(self, result: Dict[str, Any], json_path: Optional[Path]):
        if json_path is None:
            return
        json_path.parent.mkdir(parents=True, exist_ok=True)
        with open(json_path, 'w', encoding='utf-8') as f:
            json.dump(result, f, ensure_ascii=False, indent=2)

    def _run_pages(self, file_path: Path, pages: List[Image.Image], file_hash: str) -> Dict[str, Any]:
        ocr_result = {
            'file_path': str(file_path),
            'file_hash': file_hash,
            'pages': [],
            'full_text': '',
            'confidence': 0.0
        }

        for page_idx, page_img in enumerate(pages):
            page = self._recognize(page_img)
            ocr_result['pages'].append({
                'page_number': page_idx + 1,
                'text': page['text'],
                'confidence': page['confidence'],
            })

        ocr_result['full_text'] = '\n'.join(page['text'] for page in ocr_result['pages'])
        if ocr_result['pages']:
            ocr_result['confidence'] = (
                sum(page['confidence'] for page in ocr_result['pages']) / len(ocr_result['pages'])
            )
        return ocr_result

    def extract_text_from_image(self, image_path: Path, output_dir: Optional[Path] = None) -> Dict[str, Any]:
        """
        Extract text from a receipt image (JPEG, PNG, GIF).

        Args:
            image_path: Path to image file
            output_dir: Directory to cache OCR JSON results, or None

        Returns:
            Dictionary with OCR results and metadata

        Raises:
            OCRError: If the image cannot be read or recognised
        """
        try:
            file_hash = self.get_file_hash(image_path)
            json_path = output_dir / f"{image_path.stem}_{file_hash}.json" if output_dir else None

            cached = self._load_cached(json_path)
            if cached:
                return cached

            logger.info(f"Processing {image_path.name} with Tesseract...")
            with Image.open(image_path) as image:
                image.seek(0)  # first frame of animated GIFs
                ocr_result = self._run_pages(image_path, [image.copy()], file_hash)

            self._save(ocr_result, json_path)
            logger.info(f"OCR completed for {image_path.name} with confidence: {ocr_result['confidence']:.2f}")
            return ocr_result

        except (OSError, pytesseract.TesseractError, cv2.error) as e:
            logger.error(f"OCR failed for {image_path}: {e}")
            raise OCRError(f"OCR failed for {image_path.name}: {e}") from e

    def extract_text_from_pdf(self, pdf_path: Path, output_dir: Optional[Path] = None) -> Dict[str, Any]:
        """
        Extract text from a scanned PDF receipt by rasterising its pages.

        Args:
            pdf_path: Path to PDF file
            output_dir: Directory to cache OCR JSON results, or None

        Returns:
            Dictionary with OCR results and metadata
        """
        try:
            file_hash = self.get_file_hash(pdf_path)
            json_path = output_dir / f"{pdf_path.stem}_{file_hash}.json" if output_dir else None

            cached = self._load_cached(json_path)
            if cached:
                return cached

            images = convert_from_path(str(pdf_path), dpi=200)
            logger.info(f"Converted PDF to {len(images)} image(s)")

            ocr_result = self._run_pages(pdf_path, images, file_hash)
            self._save(ocr_result, json_path)

            logger.info(f"OCR completed for {pdf_path.name} with confidence: {ocr_result['confidence']:.2f}")
            return ocr_result

        except Exception as e:
            logger.error(f"OCR failed for {pdf_path}: {e}")
            raise OCRError(f"OCR failed for {pdf_path.name}: {e}") from e

    def _text_layer_usable(self, text: str, pdf_path: Path) -> bool:
        """True if an embedded text layer is substantial and readable."""
        readable_lines = 0
        total_chars = 0
        for line in text.split('\n'):
            line = line.strip()
            if len(line) > 3:
                total_chars += len(line)
                # Control characters and replacement glyphs mean a broken text layer
                weird_chars = sum(1 for c in line if ord(c) < 32 or c == '�')
                if weird_chars / len(line) < 0.3:
                    readable_lines += 1

        quality_good = readable_lines >= 3 and total_chars > 50
        if quality_good:
            logger.info(f"{pdf_path.name} has good embedded text, extracting directly")
        else:
            logger.info(f"{pdf_path.name} has poor embedded text, will use OCR instead")
        return quality_good

    def has_embedded_text(self, pdf_path: Path) -> bool:
        """
        Check if PDF has good quality embedded text (to skip OCR if possible).

        Args:
            pdf_path: Path to PDF file

        Returns:
            True if PDF has substantial, readable embedded text
        """
        try:
            text = self.extract_embedded_text(pdf_path)
        except OCRError as e:
            logger.warning(f"Could not check embedded text for {pdf_path}: {e}")
            return False
        return self._text_layer_usable(text, pdf_path)

    def extract_embedded_text(self, pdf_path: Path) -> str:
        """Extract embedded text from PDF."""
        try:
            from pdfminer.high_level import extract_text
            return extract_text(str(pdf_path))
        except Exception as e:
            logger.error(f"Failed to extract embedded text from {pdf_path}: {e}")
            raise OCRError(f"Cannot read text layer of {pdf_path.name}: {e}") from e

    def _read_text_layer(self, pdf_path: Path, output_dir: Optional[Path]) -> Optional[Dict[str, Any]]:
        """Result built from the PDF text layer, or None when OCR is needed."""
        file_hash = self.get_file_hash(pdf_path)
        json_path = output_dir / f"{pdf_path.stem}_{file_hash}_text.json" if output_dir else None

        cached = self._load_cached(json_path)
        if cached:
            return cached

        try:
            text = self.extract_embedded_text(pdf_path)
        except OCRError as e:
            logger.warning(f"Could not check embedded text for {pdf_path}: {e}")
            return None
        if not self._text_layer_usable(text, pdf_path):
            return None

        result = {
            'file_path': str(pdf_path),
            'file_hash': file_hash,
            'pages': [],
            'full_text': text,
            'confidence': EMBEDDED_TEXT_CONFIDENCE,
        }
        self._save(result, json_path)
        return result

    def extract_text(self, receipt_path: Path, output_dir: Optional[Path] = None,
                     force_ocr: bool = False) -> Dict[str, Any]:
        """
        Extract text from any supported receipt file.

        PDFs with a usable text layer skip OCR unless force_ocr is set.
        """
        suffix = receipt_path.suffix.lower()
        if suffix == '.pdf':
            if not force_ocr:
                embedded = self._read_text_layer(receipt_path, output_dir)
                if embedded:
                    return embedded
            return self.extract_text_from_pdf(receipt_path, output_dir)
        if suffix in IMAGE_SUFFIXES:
            return self.extract_text_from_image(receipt_path, output_dir)
        raise OCRError(f"Unsupported receipt file type: {receipt_path.name}")
