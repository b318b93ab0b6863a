"""Shared fixtures: a stubbed Tesseract engine and blank receipt images."""

from pathlib import Path

import pytest
from PIL import Image

from expense_ocr import ocr


@pytest.fixture
def fake_engine(monkeypatch):
    """Install stub pytesseract calls; returns a counter of recognitions."""
    calls = {'image_to_string': 0}

    def install(text="스타벅스\n합계 4,500", data=None):
        data = data or {'text': ['스타벅스', '', '4,500'], 'conf': ['90', '-1', '70']}

        def image_to_string(image, lang=None, config=None):
            calls['image_to_string'] += 1
            return text

        monkeypatch.setattr(ocr.pytesseract, 'get_tesseract_version', lambda: '5.3.0')
        monkeypatch.setattr(ocr.pytesseract, 'image_to_string', image_to_string)
        monkeypatch.setattr(ocr.pytesseract, 'image_to_data', lambda *args, **kwargs: data)
        return calls

    return install


@pytest.fixture
def receipt_image(tmp_path):
    """Write a small blank PNG and return its path."""
    def write(name="receipt.png") -> Path:
        path = tmp_path / name
        Image.new('RGB', (60, 30), 'white').save(path)
        return path

    return write
