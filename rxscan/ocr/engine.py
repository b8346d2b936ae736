from __future__ import annotations

import io
from typing import Dict, Protocol

import pytesseract
from PIL import Image, ImageOps

from rxscan.config import OCR_TIMEOUT, TESSERACT_CMD
from rxscan.nlu.prescription import build_scan_result
from rxscan.nlu.schema import ScanResult

# Tesseract traineddata codes -> display names
SUPPORTED_LANGUAGES: Dict[str, str] = {
    "eng": "English",
    "hin": "Hindi",
    "mar": "Marathi",
    "ben": "Bengali",
    "tam": "Tamil",
    "tel": "Telugu",
    "pan": "Punjabi",
    "guj": "Gujarati",
    "urd": "Urdu",
}

OCR_FAILED_MESSAGE = "Failed to process prescription image"


class OcrError(RuntimeError):
    """The image could not be turned into text."""


class UnsupportedLanguageError(ValueError):
    pass


class OcrEngine(Protocol):
    def extract_text(self, image_bytes: bytes, language: str) -> str: ...


class TesseractEngine:
    def __init__(self, tesseract_cmd: str | None = TESSERACT_CMD, timeout: float = OCR_TIMEOUT):
        if tesseract_cmd:
            # pytesseract only reads the binary path from its module attribute
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd
        self.timeout = timeout

    def _load(self, image_bytes: bytes) -> Image.Image:
        img = Image.open(io.BytesIO(image_bytes))
        # phone photos carry rotation in EXIF
        img = ImageOps.exif_transpose(img)
        return img.convert("RGB")

    def extract_text(self, image_bytes: bytes, language: str) -> str:
        try:
            img = self._load(image_bytes)
            return pytesseract.image_to_string(img, lang=language, timeout=self.timeout)
        except (OSError, RuntimeError, ValueError, Image.DecompressionBombError) as e:
            # UnidentifiedImageError / TesseractNotFoundError are OSErrors,
            # TesseractError and timeouts are RuntimeErrors
            raise OcrError(OCR_FAILED_MESSAGE) from e


def ensure_language(language: str) -> str:
    if language not in SUPPORTED_LANGUAGES:
        raise UnsupportedLanguageError(f"unsupported OCR language: {language!r}")
    return language


def process_image(engine: OcrEngine, image_bytes: bytes, language: str) -> ScanResult:
    """OCR the image, then parse the text. The parser is skipped if OCR fails."""
    ensure_language(language)
    if not image_bytes:
        raise OcrError(OCR_FAILED_MESSAGE)
    text = engine.extract_text(image_bytes, language)
    return build_scan_result(text, language)
