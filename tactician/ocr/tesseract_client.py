#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Tesseract Engine - Local OCR tuned for game UI screenshots
Implements OcrEngine using pytesseract.
"""

import io
import logging
from typing import Optional, Tuple

from PIL import Image, UnidentifiedImageError
import pytesseract

from config.constants import (
    OCR_LANGUAGE,
    OCR_PAGE_SEG_MODE,
    OCR_WHITELIST_CHARS,
)

from .base import OcrEngineUnavailableError

logger = logging.getLogger(__name__)


class TesseractEngine:
    """
    Tesseract-based engine for battle report screenshots.

    Tuned for numbers and short labels: uniform text block segmentation,
    a character whitelist and preserved interword spacing.

    Installation:
        apt install tesseract-ocr && pip install pytesseract

    Usage:
        engine = TesseractEngine()
        engine.load()
        text, confidence = engine.recognize(image_bytes)
    """

    # pytesseract runs a separate tesseract process per call
    thread_safe = True

    def __init__(
        self,
        lang: str = OCR_LANGUAGE,
        page_seg_mode: int = OCR_PAGE_SEG_MODE,
        whitelist: str = OCR_WHITELIST_CHARS,
        tesseract_cmd: Optional[str] = None,
    ):
        self.lang = lang
        self.page_seg_mode = page_seg_mode
        self.whitelist = whitelist
        self.tesseract_cmd = tesseract_cmd
        self._version = None

    @property
    def config(self) -> str:
        return (
            f"--psm {self.page_seg_mode} "
            f"-c tessedit_char_whitelist={self.whitelist} "
            f"-c preserve_interword_spaces=1"
        )

    def load(self) -> None:
        if self.tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = self.tesseract_cmd
        try:
            self._version = pytesseract.get_tesseract_version()
        except (pytesseract.TesseractNotFoundError, OSError) as e:
            raise OcrEngineUnavailableError(f"Tesseract is not available: {e}") from e
        logger.info(f"Tesseract {self._version} ready (lang='{self.lang}')")

    def recognize(self, image_bytes: bytes) -> Tuple[str, float]:
        try:
            image = Image.open(io.BytesIO(image_bytes))
            image.load()
        except (UnidentifiedImageError, OSError) as e:
            raise OcrEngineUnavailableError(f"Tesseract cannot decode image: {e}") from e

        # Grayscale reads game UI text more reliably than colour
        if image.mode != 'L':
            image = image.convert('L')

        try:
            data = pytesseract.image_to_data(
                image,
                lang=self.lang,
                config=self.config,
                output_type=pytesseract.Output.DICT,
            )
        except pytesseract.TesseractError as e:
            raise OcrEngineUnavailableError(f"Tesseract failed: {e}") from e

        return _assemble_lines(data)

    def close(self) -> None:
        self._version = None


def _assemble_lines(data: dict) -> Tuple[str, float]:
    """Rebuild text line by line from image_to_data output."""
    lines = {}
    confidences = []

    for i, word in enumerate(data.get("text", [])):
        word = (word or "").strip()
        if not word:
            continue
        key = (data["block_num"][i], data["par_num"][i], data["line_num"][i])
        lines.setdefault(key, []).append(word)

        conf = float(data["conf"][i])
        if conf >= 0:
            confidences.append(conf)

    text = "\n".join(" ".join(words) for _, words in sorted(lines.items()))
    confidence = sum(confidences) / len(confidences) if confidences else 0.0
    return text, confidence
