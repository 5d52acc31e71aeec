#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
PaddleOCR Engine - Local OCR Implementation
Implements OcrEngine using PaddleOCR for free, offline OCR.
"""

import io
import logging
from typing import Tuple

from PIL import Image
import numpy as np

from .base import OcrEngineUnavailableError

logger = logging.getLogger(__name__)


def _is_garbage_text(text: str, special_char_threshold: float = 0.5) -> bool:
    """
    Check if text is likely garbage from OCR reading decorations.

    Game UIs are full of icons and borders; recognized strings made mostly
    of special characters come from those.

    Examples:
        >>> _is_garbage_text("#$%&#'!('!)")
        True
        >>> _is_garbage_text("Ground T12")
        False
    """
    if not text or len(text.strip()) < 2:
        return True

    alphanumeric = sum(1 for c in text if c.isalnum() or c.isspace())
    return alphanumeric / len(text) < (1 - special_char_threshold)


class PaddleEngine:
    """
    PaddleOCR-based engine for local, offline text recognition.

    Model loading is slow (first run downloads ~100-200MB), which is why the
    adapter loads it once and reuses it.

    Installation:
        pip install -e .[ocr]
    """

    # PaddleOCR.predict is not documented as thread-safe
    thread_safe = False

    def __init__(self, lang: str = 'en', confidence_threshold: float = 0.5):
        self.lang = lang
        self.confidence_threshold = confidence_threshold
        self.ocr = None

    def load(self) -> None:
        try:
            from paddleocr import PaddleOCR
        except ImportError as e:
            raise OcrEngineUnavailableError(
                "PaddleOCR is not installed. Install it with:\n"
                "  pip install -e .[ocr]"
            ) from e

        try:
            logger.info(f"Initializing PaddleOCR with lang='{self.lang}'")
            self.ocr = PaddleOCR(lang=self.lang)
            logger.info("PaddleOCR initialized successfully")
        except Exception as e:
            raise OcrEngineUnavailableError(f"Failed to initialize PaddleOCR: {str(e)}") from e

    def recognize(self, image_bytes: bytes) -> Tuple[str, float]:
        if self.ocr is None:
            raise OcrEngineUnavailableError("PaddleOCR engine is not loaded")

        try:
            image = Image.open(io.BytesIO(image_bytes))
            if image.mode != 'RGB':
                image = image.convert('RGB')
            result = self.ocr.predict(np.array(image))
        except Exception as e:
            raise OcrEngineUnavailableError(f"PaddleOCR failed: {str(e)}") from e

        if not result:
            return "", 0.0

        ocr_result = result[0]
        rec_texts = ocr_result.get('rec_texts', [])
        rec_scores = ocr_result.get('rec_scores', [])

        lines = []
        scores = []
        for i, text in enumerate(rec_texts):
            score = float(rec_scores[i]) if i < len(rec_scores) else 1.0
            if score < self.confidence_threshold:
                logger.debug(f"Skipping low-confidence OCR: {text[:30]}... (conf={score:.2f})")
                continue
            if _is_garbage_text(text):
                continue
            lines.append(text)
            scores.append(score)

        confidence = 100.0 * sum(scores) / len(scores) if scores else 0.0
        return "\n".join(lines), confidence

    def close(self) -> None:
        self.ocr = None
