"""
OCR package - screenshot text recognition

Engines are blocking and pluggable; OcrAdapter drives them from asyncio.
"""

from .adapter import OcrAdapter, create_ocr_adapter
from .base import (
    OcrEmptyResultError,
    OcrEngine,
    OcrEngineUnavailableError,
    OcrError,
    OcrTimeoutError,
)

__all__ = [
    'OcrAdapter',
    'create_ocr_adapter',
    'OcrEngine',
    'OcrError',
    'OcrEngineUnavailableError',
    'OcrTimeoutError',
    'OcrEmptyResultError',
]
