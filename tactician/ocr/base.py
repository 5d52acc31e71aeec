"""
OCR Engine Base Interface

Defines the blocking engine protocol the async OcrAdapter drives, and the
OCR error taxonomy.
"""

from typing import Protocol, Tuple


class OcrEngine(Protocol):
    """
    Abstract OCR engine interface

    All methods block; the adapter runs them in a worker thread. Engines whose
    recognize() may run on several threads at once set thread_safe = True;
    the adapter serializes calls to any other engine.

    Example implementations:
    - Tesseract OCR
    - PaddleOCR
    """

    thread_safe: bool = False

    def load(self) -> None:
        """
        Acquire the recognition engine (models, binaries, workers).

        Raises:
            OcrEngineUnavailableError: If the engine cannot be started
        """
        ...

    def recognize(self, image_bytes: bytes) -> Tuple[str, float]:
        """
        Recognize text in one encoded image

        Args:
            image_bytes: Image data (PNG, JPEG, etc.)

        Returns:
            (text, confidence) with confidence in 0-100
        """
        ...

    def close(self) -> None:
        """Release engine resources"""
        ...


class OcrError(Exception):
    """Base exception for OCR-related errors"""

    def __init__(self, message: str, image_index: int = None):
        self.image_index = image_index
        super().__init__(message)


class OcrEngineUnavailableError(OcrError):
    """OCR engine could not be started or reached"""
    pass


class OcrTimeoutError(OcrError):
    """OCR recognition did not finish in time"""
    pass


class OcrEmptyResultError(OcrError):
    """OCR ran but found no text"""
    pass
