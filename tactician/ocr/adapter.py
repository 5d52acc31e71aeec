"""
OCR Adapter - async lifecycle around a blocking OcrEngine

The engine is expensive to start, so the adapter owns exactly one engine
handle. Concurrent initialize() callers await the same in-flight task.
"""

import asyncio
import logging
import threading
from typing import Callable, Optional

from config.constants import OCR_CONFIDENCE_THRESHOLD, OCR_TIMEOUT_SECONDS

from ..models import OcrResult, RawImage
from .base import (
    OcrEmptyResultError,
    OcrEngine,
    OcrEngineUnavailableError,
    OcrError,
    OcrTimeoutError,
)

logger = logging.getLogger(__name__)


class OcrAdapter:
    """
    Converts one image into recognized text plus a confidence score.

    Usage:
        adapter = OcrAdapter(TesseractEngine)
        await adapter.initialize()
        result = await adapter.recognize_text(image)
        await adapter.terminate()

    recognize_text() initializes on first use, so the explicit
    initialize() call is optional.
    """

    def __init__(
        self,
        engine_factory: Callable[[], OcrEngine],
        timeout: float = OCR_TIMEOUT_SECONDS,
        confidence_threshold: float = OCR_CONFIDENCE_THRESHOLD,
    ):
        self.engine_factory = engine_factory
        self.timeout = timeout
        self.confidence_threshold = confidence_threshold

        self._engine: Optional[OcrEngine] = None
        self._init_task: Optional[asyncio.Task] = None
        self._engine_lock = threading.Lock()

    @property
    def is_initialized(self) -> bool:
        return self._engine is not None

    async def initialize(self) -> None:
        """Start the engine once; safe to call from many tasks at the same time."""
        if self._engine is not None:
            return

        if self._init_task is None:
            self._init_task = asyncio.ensure_future(self._start_engine())

        task = self._init_task
        try:
            # shield: one caller being cancelled must not abort the shared startup
            await asyncio.shield(task)
        except BaseException:
            # Failed startups can be retried by the next caller
            if task.done() and self._init_task is task:
                self._init_task = None
            raise

    async def _start_engine(self) -> None:
        engine = self.engine_factory()
        try:
            await asyncio.to_thread(engine.load)
        except OcrError:
            raise
        except Exception as e:
            raise OcrEngineUnavailableError(f"OCR engine failed to start: {e}") from e
        self._engine = engine
        logger.info(f"OCR engine ready: {type(engine).__name__}")

    async def recognize_text(self, image: RawImage) -> OcrResult:
        """
        Recognize text in one image.

        Raises:
            OcrEngineUnavailableError: Engine could not be started or failed
            OcrTimeoutError: Recognition exceeded the timeout
            OcrEmptyResultError: Recognition produced no text
        """
        await self.initialize()
        engine = self._engine
        if engine is None:
            raise OcrEngineUnavailableError("OCR engine was terminated", image_index=image.index)

        try:
            text, confidence = await asyncio.wait_for(
                asyncio.to_thread(self._recognize_blocking, engine, image.data),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            raise OcrTimeoutError(
                f"OCR timed out after {self.timeout}s on image {image.index + 1}",
                image_index=image.index,
            ) from e
        except OcrError as e:
            if e.image_index is None:
                e.image_index = image.index
            raise
        except Exception as e:
            raise OcrEngineUnavailableError(
                f"OCR engine error on image {image.index + 1}: {e}",
                image_index=image.index,
            ) from e

        text = (text or "").strip()
        if not text:
            raise OcrEmptyResultError(
                f"No text recognized in image {image.index + 1}",
                image_index=image.index,
            )

        if confidence < self.confidence_threshold:
            logger.warning(
                f"Low OCR confidence on image {image.index + 1}: {confidence:.1f} "
                f"(threshold {self.confidence_threshold})"
            )

        return OcrResult(text=text, confidence=confidence)

    def _recognize_blocking(self, engine: OcrEngine, image_bytes: bytes):
        if getattr(engine, "thread_safe", False):
            return engine.recognize(image_bytes)
        # One recognize() at a time; the wait counts against the timeout
        with self._engine_lock:
            return engine.recognize(image_bytes)

    async def terminate(self) -> None:
        """Release the engine. No-op if it was never initialized."""
        if self._init_task is not None and not self._init_task.done():
            try:
                await self._init_task
            except Exception:
                logger.debug("OCR engine startup failed before terminate")

        engine, self._engine = self._engine, None
        self._init_task = None
        if engine is None:
            return

        await asyncio.to_thread(engine.close)
        logger.info("OCR engine terminated")


def create_ocr_adapter(settings) -> OcrAdapter:
    """Build an adapter for settings.ocr_backend ('tesseract' or 'paddle')."""
    backend = (settings.ocr_backend or "tesseract").lower()

    if backend == "tesseract":
        from .tesseract_client import TesseractEngine

        def factory():
            return TesseractEngine(lang=settings.ocr_lang, tesseract_cmd=settings.tesseract_cmd)

    elif backend == "paddle":
        from .paddle_client import PaddleEngine

        # Paddle language codes differ from Tesseract's ('en' vs 'eng')
        lang = "en" if settings.ocr_lang == "eng" else settings.ocr_lang

        def factory():
            return PaddleEngine(lang=lang)

    else:
        raise ValueError(f"Unknown OCR backend: {settings.ocr_backend}")

    return OcrAdapter(factory, timeout=settings.ocr_timeout_seconds)
