"""
Analysis Orchestrator

Pipeline:
    Images → OCR (parallel) → Combined text → Prompt → Providers (in order) → Parser → Result → History

Per-image OCR failures become placeholders; provider failures drive the
fallback; persistence failures are logged and dropped.
"""

import asyncio
import logging
import time
from typing import List, Optional, Sequence

from ai_providers import BaseAIProvider, ImagePart, ProviderError, create_providers

from .errors import AnalysisFailedError, EmptyExtractionError
from .history import BattleHistoryStore
from .models import AnalysisResult, RawImage, UserProfile
from .ocr import OcrAdapter, OcrError, create_ocr_adapter
from .parser import ResponseParser, SectionResponseParser
from .prompts import ANALYST_ROLE, build_analysis_prompt, combine_report_texts

logger = logging.getLogger(__name__)


class AnalysisOrchestrator:
    """
    Top-level coordinator for one battle report analysis.

    Usage:
        orchestrator = AnalysisOrchestrator(ocr, providers)
        result = await orchestrator.analyze(images, profile)

    Providers are tried in list order, once each. A vision-capable provider
    also receives the screenshots so it can read them directly.
    """

    def __init__(
        self,
        ocr: OcrAdapter,
        providers: Sequence[BaseAIProvider],
        parser: Optional[ResponseParser] = None,
        history: Optional[BattleHistoryStore] = None,
        ai_timeout: Optional[float] = None,
        send_images_to_vision: bool = True,
    ):
        self.ocr = ocr
        self.providers = list(providers)
        self.parser = parser or SectionResponseParser()
        self.history = history
        self.ai_timeout = ai_timeout
        self.send_images_to_vision = send_images_to_vision

    async def analyze(
        self,
        images: Sequence[RawImage],
        profile: UserProfile,
        user_id: Optional[str] = None,
        share: bool = True,
        ocr_texts: Optional[Sequence[Optional[str]]] = None,
    ) -> AnalysisResult:
        """
        Analyze battle report screenshots.

        Args:
            images: Screenshots in upload order
            profile: Player profile
            user_id: Opaque identity used as the persistence key
            share: Whether the public part of the analysis joins community history
            ocr_texts: Already-extracted text per image (None for a failed image); skips OCR

        Raises:
            EmptyExtractionError: No text was read from any image
            AnalysisFailedError: Every provider failed
            ResponseParseError: The reply was empty
        """
        start = time.time()

        if ocr_texts is None:
            texts = await self._extract_all(images)
        else:
            texts = list(ocr_texts)

        raw_texts = [t for t in texts if t is not None and t.strip()]
        if not raw_texts:
            raise EmptyExtractionError(f"No text extracted from {len(texts)} image(s)")

        combined = combine_report_texts(texts)
        prompt = build_analysis_prompt(combined, profile)
        logger.info(
            f"Extracted text from {len(raw_texts)}/{len(texts)} image(s) "
            f"({len(combined)} chars)"
        )

        response = await self._complete_with_fallback(prompt, images)
        result = self.parser.parse(response.content, combined)

        if self.history is not None and user_id:
            await self._save(user_id, result, raw_texts, profile, share)

        logger.info(
            f"Analysis complete: {result.report_type.value} via {response.provider.value} "
            f"in {time.time() - start:.1f}s"
        )
        return result

    async def _extract_all(self, images: Sequence[RawImage]) -> List[Optional[str]]:
        # gather preserves input order whatever the completion order
        return list(await asyncio.gather(*(self._extract_one(img) for img in images)))

    async def _extract_one(self, image: RawImage) -> Optional[str]:
        try:
            result = await self.ocr.recognize_text(image)
        except OcrError as e:
            logger.warning(f"OCR failed for image {image.index + 1}: {e}")
            return None
        return result.text

    async def _complete_with_fallback(self, prompt: str, images: Sequence[RawImage]):
        parts = None
        if self.send_images_to_vision and images:
            parts = [ImagePart(data=img.data, mime_type=img.mime_type) for img in images]

        errors: List[ProviderError] = []
        for provider in self.providers:
            try:
                return await provider.generate(
                    prompt,
                    system_prompt=ANALYST_ROLE,
                    images=parts,
                    timeout=self.ai_timeout,
                )
            except ProviderError as e:
                logger.warning(f"Provider {provider.name} failed ({e.kind.value}): {e}")
                errors.append(e)

        raise AnalysisFailedError(errors)

    async def _save(self, user_id, result, raw_texts, profile, share) -> None:
        try:
            await self.history.save_analysis(user_id, result, raw_texts, profile, share)
        except Exception as e:
            logger.error(f"Failed to save analysis to history: {e}")

    async def aclose(self) -> None:
        """Release the OCR engine."""
        await self.ocr.terminate()


def create_orchestrator(settings, history: Optional[BattleHistoryStore] = None) -> AnalysisOrchestrator:
    """Wire OCR, providers and history from Settings."""
    logger.info(f"Creating orchestrator: {settings.describe()}")
    return AnalysisOrchestrator(
        ocr=create_ocr_adapter(settings),
        providers=create_providers(settings.provider_order, settings),
        history=history if settings.history_enabled else None,
        ai_timeout=settings.ai_timeout_seconds,
        send_images_to_vision=settings.send_images_to_vision,
    )
