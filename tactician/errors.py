"""
Pipeline-level exceptions and their user-facing messages.

OCR errors live in tactician.ocr.base and provider errors in
ai_providers.base; this module covers what the orchestrator, chat and
scraper raise to their callers.
"""

from typing import List, Optional

from ai_providers.base import ProviderError, ProviderErrorKind


class TacticianError(Exception):
    """Base exception for the analysis pipeline"""

    user_message = "Something went wrong. Please try again."


class EmptyExtractionError(TacticianError):
    """OCR produced no usable text across all images"""

    user_message = (
        "No text could be read from your images. "
        "Please retake the screenshots with the battle report fully visible."
    )


class AnalysisFailedError(TacticianError):
    """Every configured provider failed for one analyze() call"""

    def __init__(self, errors: List[ProviderError]):
        self.errors = list(errors)
        last = self.errors[-1] if self.errors else None
        self.last_error: Optional[ProviderError] = last
        tried = ", ".join(e.provider or "unknown" for e in self.errors) or "none"
        detail = str(last) if last else "no AI provider configured"
        super().__init__(f"All AI providers failed (tried: {tried}). Last error: {detail}")

    @property
    def user_message(self) -> str:
        kinds = {e.kind for e in self.errors}
        if ProviderErrorKind.QUOTA_EXCEEDED in kinds:
            return (
                "The AI could not be reached: usage quota exceeded. "
                "Please wait a few minutes and try again."
            )
        if kinds and kinds <= {ProviderErrorKind.AUTH_FAILURE, ProviderErrorKind.NOT_CONFIGURED}:
            return (
                "The AI could not be reached: the API key is missing or invalid. "
                "Please check the provider configuration."
            )
        return "The AI could not be reached. Please try again in a moment."


class ResponseParseError(TacticianError):
    """The AI reply contained nothing usable"""

    user_message = "The AI's reply could not be understood. Please run the analysis again."


class ChatBusyError(TacticianError):
    """A chat message was sent while the previous reply is still streaming"""

    user_message = "Please wait for the current reply to finish, or cancel it first."


class UntrustedSourceError(TacticianError):
    """A strategy source URL is not on the allowlist"""

    user_message = "That website is not a trusted strategy source."


class ScrapeError(TacticianError):
    """A strategy page could not be fetched"""

    user_message = "The strategy page could not be loaded."


def describe_failure(error: Exception) -> str:
    """Human-readable message for any error the pipeline surfaces."""
    if isinstance(error, TacticianError):
        return error.user_message
    if isinstance(error, ProviderError):
        return AnalysisFailedError([error]).user_message
    return TacticianError.user_message
