"""
Strategy Search - free-form strategy questions, optionally grounded in a guide page.
"""

import logging
from typing import List, Optional, Sequence

import httpx

from ai_providers import BaseAIProvider, ProviderError, create_providers
from config.constants import ADVISOR_MAX_TOKENS, CHAT_TEMPERATURE, TRUSTED_SOURCES

from .cache import TextCache
from .errors import AnalysisFailedError, ScrapeError, UntrustedSourceError
from .models import StrategyAnswer
from .prompts import STRATEGY_SYSTEM_PROMPT, build_strategy_prompt
from .scraper import StrategyScraper, is_trusted_url

logger = logging.getLogger(__name__)


async def search_strategy(
    query: str,
    providers: Sequence[BaseAIProvider],
    scraper: Optional[StrategyScraper] = None,
    source_url: Optional[str] = None,
    timeout: Optional[float] = None,
) -> StrategyAnswer:
    """
    Answer a strategy question with the advisor providers.

    Args:
        query: The player's question
        providers: Advisor providers, tried in order
        scraper: Used to fetch source_url as reference material
        source_url: Optional guide page on a trusted site

    Raises:
        UntrustedSourceError: source_url is not on the allowlist
        AnalysisFailedError: Every provider failed
    """
    if not query or not query.strip():
        raise ValueError("Query is empty")

    scraped = None
    if source_url:
        trusted = scraper.trusted_sources if scraper is not None else TRUSTED_SOURCES
        if not is_trusted_url(source_url, trusted):
            raise UntrustedSourceError(f"Untrusted source: {source_url}")

        if scraper is None:
            logger.warning("No scraper configured; answering without reference material")
        else:
            try:
                scraped = await scraper.fetch(source_url)
            except ScrapeError as e:
                logger.warning(f"Scraping failed, answering without reference: {e}")

    prompt = build_strategy_prompt(query, scraped)

    errors: List[ProviderError] = []
    for provider in providers:
        try:
            response = await provider.generate(
                prompt,
                system_prompt=STRATEGY_SYSTEM_PROMPT,
                timeout=timeout,
                temperature=CHAT_TEMPERATURE,
                max_tokens=ADVISOR_MAX_TOKENS,
            )
        except ProviderError as e:
            logger.warning(f"Advisor {provider.name} failed ({e.kind.value}): {e}")
            errors.append(e)
            continue
        return StrategyAnswer(response=response.content, source=scraped)

    raise AnalysisFailedError(errors)


class StrategyAdvisor:
    """
    Advisor providers plus the scraper that feeds them guide pages.

    Usage:
        advisor = create_strategy_advisor(settings)
        answer = await advisor.ask("best counter for Mounted?", source_url=url)
        await advisor.aclose()
    """

    def __init__(
        self,
        providers: Sequence[BaseAIProvider],
        scraper: Optional[StrategyScraper] = None,
        timeout: Optional[float] = None,
    ):
        self.providers = list(providers)
        self.scraper = scraper
        self.timeout = timeout

    async def ask(self, query: str, source_url: Optional[str] = None) -> StrategyAnswer:
        return await search_strategy(
            query,
            self.providers,
            scraper=self.scraper,
            source_url=source_url,
            timeout=self.timeout,
        )

    async def aclose(self) -> None:
        if self.scraper is not None:
            await self.scraper.aclose()


def create_strategy_advisor(settings, client: Optional[httpx.AsyncClient] = None) -> StrategyAdvisor:
    """Wire advisor providers, cache and scraper from Settings."""
    scraper = StrategyScraper(
        TextCache(settings.cache_max_entries, default_ttl=settings.cache_ttl_seconds),
        client=client,
        trusted_sources=settings.trusted_sources,
        min_interval=settings.scrape_min_interval,
        cache_ttl=settings.cache_ttl_seconds,
    )
    return StrategyAdvisor(
        providers=create_providers(settings.advisor_provider_order, settings),
        scraper=scraper,
        timeout=settings.ai_timeout_seconds,
    )
