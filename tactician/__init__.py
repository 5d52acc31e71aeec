"""
Evony Tactician - battle report analysis pipeline

Screenshots → OCR → prompt → AI providers (with fallback) → parsed analysis,
plus a streaming follow-up chat grounded in the analysis and battle history.

Usage:
    from config.settings import settings
    from tactician import create_orchestrator, ChatSession, RawImage, UserProfile

    orchestrator = create_orchestrator(settings)
    result = await orchestrator.analyze([RawImage.from_bytes(png)], profile)
"""

from .chat import ChatSession
from .errors import (
    AnalysisFailedError,
    ChatBusyError,
    EmptyExtractionError,
    ResponseParseError,
    ScrapeError,
    TacticianError,
    UntrustedSourceError,
    describe_failure,
)
from .history import BattleHistoryStore, BattleRecord, SqliteBattleHistory
from .models import (
    AnalysisResult,
    ChatMessage,
    ChatRole,
    RawImage,
    ReportType,
    ScrapedContent,
    Source,
    StrategyAnswer,
    TroopType,
    UserProfile,
)
from .orchestrator import AnalysisOrchestrator, create_orchestrator
from .parser import SectionResponseParser
from .scraper import StrategyScraper
from .strategy_search import StrategyAdvisor, create_strategy_advisor, search_strategy

__all__ = [
    # Pipeline
    'AnalysisOrchestrator',
    'create_orchestrator',
    'SectionResponseParser',
    'ChatSession',
    'StrategyScraper',
    'search_strategy',
    'StrategyAdvisor',
    'create_strategy_advisor',

    # History
    'BattleHistoryStore',
    'BattleRecord',
    'SqliteBattleHistory',

    # Models
    'AnalysisResult',
    'ChatMessage',
    'ChatRole',
    'RawImage',
    'ReportType',
    'ScrapedContent',
    'Source',
    'StrategyAnswer',
    'TroopType',
    'UserProfile',

    # Errors
    'TacticianError',
    'EmptyExtractionError',
    'AnalysisFailedError',
    'ResponseParseError',
    'ChatBusyError',
    'UntrustedSourceError',
    'ScrapeError',
    'describe_failure',
]

__version__ = "1.0.0"
