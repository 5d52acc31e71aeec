"""
Centralized constants for Evony Tactician.
All magic numbers for OCR, AI calls, caching and scraping live here.
"""
from pathlib import Path

# Project root; relative data and log paths resolve against it
BASE_DIR = Path(__file__).resolve().parent.parent

# ===========================================
# TROOPS
# ===========================================
MAX_TIER = 17
MIN_TIER = 1

# ===========================================
# OCR
# ===========================================
OCR_LANGUAGE = 'eng'
OCR_TIMEOUT_SECONDS = 30              # per image
OCR_CONFIDENCE_THRESHOLD = 70         # percent, below this we only warn
OCR_PAGE_SEG_MODE = 6                 # uniform block of text (game UI)
OCR_WHITELIST_CHARS = (
    '0123456789'
    'ABCDEFGHIJKLMNOPQRSTUVWXYZ'
    'abcdefghijklmnopqrstuvwxyz'
    ':,.-/%()[]'
)

# ===========================================
# AI
# ===========================================
AI_MAX_TOKENS = 2000
AI_TEMPERATURE = 0.3                  # analysis, more deterministic
AI_TIMEOUT_SECONDS = 60.0
CHAT_TEMPERATURE = 0.7
CHAT_MAX_TOKENS = 1000
ADVISOR_MAX_TOKENS = 2500

# ===========================================
# CACHE
# ===========================================
CACHE_TTL_SECONDS = 86400             # 24 hours
CACHE_MAX_ENTRIES = 100

# ===========================================
# SCRAPER
# ===========================================
SCRAPE_MIN_INTERVAL_SECONDS = 2.0
SCRAPE_TIMEOUT_SECONDS = 15.0
SCRAPER_USER_AGENT = 'EvonyTacticianBot/1.0'
SCRAPE_MAX_CONTENT_CHARS = 5000
SCRAPE_MAX_TIPS = 15
TRUSTED_SOURCES = [
    'evonyguidewiki.com',
    'gamerempire.net',
    'mrguider.org',
    'pockettactics.com',
]

# ===========================================
# HISTORY
# ===========================================
HISTORY_DB_PATH = 'data/battle_history.db'
HISTORY_CONTEXT_LIMIT = 5
ANONYMIZED_DATA_MAX_CHARS = 1000

# ===========================================
# LOGGING
# ===========================================
LOG_LEVEL = 'INFO'
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_FILE = 'logs/tactician.log'
LOG_MAX_SIZE_MB = 10
LOG_BACKUP_COUNT = 5
LOGGED_PACKAGES = ('tactician', 'ai_providers', 'config')
