import os
from dotenv import load_dotenv

load_dotenv()

APP_ENV = os.getenv("APP_ENV", "production").lower()
DEBUG_MODE = os.getenv("DEBUG_MODE", "false").lower() == "true"

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./meridian.db")
DATABASE_ECHO = os.getenv("DATABASE_ECHO", "false").lower() == "true"

QUEUE_MODE = os.getenv("QUEUE_MODE", "request")
VALID_QUEUE_MODES = ["redis", "request", "redislite"]
if QUEUE_MODE not in VALID_QUEUE_MODES:
    raise ValueError(
        f"Invalid QUEUE_MODE: {QUEUE_MODE}. Must be one of {VALID_QUEUE_MODES}"
    )

REDIS_HOST = os.getenv("REDIS_HOST", "localhost")
REDIS_PORT = int(os.getenv("REDIS_PORT", 6379))
REDISLITE_DB_PATH = os.getenv("REDISLITE_DB_PATH", "meridian_queue.db")

LOG_DRIVER: str = os.getenv("LOG_DRIVER", "console")
LOG_FILE: str = os.getenv("LOG_FILE", "meridian.log")
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

GITHUB_API_URL = os.getenv("GITHUB_API_URL", "https://api.github.com")
GITHUB_PER_PAGE = int(os.getenv("GITHUB_PER_PAGE", 100))
GITHUB_TIMEOUT = int(os.getenv("GITHUB_TIMEOUT", 30))
GITHUB_MAX_RETRIES = int(os.getenv("GITHUB_MAX_RETRIES", 3))
GITHUB_WEBHOOK_SECRET = os.getenv("GITHUB_WEBHOOK_SECRET")
# Issue comments cost one extra request per pull request.
SYNC_COMMENTS = os.getenv("SYNC_COMMENTS", "false").lower() == "true"

CRON_SECRET = os.getenv("CRON_SECRET")
JWT_SECRET = os.getenv("JWT_SECRET")
JWT_EXPIRY_HOURS = int(os.getenv("JWT_EXPIRY_HOURS", 24 * 30))
ENCRYPTION_KEY = os.getenv("ENCRYPTION_KEY")

# Empty disables the strategic insight summarizer.
LLM_MODEL = os.getenv("LLM_MODEL", "")

INSIGHT_WINDOW_DAYS = int(os.getenv("INSIGHT_WINDOW_DAYS", 30))
INSIGHT_CACHE_MINUTES = int(os.getenv("INSIGHT_CACHE_MINUTES", 30))
STALE_SYNC_JOB_MINUTES = int(os.getenv("STALE_SYNC_JOB_MINUTES", 30))
