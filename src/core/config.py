"""
Configuration constants and environment setup.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


class ConfigError(RuntimeError):
    """Raised when required configuration is missing."""


# =============================================================================
# PATHS
# =============================================================================

PROJECT_ROOT = Path(__file__).parent.parent.parent

# =============================================================================
# SERVER CONFIGURATION
# =============================================================================

APP_ENV = os.environ.get("APP_ENV", "development").lower()
IS_PRODUCTION = APP_ENV == "production"
IS_DEVELOPMENT = APP_ENV == "development"
IS_TEST = APP_ENV == "test"

API_HOST = os.environ.get("API_HOST", "0.0.0.0")
API_PORT = int(os.environ.get("API_PORT", "3000"))
API_VERSION = "1.0.0"

FRONTEND_PORT = int(os.environ.get("FRONTEND_PORT", "3001"))
PRODUCTION_ORIGINS = ["https://ai-voice-agent-v0-1.vercel.app"]


def _default_cors_origins() -> list[str]:
    if IS_PRODUCTION:
        return list(PRODUCTION_ORIGINS)
    return [f"http://localhost:{FRONTEND_PORT}"]


CORS_ORIGINS = [
    origin.strip()
    for origin in os.environ.get("CORS_ORIGINS", "").split(",")
    if origin.strip()
] or _default_cors_origins()

# =============================================================================
# AUTH & RATE LIMITING
# =============================================================================

API_KEYS = [key.strip() for key in os.environ.get("API_KEYS", "").split(",") if key.strip()]

RATE_LIMIT_MAX = int(os.environ.get("RATE_LIMIT_MAX", "5"))
RATE_LIMIT_WINDOW_SECONDS = int(os.environ.get("RATE_LIMIT_WINDOW_SECONDS", "60"))
RATE_LIMIT_ENABLED = not IS_TEST

# =============================================================================
# LOGGING
# =============================================================================

LOG_LEVEL = os.environ.get("LOG_LEVEL", "DEBUG" if IS_DEVELOPMENT else "INFO").upper()
LOG_FORMAT = os.environ.get("LOG_FORMAT", "json").lower()  # "json" or "text"

# =============================================================================
# EVENT STORE
# =============================================================================

EVENT_KEY_STRATEGY = os.environ.get("EVENT_KEY_STRATEGY", "name").lower()  # id, name, user

# =============================================================================
# MS GRAPH CALENDAR (from environment)
# =============================================================================

GRAPH_TENANT_ID = os.environ.get("MICROSOFT_GRAPH_TENANT_ID", "")
GRAPH_APP_ID = os.environ.get("MICROSOFT_GRAPH_APP_ID", "")
GRAPH_CLIENT_SECRET = os.environ.get("MICROSOFT_GRAPH_CLIENT_SECRET", "")

CALENDAR_USER_ID = os.environ.get("CALENDAR_USER_ID", "")  # mailbox owning the calendar
CALENDAR_ID = os.environ.get("CALENDAR_ID", "")  # empty: the user's default calendar
CALENDAR_TIMEZONE = os.environ.get("CALENDAR_TIMEZONE", "America/New_York")
RESERVATION_DURATION_MINUTES = int(os.environ.get("RESERVATION_DURATION_MINUTES", "60"))
REMINDER_MINUTES = int(os.environ.get("REMINDER_MINUTES", "30"))

# =============================================================================
# OPENAI REALTIME
# =============================================================================

OPENAI_API_KEY = os.environ.get("OPENAI_API_KEY", "")
OPENAI_BASE_URL = os.environ.get("OPENAI_BASE_URL", "https://api.openai.com/v1").rstrip("/")
REALTIME_MODEL = os.environ.get("REALTIME_MODEL", "gpt-4o-realtime-preview-2024-12-17")
REALTIME_VOICE = os.environ.get("REALTIME_VOICE", "ash")
REALTIME_INSTRUCTIONS = os.environ.get("REALTIME_INSTRUCTIONS", "")  # empty: built-in prompt

# =============================================================================
# WEATHER
# =============================================================================

WEATHER_API_KEY = os.environ.get("WEATHER_API_KEY", "")
WEATHER_BASE_URL = os.environ.get("WEATHER_BASE_URL", "http://api.weatherapi.com/v1").rstrip("/")

# =============================================================================
# AWS S3 ARCHIVAL
# =============================================================================

AWS_REGION = os.environ.get("AWS_REGION", "us-east-1")
AWS_BUCKET_NAME = os.environ.get("AWS_BUCKET_NAME", "")
AWS_ACCESS_KEY_ID = os.environ.get("AWS_ACCESS_KEY_ID", "")
AWS_SECRET_ACCESS_KEY = os.environ.get("AWS_SECRET_ACCESS_KEY", "")
TRANSCRIPT_PREFIX = "transcripts/"

# =============================================================================
# OUTBOUND HTTP
# =============================================================================

PROVIDER_TIMEOUT_SECONDS = float(os.environ.get("PROVIDER_TIMEOUT_SECONDS", "30"))

# =============================================================================
# VALIDATION
# =============================================================================

REQUIRED_ENV_VARS = ("API_KEYS", "OPENAI_API_KEY")


def check_required_env() -> None:
    """
    Fail fast when required environment variables are absent.

    Raises:
        ConfigError: listing every missing variable
    """
    missing = [name for name in REQUIRED_ENV_VARS if not os.environ.get(name)]
    if missing:
        raise ConfigError(f"Missing required environment variables: {', '.join(missing)}")
