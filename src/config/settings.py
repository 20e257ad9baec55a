import os
from dotenv import load_dotenv
from logger import logger
load_dotenv()

__all__ = [
    "LLM_PROVIDER", "LLM_MODEL",
    "GEMINI_API_KEY", "GEMINI_BASE_URL", "OPENAI_API_KEY", "OPENAI_BASE_URL",
    "DB_PATH", "LOG_FILE", "LOG_LEVEL",
    "REMINDER_CHECK_INTERVAL_SECONDS", "REMINDER_SNOOZE_SECONDS",
    "ENABLE_AUDIO", "AUDIO_SAMPLE_RATE", "ENABLE_OS_NOTIFICATIONS",
    "ADMIN_USERNAME", "ADMIN_PASSWORD",
    "HTTP_HOST", "HTTP_PORT", "OPS_AUTH_TOKEN",
]


def _parse_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on", "y")


def _parse_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"{name}={raw!r} is not an integer, falling back to {default}")
        return default


# LLM
LLM_PROVIDER = os.getenv("LLM_PROVIDER", "gemini").strip().lower()
if LLM_PROVIDER not in ("gemini", "openai"):
    logger.warning(f"Unsupported LLM_PROVIDER: {LLM_PROVIDER}, falling back to gemini")
    LLM_PROVIDER = "gemini"

LLM_MODEL = os.getenv("LLM_MODEL", "gemini-2.5-flash")

GEMINI_API_KEY = os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY")
GEMINI_BASE_URL = os.getenv("GEMINI_BASE_URL")
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")

if LLM_PROVIDER == "gemini" and not GEMINI_API_KEY:
    logger.warning("GEMINI_API_KEY is not set, the chat assistant will reply with a configuration notice")
if LLM_PROVIDER == "openai" and not OPENAI_API_KEY:
    logger.warning("OPENAI_API_KEY is not set, the chat assistant will reply with a configuration notice")


# Storage / logs
DB_PATH = os.getenv("DB_PATH", "data/acadease.db")
LOG_FILE = os.getenv("LOG_FILE", "logs/acadease.log")
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG").strip().upper()


# Reminders
REMINDER_CHECK_INTERVAL_SECONDS = _parse_int("REMINDER_CHECK_INTERVAL_SECONDS", 60)
if REMINDER_CHECK_INTERVAL_SECONDS <= 0:
    logger.warning("REMINDER_CHECK_INTERVAL_SECONDS must be positive, falling back to 60")
    REMINDER_CHECK_INTERVAL_SECONDS = 60

REMINDER_SNOOZE_SECONDS = _parse_int("REMINDER_SNOOZE_SECONDS", 3600)


# Notification channels
ENABLE_AUDIO = _parse_bool("ENABLE_AUDIO", True)
AUDIO_SAMPLE_RATE = _parse_int("AUDIO_SAMPLE_RATE", 44100)
ENABLE_OS_NOTIFICATIONS = _parse_bool("ENABLE_OS_NOTIFICATIONS", True)


# Login (hardcoded admin credential, not hardened)
ADMIN_USERNAME = os.getenv("ADMIN_USERNAME", "admin")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "admin123")


# HTTP
HTTP_HOST = os.getenv("HTTP_HOST", "127.0.0.1")
HTTP_PORT = _parse_int("HTTP_PORT", 18080)
OPS_AUTH_TOKEN = os.getenv("OPS_AUTH_TOKEN", "")
