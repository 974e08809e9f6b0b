"""
Application configuration — environment-aware settings.

All environment variables are documented here. A local .env file is loaded
with python-dotenv when present.
"""

from __future__ import annotations

import os
import warnings

from dotenv import load_dotenv

load_dotenv()


def _weekdays(raw: str) -> tuple[int, ...]:
    """'5,6' -> (5, 6). Monday is 0."""
    return tuple(int(part) for part in raw.split(",") if part.strip())


def _flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).lower() in ("1", "true", "yes", "on")


class BaseConfig:
    # Core Flask
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-key-change-in-production")

    # Session security
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"
    PERMANENT_SESSION_LIFETIME = 86400

    # Registration
    MENTOR_REGISTRATION_CODE = os.environ.get("MENTOR_REGISTRATION_CODE", "ATLAS2025")

    # Gamification
    MULTIPLIER_WEEKDAYS = _weekdays(os.environ.get("MULTIPLIER_WEEKDAYS", "5,6"))
    REWARD_DEFAULT_DAYS = int(os.environ.get("REWARD_DEFAULT_DAYS", "1"))

    # State
    SEED_DEMO_DATA = _flag("SEED_DEMO_DATA", "true")
    SWEEP_ON_STARTUP = _flag("SWEEP_ON_STARTUP", "true")
    SCHEDULER_ENABLED = _flag("SCHEDULER_ENABLED", "true")
    AUDIT_TRAIL_SIZE = int(os.environ.get("AUDIT_TRAIL_SIZE", "500"))
    CRON_SECRET = os.environ.get("CRON_SECRET", "")

    # Motivation (Gemini)
    GOOGLE_API_KEY = os.environ.get("GOOGLE_API_KEY", "")
    MOTIVATION_MODEL = os.environ.get("MOTIVATION_MODEL", "gemini-2.0-flash")
    MOTIVATION_CACHE_SECONDS = int(os.environ.get("MOTIVATION_CACHE_SECONDS", "3600"))

    # Logging
    LOG_FORMAT = os.environ.get("LOG_FORMAT", "text")  # "json" or "text"
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Rate limiting (in-memory unless a storage URI is given)
    RATELIMIT_STORAGE_URI = os.environ.get("RATELIMIT_STORAGE_URI", "") or "memory://"


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    LOG_FORMAT = os.environ.get("LOG_FORMAT", "text")


class TestingConfig(BaseConfig):
    TESTING = True
    SECRET_KEY = "test-secret-key"
    SEED_DEMO_DATA = False
    SWEEP_ON_STARTUP = False
    SCHEDULER_ENABLED = False
    RATELIMIT_ENABLED = False
    GOOGLE_API_KEY = ""


class ProductionConfig(BaseConfig):
    DEBUG = False
    LOG_FORMAT = os.environ.get("LOG_FORMAT", "json")
    SESSION_COOKIE_SECURE = True

    @classmethod
    def validate(cls):
        """Fail fast on missing or insecure configuration in production."""
        errors: list[str] = []

        if cls.SECRET_KEY in ("dev-key-change-in-production", ""):
            errors.append("SECRET_KEY must be set to a secure value in production.")

        if cls.MENTOR_REGISTRATION_CODE == "ATLAS2025":
            warnings.warn("MENTOR_REGISTRATION_CODE is the demo default.")

        if not cls.GOOGLE_API_KEY:
            warnings.warn("GOOGLE_API_KEY is not set; motivation falls back to canned quotes.")

        if errors:
            raise RuntimeError("Configuration errors:\n  " + "\n  ".join(errors))


config_by_name = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}
