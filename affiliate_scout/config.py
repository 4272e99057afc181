"""
Configuration management for Affiliate Scout.
Handles environment variables and application settings.
"""
import os
from typing import Optional
from dotenv import load_dotenv

load_dotenv()


# Batch orchestration bounds
MIN_BATCH_SIZE = 5
MAX_BATCH_SIZE = 100
DEFAULT_BATCH_SIZE = 25

MIN_PAUSE_SECONDS = 10
MAX_PAUSE_SECONDS = 300
DEFAULT_PAUSE_SECONDS = 60


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def clamp_batch_size(value: Optional[int]) -> int:
    """Clamp a requested batch size into the supported 5-100 window."""
    if value is None:
        return DEFAULT_BATCH_SIZE
    return max(MIN_BATCH_SIZE, min(MAX_BATCH_SIZE, int(value)))


def clamp_pause_seconds(value: Optional[float]) -> float:
    """Clamp an inter-batch pause into the supported 10-300 second window."""
    if value is None:
        return float(DEFAULT_PAUSE_SECONDS)
    return float(max(MIN_PAUSE_SECONDS, min(MAX_PAUSE_SECONDS, value)))


class Config:
    """Application configuration loaded from environment variables."""

    # Server settings
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = _int_env("PORT", 8000)
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FORMAT: str = os.getenv("LOG_FORMAT", "json")  # json or console

    # Batch orchestration
    BATCH_SIZE: int = clamp_batch_size(_int_env("BATCH_SIZE", DEFAULT_BATCH_SIZE))
    BATCH_PAUSE_SECONDS: float = clamp_pause_seconds(
        _int_env("BATCH_PAUSE_SECONDS", DEFAULT_PAUSE_SECONDS)
    )

    # Record store (Supabase / PostgREST)
    # These are loaded from environment variables, NEVER hardcoded
    SUPABASE_URL: Optional[str] = os.getenv("SUPABASE_URL")
    SUPABASE_KEY: Optional[str] = os.getenv("SUPABASE_KEY")
    SUPABASE_TABLE: str = os.getenv("SUPABASE_TABLE", "affiliate_links")

    # Optional fallback search oracle
    CLAUDE_API_KEY: Optional[str] = os.getenv("CLAUDE_API_KEY")

    @classmethod
    def is_supabase_configured(cls) -> bool:
        """Check if the Supabase record store credentials are configured."""
        return bool(cls.SUPABASE_URL and cls.SUPABASE_KEY)

    @classmethod
    def get_missing_supabase_vars(cls) -> list:
        """Return list of missing Supabase environment variables."""
        missing = []
        if not cls.SUPABASE_URL:
            missing.append("SUPABASE_URL")
        if not cls.SUPABASE_KEY:
            missing.append("SUPABASE_KEY")
        return missing

    @classmethod
    def is_claude_configured(cls) -> bool:
        """Check if the Claude-backed search oracle can be used."""
        return bool(cls.CLAUDE_API_KEY)


config = Config()
