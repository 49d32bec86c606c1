"""
Church Calendar Bot — Centralized configuration.

Loads all settings from .env and validates required keys.
The loaded Settings object is passed explicitly to every service at startup.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, field_validator

# Load .env from project root (two levels up from src/config.py)
_ENV_PATH = Path(__file__).resolve().parent.parent / ".env"


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    # LINE Messaging API
    LINE_CHANNEL_ACCESS_TOKEN: str
    LINE_CHANNEL_SECRET: str
    LINE_API_TIMEOUT_SECONDS: float = 10.0
    LINE_RETRY_ATTEMPTS: int = 3

    # Security: an empty list means every LINE user may create/update/delete
    AUTHORIZED_USER_IDS: list[str] = []
    CRON_API_KEY: str = ""

    # SQLite
    DATABASE_PATH: str = "data/activities.db"

    # Reminders
    TIMEZONE: str = "Asia/Taipei"
    GROUP_SEND_DELAY_SECONDS: float = 1.0
    CLEANUP_DAYS_OLD: int = 1

    # HTTP server
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    @field_validator("AUTHORIZED_USER_IDS", mode="before")
    @classmethod
    def parse_user_ids(cls, v: str | list[str]) -> list[str]:
        if isinstance(v, list):
            return v
        if isinstance(v, str) and v.strip():
            return [uid.strip() for uid in v.split(",") if uid.strip()]
        return []

    @field_validator("LOG_LEVEL")
    @classmethod
    def upper_level(cls, v: str) -> str:
        return v.strip().upper() or "INFO"


def load_settings(env_path: Path | None = None) -> Settings:
    """Load settings from environment, validating required keys."""
    load_dotenv(env_path or _ENV_PATH)

    token = os.getenv("LINE_CHANNEL_ACCESS_TOKEN", "")
    secret = os.getenv("LINE_CHANNEL_SECRET", "")

    if not token or token.startswith("your-"):
        print("ERROR: LINE_CHANNEL_ACCESS_TOKEN is missing or not set in .env", file=sys.stderr)
        sys.exit(1)

    if not secret or secret.startswith("your-"):
        print("ERROR: LINE_CHANNEL_SECRET is missing or not set in .env", file=sys.stderr)
        sys.exit(1)

    return Settings(
        LINE_CHANNEL_ACCESS_TOKEN=token,
        LINE_CHANNEL_SECRET=secret,
        LINE_API_TIMEOUT_SECONDS=os.getenv("LINE_API_TIMEOUT_SECONDS", "10"),
        LINE_RETRY_ATTEMPTS=os.getenv("LINE_RETRY_ATTEMPTS", "3"),
        AUTHORIZED_USER_IDS=os.getenv("AUTHORIZED_USER_IDS", ""),
        CRON_API_KEY=os.getenv("CRON_API_KEY", ""),
        DATABASE_PATH=os.getenv("DATABASE_PATH", "data/activities.db"),
        TIMEZONE=os.getenv("TIMEZONE", "Asia/Taipei"),
        GROUP_SEND_DELAY_SECONDS=os.getenv("GROUP_SEND_DELAY_SECONDS", "1.0"),
        CLEANUP_DAYS_OLD=os.getenv("CLEANUP_DAYS_OLD", "1"),
        HOST=os.getenv("HOST", "0.0.0.0"),
        PORT=os.getenv("PORT", "8000"),
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO"),
    )
