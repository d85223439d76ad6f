"""
Application configuration.

All configuration is loaded from environment variables.
A local .env file is picked up for development.
"""

import os
from functools import lru_cache

from dotenv import load_dotenv

# Load .env file into environment variables
load_dotenv()


class Settings:
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "FinTrack"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"

    # Server
    HOST: str = os.getenv("HOST", "127.0.0.1")
    PORT: int = int(os.getenv("PORT", "8000"))

    # Database
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL",
        "sqlite:///./fintrack.db"
    )

    # Environment
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    LOG_JSON: bool = os.getenv("LOG_JSON", "false").lower() == "true"

    # Insert default types, currencies and categories on startup
    SEED_DEFAULTS: bool = os.getenv("FINTRACK_SEED_DEFAULTS", "true").lower() == "true"

    # Transaction list windowing
    CACHE_MAX_IN_MEMORY_ITEMS: int = int(
        os.getenv("FINTRACK_CACHE_MAX_IN_MEMORY_ITEMS", "100")
    )
    CACHE_WINDOW_SIZE: int = int(os.getenv("FINTRACK_CACHE_WINDOW_SIZE", "50"))
    CACHE_PRELOAD_BUFFER: int = int(
        os.getenv("FINTRACK_CACHE_PRELOAD_BUFFER", "20")
    )
    PAGE_SIZE: int = int(os.getenv("FINTRACK_PAGE_SIZE", "20"))


@lru_cache()
def get_settings() -> Settings:
    """
    Return cached settings instance.

    The Settings object is created once per process and reused
    for all subsequent calls.
    """
    return Settings()
