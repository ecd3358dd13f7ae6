"""
Application Settings.

Centralizes all configuration via .env / environment variables.
Every variable is prefixed with CERTX_ (e.g. CERTX_API_BASE_URL).
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Settings loaded from environment variables."""

    # --- Registry API ---
    api_base_url: str = "http://localhost:4000/api"
    api_timeout_seconds: float = 30.0
    verify_base_url: str = "http://localhost:5173/verify"
    api_token: str = ""              # bearer token for the CLI list commands

    # --- Lists ---
    search_debounce_ms: int = Field(default=500, ge=300, le=500)
    default_page_limit: int = Field(default=10, ge=1, le=100)

    # --- Logging ---
    log_level: str = "INFO"
    log_json: bool = False

    # --- Audit ---
    audit_buffer_size: int = Field(default=1000, ge=1)

    model_config = {
        "env_prefix": "CERTX_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


@lru_cache
def get_settings() -> Settings:
    """Settings singleton."""
    return Settings()
