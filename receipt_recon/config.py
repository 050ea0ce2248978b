# receipt_recon/config.py

from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App
    app_name: str = "Receipt Reconciliation API"
    app_env: str = "development"
    debug: bool = True
    log_level: str = "INFO"

    # Identity
    unknown_member_key: str = "UNKNOWN_MEMBER"
    identity_separator: str = "-"

    # Normalization
    preserve_unknown_fields: bool = True

    # Statistics
    repeated_fetch_threshold: int = 0

    # Fetch window (years of history the receipts service keeps)
    fetch_window_years: int = 3

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        env_prefix = "RECEIPT_RECON_"


@lru_cache()
def get_settings() -> Settings:
    """Cached settings instance."""
    return Settings()
