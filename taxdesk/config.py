"""
TaxDesk NG - Configuration Settings

Application settings read from the environment or a .env file.
"""

from functools import lru_cache
from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # ===========================================
    # APPLICATION
    # ===========================================
    app_name: str = "TaxDesk NG"
    app_env: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    # ===========================================
    # DATABASE
    # ===========================================
    database_url_async: str = "sqlite+aiosqlite:///./taxdesk.db"
    database_echo: bool = False

    # ===========================================
    # TAX REGIME
    # Nigeria Tax Act 2025 applies from tax year 2026.
    # ===========================================
    minimum_tax_year: int = 2026
    maximum_tax_year: int = 2100

    # ===========================================
    # CORS
    # ===========================================
    cors_origins: str = "http://localhost:3000,http://localhost:5120"

    @property
    def cors_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"

    @property
    def is_sqlite(self) -> bool:
        """SQLite engines do not take pool sizing arguments."""
        return self.database_url_async.startswith("sqlite")


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
