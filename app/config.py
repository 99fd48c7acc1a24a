"""
Payroll CTC Engine - Configuration Settings

This module handles all application configuration using Pydantic Settings.
Environment variables are loaded from .env file.
"""

from decimal import Decimal
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
    # APPLICATION CONFIGURATION
    # ===========================================
    app_name: str = "Payroll CTC Engine"
    app_env: str = "development"
    debug: bool = False
    api_version: str = "v1"

    # ===========================================
    # DATABASE CONFIGURATION
    # PostgreSQL (asyncpg) in production, SQLite (aiosqlite) locally
    # ===========================================
    database_url_async: str = "sqlite+aiosqlite:///./payroll.db"
    db_pool_size: int = 5
    db_max_overflow: int = 10

    # ===========================================
    # PAYROLL RULES
    # ===========================================
    # Fixed day count used to derive the daily rate for loss-of-pay
    lop_month_days: int = 30
    # HRA may not exceed this share of basic
    hra_max_ratio: Decimal = Decimal("0.5")
    ctc_validity_years: int = 1
    # Batch-only tax guard: basic at or above this needs 1-50% tax
    batch_tax_basic_threshold: Decimal = Decimal("20000")

    # ===========================================
    # EMAIL CONFIGURATION
    # ===========================================
    notify_by_email: bool = True
    email_provider: str = "mock"
    mail_server: str = ""
    mail_port: int = 587
    mail_username: str = ""
    mail_password: str = ""
    mail_use_tls: bool = True
    mail_from: str = "noreply@payroll.local"
    mail_from_name: str = "Payroll CTC Engine"
    sendgrid_api_key: str = ""
    mailgun_api_key: str = ""
    mailgun_domain: str = ""

    @property
    def smtp_host(self) -> str:
        """SMTP host server."""
        return self.mail_server

    @property
    def smtp_port(self) -> int:
        """SMTP port."""
        return self.mail_port

    @property
    def smtp_username(self) -> str:
        """SMTP username."""
        return self.mail_username

    @property
    def smtp_password(self) -> str:
        """SMTP password."""
        return self.mail_password

    @property
    def smtp_use_tls(self) -> bool:
        """Whether to use TLS for SMTP."""
        return self.mail_use_tls

    @property
    def email_from(self) -> str:
        """Email from address."""
        return self.mail_from or self.mail_username

    @property
    def email_from_name(self) -> str:
        """Email from display name."""
        return self.mail_from_name

    # ===========================================
    # CORS SETTINGS
    # ===========================================
    cors_origins: str = "http://localhost:3000,http://localhost:8000,http://127.0.0.1:8000"

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins string into list."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app_env.lower() == "development"

    @property
    def is_sqlite(self) -> bool:
        return self.database_url_async.startswith("sqlite")


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Uses lru_cache to avoid reading .env file on every call.
    """
    return Settings()


# Export settings instance
settings = get_settings()
