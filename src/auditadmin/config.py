"""Centralized configuration for audit-admin.

Settings are read once from environment variables (and an optional ``.env``
file) via pydantic-settings. Modules should import settings from here rather
than reading the environment themselves.

Usage:
    from auditadmin.config import get_settings

    settings = get_settings()
    backend = settings.audit.db_type
"""

from __future__ import annotations

import logging
from enum import Enum
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class AuditBackend(str, Enum):
    """Storage backend that serves access-audit searches."""

    DB = "db"
    SOLR = "solr"

    @classmethod
    def parse(cls, value: object) -> "AuditBackend":
        """Resolve a configured value case-insensitively, defaulting to DB."""
        if isinstance(value, cls):
            return value
        token = str(value or "").strip().lower()
        for backend in cls:
            if backend.value == token:
                return backend
        if token:
            logger.warning(f"Unknown audit backend '{value}', using '{cls.DB.value}'")
        return cls.DB


class AuditConfig(BaseSettings):
    """Audit storage configuration."""

    model_config = SettingsConfigDict(env_prefix="AUDITADMIN_AUDIT_")

    db_type: AuditBackend = Field(
        default=AuditBackend.DB, description="Backend for access-audit searches (db or solr)"
    )
    db_path: str = Field(default=":memory:", description="SQLite DB path (':memory:' for in-memory)")

    @field_validator("db_type", mode="before")
    @classmethod
    def parse_db_type(cls, v):
        return AuditBackend.parse(v)


class SolrConfig(BaseSettings):
    """Solr client configuration."""

    model_config = SettingsConfigDict(env_prefix="AUDITADMIN_SOLR_")

    url: str = Field(
        default="http://localhost:6083/solr/ranger_audits", description="Solr core/collection URL"
    )
    timezone: Optional[str] = Field(
        default=None, description="Time zone for date range literals (None = local zone)"
    )
    timeout: int = Field(default=60, ge=1, description="Solr request timeout in seconds")
    always_commit: bool = Field(default=False, description="Commit after every Solr update")


class Settings(BaseSettings):
    """Root settings class aggregating all configuration.

    Environment variables:
        AUDITADMIN_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)

    Nested config environment variables use prefixes:
        AUDITADMIN_AUDIT_* - Audit storage
        AUDITADMIN_SOLR_* - Solr client
    """

    model_config = SettingsConfigDict(
        env_prefix="AUDITADMIN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = Field(default="INFO", description="Logging level")

    audit: AuditConfig = Field(default_factory=AuditConfig)
    solr: SolrConfig = Field(default_factory=SolrConfig)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a valid Python logging level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return upper


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance.

    Settings are loaded once from environment variables and .env file.

    Returns:
        Settings instance with all configuration.
    """
    return Settings()


def configure_logging(settings: Optional[Settings] = None) -> None:
    """Configure logging based on settings.

    Args:
        settings: Settings instance, or None to use get_settings().
    """
    settings = settings or get_settings()
    level = getattr(logging, settings.log_level)
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
