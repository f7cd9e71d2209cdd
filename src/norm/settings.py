"""Process-wide settings for norm.

The persistence core holds exactly one piece of process-wide configuration:
the default placeholder dialect used when compiling query templates. It is
set once at startup, before the first statement is compiled. Logging is
configured in the same call.

Examples:
    >>> from norm.settings import configure
    >>> configure()                       # reads NORM_* from env / .env
    >>> configure(NormSettings(dialect="sqlite", log_level="DEBUG"))

Environment:
    NORM_DIALECT        placeholder dialect (default ``postgresql``)
    NORM_LOG_LEVEL      log level (default ``INFO``)
    NORM_LOG_JSON       force JSON (``true``) or console (``false``) logs
    NORM_SERVICE        service name stamped on every log event
    NORM_DATABASE_URL   optional URL for :func:`norm.sql.open_database`

Tags:
    settings, configuration, pydantic, environment, norm
"""

from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from norm.logging import configure_logging, get_logger
from norm.sql.dialect import set_default_dialect

logger = get_logger(__name__)


class NormSettings(BaseSettings):
    """Settings read from ``NORM_``-prefixed environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="NORM_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── SQL ──────────────────────────────────────────────────────
    dialect: str = Field(
        default="postgresql",
        description="Placeholder dialect for compiled templates",
    )
    database_url: str | None = None

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    log_json: bool | None = None
    service: str = "norm"

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.upper()


def get_settings() -> NormSettings:
    """Factory returning a fresh settings instance."""
    return NormSettings()


def configure(settings: NormSettings | None = None) -> NormSettings:
    """Apply settings to the process: logging first, then the default dialect.

    Raises:
        ConfigError: the configured dialect is unknown
    """
    settings = settings or get_settings()
    configure_logging(
        level=settings.log_level,
        json_format=settings.log_json,
        service=settings.service,
    )
    set_default_dialect(settings.dialect)
    logger.debug("norm_configured", dialect=settings.dialect, log_level=settings.log_level)
    return settings


__all__ = [
    "NormSettings",
    "get_settings",
    "configure",
]
