"""Service settings read from the environment.

``APP_ENV`` selects an optional ``.env.{APP_ENV}`` file at the project root whose
values are loaded into the environment before the settings below are built.
Each group has its own prefix: ``APP_`` (rate limiting), ``LOG_`` and ``EXPORT_``.
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


APP_ENV = os.getenv("APP_ENV", "development")

# .env files resolve against the project root, not the cwd
PROJECT_ROOT = Path(__file__).resolve().parents[2]

ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Nested BaseSettings don't inherit env_file, so populate os.environ first.
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


def _build_app_settings() -> "AppSettings":
    return AppSettings()


def _build_log_settings() -> "LogSettings":
    return LogSettings()


def _build_export_settings() -> "ExportSettings":
    return ExportSettings()


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )

    rate_limit_enabled: bool = Field(
        True,
        description="Enable rate limiting of book exports per forwarded IP",
    )
    rate_limit_requests: int = Field(
        10,
        description="Maximum number of exports allowed per window (per client IP)",
        ge=0,
    )
    rate_limit_window_minutes: int = Field(
        60,
        description="Rate limit window in minutes; every allowed export restarts it",
        ge=0,
    )
    rate_limit_include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* headers alongside Retry-After when throttling",
    )
    rate_limit_cache_max_entries: int = Field(
        10000,
        description="Maximum number of client counters kept by the in-memory cache",
        ge=1,
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging configuration (format, destination, correlation header)."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field(
        "json",
        description="Log format: 'json' for structured output or 'plain'",
    )
    output: str = Field(
        "stdout",
        description="Log destination: 'stdout' or 'file'",
    )
    file_path: str | None = Field(
        None,
        description="Log file path when output is 'file' (default logs/bookexport.log)",
    )
    max_bytes: int = Field(
        0,
        description="Rotate the log file after this many bytes (0 disables rotation)",
        ge=0,
    )
    backup_count: int = Field(
        5,
        description="Number of rotated log files to keep",
        ge=0,
    )
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to read and echo the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class ExportSettings(BaseSettings):
    """Book export (EPUB metadata) configuration."""

    source_url_template: str = Field(
        "https://{lang}.wikisource.org/wiki/{title}",
        description="Canonical source URL of a book; receives {lang} and {title}",
    )
    publisher: str = Field(
        "Wikisource",
        description="Publisher written to the package document",
    )

    model_config = SettingsConfigDict(
        env_prefix="EXPORT_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """All settings groups, built once at import as ``settings``."""

    app_env: str = APP_ENV
    app: AppSettings = Field(default_factory=_build_app_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)
    export: ExportSettings = Field(default_factory=_build_export_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


settings = Settings()
