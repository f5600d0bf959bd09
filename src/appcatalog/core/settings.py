"""Catalog settings.

One validated, cached settings object read from ``APPCATALOG_*``
environment variables and an optional ``.env`` file.

Examples:
    >>> from appcatalog.core.settings import get_settings
    >>> settings = get_settings()
    >>> settings.database_url
    'sqlite:///appcatalog.db'

Tags:
    settings, configuration, pydantic, environment, appcatalog
"""

from __future__ import annotations

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class CatalogSettings(BaseSettings):
    """Catalog configuration.

    All fields can be set via ``APPCATALOG_*`` environment variables (e.g.
    ``APPCATALOG_DATABASE_URL=postgresql://…``).
    """

    model_config = SettingsConfigDict(
        env_prefix="APPCATALOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Database ─────────────────────────────────────────────────
    database_url: str = Field(default="sqlite:///appcatalog.db")
    database_timeout: float = Field(default=5.0, gt=0, description="Seconds to wait on a locked database")
    database_echo: bool = Field(default=False)

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")
    service_name: str = Field(default="appcatalog")

    # ── Authorization ────────────────────────────────────────────
    admin_permission: str = Field(
        default="/permission/admin/manage",
        description="Permission that marks a caller as tenant administrator",
    )

    # ── Pagination ───────────────────────────────────────────────
    default_page_limit: int = Field(default=20, gt=0)
    max_page_limit: int = Field(default=100, gt=0)

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        value = value.upper()
        if value not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level {value!r}")
        return value

    @field_validator("log_format")
    @classmethod
    def _known_format(cls, value: str) -> str:
        value = value.lower()
        if value not in {"json", "console"}:
            raise ValueError("log_format must be 'json' or 'console'")
        return value

    @model_validator(mode="after")
    def _limits_consistent(self) -> CatalogSettings:
        if self.default_page_limit > self.max_page_limit:
            raise ValueError("default_page_limit cannot exceed max_page_limit")
        return self

    @property
    def json_logs(self) -> bool:
        return self.log_format == "json"


# ── Settings factory with caching ────────────────────────────────────────

_settings_cache: dict[str, CatalogSettings] = {}


def get_settings(*, _force_reload: bool = False) -> CatalogSettings:
    """Load, validate, and cache a :class:`CatalogSettings` instance."""
    if not _force_reload and "default" in _settings_cache:
        return _settings_cache["default"]
    settings = CatalogSettings()
    _settings_cache["default"] = settings
    return settings


def clear_settings_cache() -> None:
    """Forget the cached settings (tests, config reloads)."""
    _settings_cache.clear()


__all__ = ["CatalogSettings", "get_settings", "clear_settings_cache"]
