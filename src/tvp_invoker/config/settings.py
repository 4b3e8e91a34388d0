"""
Configuration management for tvp_invoker.

This module provides environment-based configuration using Pydantic
BaseSettings. Naming conventions for table types and stored procedures,
the driver login timeout, and logging options are all overridable through
``TVP_``-prefixed environment variables or a ``.env`` file.
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

import structlog
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = structlog.get_logger(__name__)

# Determine project root for resolving .env by default
PROJECT_ROOT = Path(__file__).resolve().parents[3]
DEFAULT_ENV_FILE = PROJECT_ROOT / ".env"
ENV_FILE_OVERRIDE = os.getenv("TVP_ENV_FILE")
if ENV_FILE_OVERRIDE:
    env_file_candidate = Path(ENV_FILE_OVERRIDE).expanduser()
    if not env_file_candidate.is_absolute():
        env_file_candidate = PROJECT_ROOT / env_file_candidate
    SETTINGS_ENV_FILE = env_file_candidate
else:
    SETTINGS_ENV_FILE = DEFAULT_ENV_FILE

DEFAULT_TABULAR_TYPE_SCHEMA = "dbo."
DEFAULT_PROCEDURE_SCHEMA = "dbo."


class Settings(BaseSettings):
    """
    Application settings with environment variable support.

    Environment variables are loaded with the TVP_ prefix, for example
    TVP_TABULAR_TYPE_PREFIX=uddt makes the table type for ``Contact``
    resolve to ``dbo.uddtContact``.

    LOG_LEVEL is read without prefix, matching common deployment tooling.
    """

    LOG_LEVEL: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Logging level (uppercase)",
    )

    # Naming conventions
    tabular_type_schema: str = Field(
        default=DEFAULT_TABULAR_TYPE_SCHEMA,
        description="Schema prepended to table type names, trailing dot included",
    )
    tabular_type_prefix: str = Field(
        default="",
        description="Prefix placed between the schema and the record type name",
    )
    procedure_schema: str = Field(
        default=DEFAULT_PROCEDURE_SCHEMA,
        description="Schema used for auto-named Save<Plural> procedures",
    )

    # Database connectivity
    connect_timeout: int = Field(
        default=15, description="Driver login timeout in seconds"
    )

    # Declarative registrations
    registrations_config: Optional[str] = Field(
        default=None,
        description="Path to a YAML file of procedure registrations",
    )

    @field_validator("tabular_type_schema", "procedure_schema", mode="before")
    @classmethod
    def _blank_schema_uses_default(cls, value: object) -> object:
        """Treat an empty schema as unset so the dbo. fallback applies."""
        if value is None or (isinstance(value, str) and not value.strip()):
            return DEFAULT_TABULAR_TYPE_SCHEMA
        return value

    @field_validator("tabular_type_prefix", mode="before")
    @classmethod
    def _none_prefix_is_empty(cls, value: object) -> object:
        return "" if value is None else value

    model_config = SettingsConfigDict(
        env_prefix="TVP_",
        env_file=str(SETTINGS_ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses LRU cache so settings are loaded once and reused across the
    process lifetime. Tests call ``get_settings.cache_clear()`` after
    patching the environment.

    Returns:
        Settings instance with loaded configuration
    """
    return Settings()
