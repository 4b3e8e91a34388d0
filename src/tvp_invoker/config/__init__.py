"""Configuration management for tvp_invoker.

This module provides centralized configuration loaded from environment
variables with validation using Pydantic BaseSettings, plus the YAML loader
for declarative procedure registrations.

Usage:
    >>> from tvp_invoker.config import get_settings
    >>> settings = get_settings()
    >>> print(settings.tabular_type_schema)
    dbo.

    >>> from tvp_invoker.config import load_registrations
    >>> load_registrations("config/procedures.yml", registry)
"""

from tvp_invoker.config.registration_loader import (
    load_registrations,
    read_registrations,
)
from tvp_invoker.config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
    "load_registrations",
    "read_registrations",
]
