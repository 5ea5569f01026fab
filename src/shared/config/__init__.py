"""Configuration management module.

This module provides:
- Environment-based configuration with validation
- Service-specific settings classes
- Cached settings access via get_settings()
"""

from .settings import (
    ClusterRegisterSettings,
    Environment,
    LogFormat,
    LogLevel,
    Settings,
    get_register_settings,
    get_settings,
)

__all__ = [
    # Main settings
    "Settings",
    "get_settings",
    # Enums
    "Environment",
    "LogLevel",
    "LogFormat",
    # Service-specific settings
    "ClusterRegisterSettings",
    "get_register_settings",
]
