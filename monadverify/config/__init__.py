"""
Configuration Module
====================

Centralized configuration management using Pydantic Settings.
Loads from environment variables with type validation and defaults.

Usage:
    from monadverify.config import settings

    print(settings.network.chain_id)
    print(settings.history.block_range)
"""

from monadverify.config.settings import (
    CacheBackend,
    Environment,
    LedgerMode,
    LogLevel,
    Settings,
    get_settings,
)


# Global settings instance (singleton)
settings = get_settings()

__all__ = [
    "Settings",
    "get_settings",
    "settings",
    "Environment",
    "LogLevel",
    "LedgerMode",
    "CacheBackend",
]
