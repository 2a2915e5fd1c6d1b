"""Core module for Preflight configuration and utilities."""

from src.core.cache import Cache
from src.core.config import Settings, get_settings
from src.core.exceptions import PreflightException

__all__ = [
    "Cache",
    "PreflightException",
    "Settings",
    "get_settings",
]
