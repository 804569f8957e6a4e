"""Core infrastructure utilities."""

from .config import ObsMCPSettings, get_settings
from .logging_config import configure_logging, get_logger

__all__ = [
    "ObsMCPSettings",
    "configure_logging",
    "get_logger",
    "get_settings",
]
