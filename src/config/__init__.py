"""Configuration module for the access-control engine."""

from .logging_config import configure_from_settings, configure_logging, get_logger
from .settings import AccessControlSettings, get_settings

__all__ = [
    "AccessControlSettings",
    "get_settings",
    "configure_logging",
    "configure_from_settings",
    "get_logger",
]
