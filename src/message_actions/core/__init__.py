"""Core utilities for configuration, logging, and the domain model."""

from .config import AppSettings, CacheSettings, ServiceSettings, load_app_settings
from .interfaces import AnalysisError, ServiceError, ValidationError
from .logging import configure_logging

__all__ = [
    "AnalysisError",
    "AppSettings",
    "CacheSettings",
    "ServiceError",
    "ServiceSettings",
    "ValidationError",
    "configure_logging",
    "load_app_settings",
]
