"""
altsource Common Utilities

Exceptions, decorators and logging shared by the catalog tooling.
"""

from .exceptions import (
    SourceError, CatalogError, CatalogNotFoundError, CatalogParseError,
    CatalogValidationError, DuplicateAppError, AppNotFoundError,
    FetchError, DownloadError, ConfigError, InvalidConfigError,
)
from .decorators import retry, timed
from .logging_config import setup_logging, LogContext, JSONFormatter, ColoredFormatter

__all__ = [
    # Exceptions
    "SourceError", "CatalogError", "CatalogNotFoundError", "CatalogParseError",
    "CatalogValidationError", "DuplicateAppError", "AppNotFoundError",
    "FetchError", "DownloadError", "ConfigError", "InvalidConfigError",
    # Decorators
    "retry", "timed",
    # Logging
    "setup_logging", "LogContext", "JSONFormatter", "ColoredFormatter",
]
