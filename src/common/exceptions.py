"""
altsource Exception Hierarchy

Every error carries a human-readable message, a machine-readable code and
structured details, so the CLI can print it and ``--json`` output can
serialize it.
"""

from typing import Optional, Dict, Any


class SourceError(Exception):
    """
    Base exception for all altsource errors.

    Attributes:
        message: Human-readable error message
        code: Machine-readable error code
        details: Additional context as key-value pairs
        cause: Original exception that caused this error
        recoverable: Whether retrying or editing the input can fix it
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        recoverable: bool = True,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        self.cause = cause
        self.recoverable = recoverable

    def __str__(self):
        s = f"[{self.code}] {self.message}"
        if self.details:
            s += f" (details: {self.details})"
        if self.cause:
            s += f" caused by: {self.cause}"
        return s

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
            "recoverable": self.recoverable,
        }


# =============================================================================
# Catalog errors
# =============================================================================

class CatalogError(SourceError):
    """Base for catalog document errors."""
    pass


class CatalogNotFoundError(CatalogError):
    """Catalog file does not exist."""
    def __init__(self, path: str):
        super().__init__(
            f"Catalog not found: {path}",
            code="CATALOG_NOT_FOUND",
            details={"path": path},
            recoverable=False,
        )


class CatalogParseError(CatalogError):
    """Catalog file is not decodable JSON or has the wrong shape."""
    def __init__(self, path: str, reason: str, cause: Optional[Exception] = None):
        super().__init__(
            f"Cannot parse catalog {path}: {reason}",
            code="CATALOG_PARSE_FAILED",
            details={"path": path, "reason": reason},
            cause=cause,
        )


class CatalogValidationError(CatalogError):
    """Catalog document failed validation."""
    def __init__(self, report, path: Optional[str] = None):
        errors = report.errors
        summary = f"{len(errors)} validation issue(s)"
        if path:
            summary = f"{path}: {summary}"
        super().__init__(
            summary,
            code="CATALOG_INVALID",
            details={"issues": [issue.to_dict() for issue in errors]},
        )
        self.report = report


class DuplicateAppError(CatalogError):
    """An app with the same bundle identifier is already listed."""
    def __init__(self, bundle_id: str):
        super().__init__(
            f"App '{bundle_id}' is already in the catalog",
            code="DUPLICATE_APP",
            details={"bundle_id": bundle_id},
        )


class AppNotFoundError(CatalogError):
    """No app with the given bundle identifier."""
    def __init__(self, bundle_id: str):
        super().__init__(
            f"App '{bundle_id}' not found",
            code="APP_NOT_FOUND",
            details={"bundle_id": bundle_id},
            recoverable=False,
        )


# =============================================================================
# Network errors
# =============================================================================

class FetchError(SourceError):
    """Base for remote resource errors."""
    pass


class DownloadError(FetchError):
    """Download or check of a remote resource failed."""
    def __init__(
        self,
        url: str,
        reason: str,
        status_code: Optional[int] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(
            f"Failed to fetch {url}: {reason}",
            code="DOWNLOAD_FAILED",
            details={"url": url, "reason": reason, "status_code": status_code},
            cause=cause,
        )
        self.url = url
        self.status_code = status_code


# =============================================================================
# Configuration errors
# =============================================================================

class ConfigError(SourceError):
    """Base for configuration errors."""
    pass


class InvalidConfigError(ConfigError):
    """Invalid configuration."""
    def __init__(self, field: str, value: Any, reason: str):
        super().__init__(
            f"Invalid configuration: {field}={value!r}: {reason}",
            code="INVALID_CONFIG",
            details={"field": field, "value": str(value), "reason": reason},
        )
