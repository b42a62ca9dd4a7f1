"""
altsource

Tooling for app source catalogs: model, validation, enrichment and
release publishing.
"""

from .models import AppEntry, SourceCatalog
from .catalog import CatalogStore
from .validator import ValidationIssue, ValidationReport, validate_document, validate_catalog
from .enricher import SourceEnricher, UrlCheck, SizeChange
from .config import ToolConfig

__version__ = "1.0.0"

__all__ = [
    "AppEntry",
    "SourceCatalog",
    "CatalogStore",
    "ValidationIssue",
    "ValidationReport",
    "validate_document",
    "validate_catalog",
    "SourceEnricher",
    "UrlCheck",
    "SizeChange",
    "ToolConfig",
]
