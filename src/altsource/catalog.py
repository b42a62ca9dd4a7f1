"""
Catalog Store - File-backed management of a source document.

Loads a source, offers lookup/search and the edits a maintainer makes on
release, and saves each result as a new complete snapshot.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, List, Union

from common.exceptions import (
    AppNotFoundError,
    CatalogNotFoundError,
    CatalogParseError,
    CatalogValidationError,
    DuplicateAppError,
)
from utils.atomic_write import atomic_write_json, safe_backup

from .models import AppEntry, SourceCatalog
from .validator import ValidationReport, validate_catalog, validate_document

logger = logging.getLogger(__name__)


def today_utc() -> str:
    return datetime.now(timezone.utc).date().isoformat()


class CatalogStore:
    """
    A source catalog bound to a file.

    The in-memory catalog is replaced, never mutated in place, so a
    SourceCatalog handed out by ``catalog`` stays a stable snapshot.
    """

    def __init__(self, path: Union[str, Path], catalog: Optional[SourceCatalog] = None):
        """
        Initialize CatalogStore.

        Args:
            path: Path to the source JSON file
            catalog: Already-built catalog (e.g. a new one) instead of loading
        """
        self.path = Path(path)
        self._catalog = catalog
        self.report: Optional[ValidationReport] = None

    @classmethod
    def create(cls, path: Union[str, Path], name: str, identifier: str) -> "CatalogStore":
        """Start a new, empty source."""
        return cls(path, SourceCatalog(name=name, identifier=identifier, apps=[]))

    @property
    def catalog(self) -> SourceCatalog:
        if self._catalog is None:
            raise RuntimeError("Catalog not loaded. Call load() first")
        return self._catalog

    @property
    def loaded(self) -> bool:
        return self._catalog is not None

    def read_document(self):
        """Read and decode the file without building models."""
        if not self.path.exists():
            raise CatalogNotFoundError(str(self.path))

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            raise CatalogParseError(str(self.path), f"invalid JSON: {e}", cause=e) from e
        except (OSError, UnicodeDecodeError) as e:
            raise CatalogParseError(str(self.path), str(e), cause=e) from e

    def load(self, strict: bool = True) -> SourceCatalog:
        """
        Load the catalog from disk.

        Args:
            strict: Raise CatalogValidationError when the document is invalid.
                When False the issues are kept in ``report`` and the
                catalog is loaded anyway.

        Returns:
            The loaded SourceCatalog.
        """
        data = self.read_document()
        self.report = validate_document(data)

        if not self.report.ok:
            if strict:
                raise CatalogValidationError(self.report, path=str(self.path))
            logger.warning(
                f"{self.path}: loaded with {len(self.report.issues)} validation issue(s)"
            )

        try:
            self._catalog = SourceCatalog.from_dict(data)
        except CatalogParseError as e:
            raise CatalogParseError(str(self.path), e.details.get("reason", e.message)) from e

        logger.info(f"Loaded {len(self._catalog.apps)} app(s) from {self.path}")
        return self._catalog

    def save(self, backup: bool = False) -> Path:
        """
        Validate and write the catalog as a new snapshot.

        An invalid catalog is refused and the file on disk is left alone.

        Args:
            backup: Keep the previous snapshot as ``<name>.bak``

        Returns:
            Path written.
        """
        report = validate_catalog(self.catalog)
        if not report.ok:
            raise CatalogValidationError(report, path=str(self.path))

        if backup:
            backup_path = safe_backup(self.path)
            if backup_path:
                logger.info(f"Backed up previous snapshot to {backup_path}")

        atomic_write_json(self.path, self.catalog.to_dict())
        logger.info(f"Saved {len(self.catalog.apps)} app(s) to {self.path}")
        return self.path

    def get(self, bundle_id: str) -> Optional[AppEntry]:
        """Get app by bundle identifier."""
        return self.catalog.find(bundle_id)

    def require(self, bundle_id: str) -> AppEntry:
        app = self.get(bundle_id)
        if app is None:
            raise AppNotFoundError(bundle_id)
        return app

    def all(self) -> List[AppEntry]:
        """Get all apps, in document order."""
        return list(self.catalog.apps)

    def add(self, app: AppEntry) -> None:
        """Append an app; bundle identifiers must stay unique."""
        if self.get(app.bundle_identifier) is not None:
            raise DuplicateAppError(app.bundle_identifier)
        self._catalog = self.catalog.with_apps(self.catalog.apps + [app])

    def replace(self, app: AppEntry) -> None:
        """Swap in a new version of an existing app, keeping its position."""
        self.require(app.bundle_identifier)
        self._catalog = self.catalog.with_apps([
            app if existing.bundle_identifier == app.bundle_identifier else existing
            for existing in self.catalog.apps
        ])

    def remove(self, bundle_id: str) -> AppEntry:
        """Remove an app and return it."""
        app = self.require(bundle_id)
        self._catalog = self.catalog.with_apps([
            existing for existing in self.catalog.apps
            if existing.bundle_identifier != bundle_id
        ])
        return app

    def search(self, query: str = "", include_beta: bool = True) -> List[AppEntry]:
        """
        Search the catalog.

        Args:
            query: Case-insensitive text matched against name, subtitle,
                developer, description and bundle identifier
            include_beta: Include apps flagged as beta

        Returns:
            Matching apps in document order.
        """
        query_lower = query.lower()
        results = []

        for app in self.catalog.apps:
            if app.beta and not include_beta:
                continue

            if query:
                searchable = " ".join(
                    part for part in (
                        app.name,
                        app.subtitle,
                        app.developer_name,
                        app.localized_description,
                        app.bundle_identifier,
                    )
                    if isinstance(part, str)
                ).lower()
                if query_lower not in searchable:
                    continue

            results.append(app)

        return results

    def publish_release(
        self,
        bundle_id: str,
        version: str,
        download_url: str,
        version_date: Optional[str] = None,
        description: Optional[str] = None,
        size: Optional[int] = None,
        beta: Optional[bool] = None,
    ) -> AppEntry:
        """
        Record a new release of an app.

        The previous AppEntry object is left untouched; the catalog gets a
        new entry in the same position.

        Args:
            bundle_id: App to update
            version: New version string
            download_url: Where the new build can be downloaded
            version_date: Release date, defaults to today (UTC)
            description: Release notes for ``versionDescription``
            size: Byte count of the new build; keeps the old value when None
            beta: New beta flag; keeps the old value when None

        Returns:
            The new AppEntry.
        """
        current = self.require(bundle_id)

        changes = {
            "version": version,
            "download_url": download_url,
            "version_date": version_date or today_utc(),
        }
        if description is not None:
            changes["version_description"] = description
        if size is not None:
            changes["size"] = size
        if beta is not None:
            changes["beta"] = beta

        release = current.with_release(**changes)
        self.replace(release)
        logger.info(f"Published {bundle_id} {current.version} -> {version}")
        return release
