"""
Source Models - Typed view of a source catalog document.

A source is a JSON document listing app entries for a third-party
installer client. These dataclasses mirror its wire shape field for field
and keep unknown keys so that load/save does not drop anything.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Optional, List, Dict, Any
from urllib.parse import urlsplit

from common.exceptions import CatalogParseError

# Key order of a published source, used when serializing.
CATALOG_KEYS = ("name", "identifier", "apps")
APP_KEYS = (
    "beta",
    "name",
    "bundleIdentifier",
    "developerName",
    "subtitle",
    "version",
    "versionDate",
    "versionDescription",
    "downloadURL",
    "localizedDescription",
    "iconURL",
    "tintColor",
    "size",
    "screenshotURLs",
)

URL_FIELDS = ("downloadURL", "iconURL")

_DATE_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")
# fractions limited to what datetime.fromisoformat parses on every supported Python
_DATETIME_RE = re.compile(
    r"[0-9]{4}-[0-9]{2}-[0-9]{2}T[0-9]{2}:[0-9]{2}"
    r"(:[0-9]{2}(\.[0-9]{3}|\.[0-9]{6})?)?"
    r"(Z|[+-][0-9]{2}:[0-9]{2})?"
)


def parse_version_date(text: str) -> date:
    """
    Parse a ``versionDate`` value.

    Accepts a plain calendar date (``2025-01-18``) or an ISO 8601 date-time
    (``2025-01-18T10:00:00Z``); only the date part is returned.

    Raises:
        ValueError: If the value is not a valid date.
    """
    if not isinstance(text, str):
        raise ValueError(f"expected a string, got {type(text).__name__}")

    if _DATE_RE.fullmatch(text):
        return date.fromisoformat(text)

    if not _DATETIME_RE.fullmatch(text):
        raise ValueError(f"not an ISO 8601 date: {text!r}")
    value = text[:-1] + "+00:00" if text.endswith("Z") else text
    return datetime.fromisoformat(value).date()


def is_absolute_uri(text: Any) -> bool:
    """True when ``text`` has a scheme, a host and (if given) a numeric port."""
    if not isinstance(text, str) or not text or any(c.isspace() for c in text):
        return False
    try:
        parts = urlsplit(text)
        # raises ValueError for a non-numeric or out-of-range port
        parts.port
    except ValueError:
        return False
    return bool(parts.scheme) and bool(parts.hostname)


def format_size(size_bytes: int) -> str:
    """Format a byte count for display."""
    value = float(size_bytes)
    for unit in ("B", "KB", "MB", "GB"):
        if value < 1024:
            return f"{int(value)} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} TB"


def _copy_list(value):
    return list(value) if isinstance(value, list) else value


def _split_extra(data: Dict[str, Any], known: tuple) -> Dict[str, Any]:
    return {k: v for k, v in data.items() if k not in known}


@dataclass
class AppEntry:
    """One application listed in a source."""
    name: str
    bundle_identifier: str
    developer_name: str
    version: str
    version_date: str
    download_url: str
    localized_description: str
    icon_url: str
    size: int

    # Optional presentation/versioning fields
    subtitle: Optional[str] = None
    version_description: Optional[str] = None
    tint_color: Optional[str] = None
    screenshot_urls: Optional[List[str]] = None
    beta: bool = False

    # Keys this model does not know about, kept verbatim
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def parsed_version_date(self) -> Optional[date]:
        try:
            return parse_version_date(self.version_date)
        except ValueError:
            return None

    def urls(self) -> List[tuple]:
        """All URL fields as ``(field, url)`` pairs, in document order."""
        pairs = [("downloadURL", self.download_url), ("iconURL", self.icon_url)]
        if isinstance(self.screenshot_urls, list):
            pairs.extend(
                (f"screenshotURLs[{i}]", url) for i, url in enumerate(self.screenshot_urls)
            )
        return pairs

    def with_release(self, **changes) -> "AppEntry":
        """Return a copy with the given fields replaced."""
        fields = {
            "screenshot_urls": _copy_list(self.screenshot_urls),
            "extra": dict(self.extra),
        }
        fields.update(changes)
        return replace(self, **fields)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the wire shape, keys in published order."""
        values = {
            "beta": self.beta,
            "name": self.name,
            "bundleIdentifier": self.bundle_identifier,
            "developerName": self.developer_name,
            "subtitle": self.subtitle,
            "version": self.version,
            "versionDate": self.version_date,
            "versionDescription": self.version_description,
            "downloadURL": self.download_url,
            "localizedDescription": self.localized_description,
            "iconURL": self.icon_url,
            "tintColor": self.tint_color,
            "size": self.size,
            "screenshotURLs": _copy_list(self.screenshot_urls),
        }
        data = {k: values[k] for k in APP_KEYS if values[k] is not None}
        data.update(self.extra)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AppEntry":
        """
        Create from the wire shape.

        Values are taken as-is so that the validator can report type
        problems; only a non-object entry is rejected here.
        """
        if not isinstance(data, dict):
            raise CatalogParseError(
                "<document>", f"app entry must be an object, got {type(data).__name__}"
            )
        return cls(
            name=data.get("name", ""),
            bundle_identifier=data.get("bundleIdentifier", ""),
            developer_name=data.get("developerName", ""),
            version=data.get("version", ""),
            version_date=data.get("versionDate", ""),
            download_url=data.get("downloadURL", ""),
            localized_description=data.get("localizedDescription", ""),
            icon_url=data.get("iconURL", ""),
            size=data.get("size", 0),
            subtitle=data.get("subtitle"),
            version_description=data.get("versionDescription"),
            tint_color=data.get("tintColor"),
            screenshot_urls=_copy_list(data.get("screenshotURLs")),
            beta=data.get("beta", False),
            extra=_split_extra(data, APP_KEYS),
        )


@dataclass
class SourceCatalog:
    """A whole source document."""
    name: str
    identifier: str
    apps: List[AppEntry] = field(default_factory=list)
    extra: Dict[str, Any] = field(default_factory=dict)

    def bundle_identifiers(self) -> List[str]:
        return [app.bundle_identifier for app in self.apps]

    def find(self, bundle_id: str) -> Optional[AppEntry]:
        for app in self.apps:
            if app.bundle_identifier == bundle_id:
                return app
        return None

    def with_apps(self, apps: List[AppEntry]) -> "SourceCatalog":
        """Return a new snapshot with ``apps`` as its app list."""
        return SourceCatalog(
            name=self.name,
            identifier=self.identifier,
            apps=list(apps),
            extra=dict(self.extra),
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "name": self.name,
            "identifier": self.identifier,
            "apps": [app.to_dict() for app in self.apps],
        }
        data.update(self.extra)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SourceCatalog":
        if not isinstance(data, dict):
            raise CatalogParseError(
                "<document>", f"top level must be an object, got {type(data).__name__}"
            )
        apps = data.get("apps", [])
        if not isinstance(apps, list):
            raise CatalogParseError("<document>", "'apps' must be an array")
        return cls(
            name=data.get("name", ""),
            identifier=data.get("identifier", ""),
            apps=[AppEntry.from_dict(item) for item in apps],
            extra=_split_extra(data, CATALOG_KEYS),
        )
