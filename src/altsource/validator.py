"""
Source Validator - Structural and semantic checks for source documents.

Validation never stops at the first problem: every issue found is
collected into a ValidationReport so a maintainer can fix a document in
one pass.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from jsonschema import Draft202012Validator

from common.exceptions import CatalogValidationError
from .models import SourceCatalog, URL_FIELDS, is_absolute_uri, parse_version_date
from .schema import SOURCE_SCHEMA

logger = logging.getLogger(__name__)

DUPLICATE_BUNDLE_ID = "DUPLICATE_BUNDLE_ID"
INVALID_URI = "INVALID_URI"
INVALID_DATE = "INVALID_DATE"
INVALID_SIZE = "INVALID_SIZE"

_schema_validator = Draft202012Validator(SOURCE_SCHEMA)


@dataclass
class ValidationIssue:
    """A single problem found in a document."""
    path: str
    code: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"path": self.path, "code": self.code, "message": self.message}

    def __str__(self) -> str:
        return f"{self.path or '/'}: {self.message} [{self.code}]"


@dataclass
class ValidationReport:
    """All issues found in one document."""
    issues: List[ValidationIssue] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.issues

    @property
    def errors(self) -> List[ValidationIssue]:
        return list(self.issues)

    def codes(self) -> List[str]:
        return [issue.code for issue in self.issues]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valid": self.ok,
            "issues": [issue.to_dict() for issue in self.issues],
        }


def _pointer(parts: Iterable[Any]) -> str:
    return "".join(f"/{p}" for p in parts)


def _sort_key(issue: ValidationIssue) -> tuple:
    # numeric segments sort numerically so /apps/10 follows /apps/2
    segments = tuple(
        (0, int(p), "") if p.isdigit() else (1, 0, p)
        for p in issue.path.split("/") if p
    )
    return segments, issue.code


def _schema_issues(data: Any) -> List[ValidationIssue]:
    issues = []
    for error in _schema_validator.iter_errors(data):
        parts = list(error.absolute_path)
        if error.validator == "required" and isinstance(error.instance, dict):
            missing = [
                key for key in error.validator_value
                if key not in error.instance and repr(key) in error.message
            ]
            if missing:
                parts.append(missing[0])
        issues.append(ValidationIssue(
            path=_pointer(parts),
            code=f"SCHEMA_{str(error.validator).upper()}",
            message=error.message,
        ))
    return issues


def _check_app(index: int, app: Dict[str, Any]) -> List[ValidationIssue]:
    issues = []
    base = f"/apps/{index}"

    for key in URL_FIELDS:
        value = app.get(key)
        if isinstance(value, str) and value and not is_absolute_uri(value):
            issues.append(ValidationIssue(
                f"{base}/{key}", INVALID_URI, f"{value!r} is not an absolute URI",
            ))

    screenshots = app.get("screenshotURLs")
    if isinstance(screenshots, list):
        for i, value in enumerate(screenshots):
            if isinstance(value, str) and value and not is_absolute_uri(value):
                issues.append(ValidationIssue(
                    f"{base}/screenshotURLs/{i}", INVALID_URI,
                    f"{value!r} is not an absolute URI",
                ))

    version_date = app.get("versionDate")
    if isinstance(version_date, str) and version_date:
        try:
            parse_version_date(version_date)
        except ValueError as e:
            issues.append(ValidationIssue(
                f"{base}/versionDate", INVALID_DATE,
                f"{version_date!r} is not a valid calendar date ({e})",
            ))

    size = app.get("size")
    # jsonschema accepts 1.0 as an integer; a byte count must be written as one.
    # fractional and negative values are already schema issues
    if isinstance(size, float) and size.is_integer() and size >= 0:
        issues.append(ValidationIssue(
            f"{base}/size", INVALID_SIZE, f"{size!r} is not an integer byte count",
        ))

    return issues


def _semantic_issues(data: Any) -> List[ValidationIssue]:
    if not isinstance(data, dict):
        return []
    apps = data.get("apps")
    if not isinstance(apps, list):
        return []

    issues = []
    seen: Dict[str, int] = {}
    for index, app in enumerate(apps):
        if not isinstance(app, dict):
            continue

        bundle_id = app.get("bundleIdentifier")
        if isinstance(bundle_id, str) and bundle_id:
            if bundle_id in seen:
                issues.append(ValidationIssue(
                    f"/apps/{index}/bundleIdentifier", DUPLICATE_BUNDLE_ID,
                    f"{bundle_id!r} is already used by /apps/{seen[bundle_id]}",
                ))
            else:
                seen[bundle_id] = index

        issues.extend(_check_app(index, app))
    return issues


def validate_document(data: Any) -> ValidationReport:
    """
    Validate a decoded source document.

    Args:
        data: The result of ``json.load`` on a source file

    Returns:
        ValidationReport with every issue, ordered by location.
    """
    issues = _schema_issues(data) + _semantic_issues(data)
    issues.sort(key=_sort_key)
    report = ValidationReport(issues)
    logger.debug(f"Validation finished with {len(issues)} issue(s)")
    return report


def validate_catalog(catalog: SourceCatalog) -> ValidationReport:
    """Validate a model instance in its serialized form."""
    return validate_document(catalog.to_dict())


def ensure_valid(data: Any, path: Optional[str] = None) -> ValidationReport:
    """
    Validate and raise on failure.

    Raises:
        CatalogValidationError: If any issue was found.
    """
    report = validate_document(data)
    if not report.ok:
        raise CatalogValidationError(report, path=path)
    return report
