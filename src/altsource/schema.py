"""
JSON Schema for source catalog documents (Draft 2020-12).

Structural rules only: required keys, JSON types, patterns and bounds.
Checks that need more than one value at a time (unique bundle identifiers)
or real parsing (dates, absolute URIs) live in the validator.
"""

from __future__ import annotations

import copy
from typing import Any, Dict

SCHEMA_ID = "https://altsource.invalid/schema/source.schema.json"

TINT_COLOR_PATTERN = r"^[0-9a-fA-F]{6}$"
REVERSE_DOMAIN_PATTERN = r"^[A-Za-z0-9][A-Za-z0-9-]*(\.[A-Za-z0-9][A-Za-z0-9_-]*)+$"

_NON_EMPTY = {"type": "string", "minLength": 1}
_URI = {"type": "string", "minLength": 1, "format": "uri"}

APP_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": [
        "name",
        "bundleIdentifier",
        "developerName",
        "version",
        "versionDate",
        "downloadURL",
        "localizedDescription",
        "iconURL",
        "size",
    ],
    "properties": {
        "beta": {"type": "boolean"},
        "name": _NON_EMPTY,
        "bundleIdentifier": {"type": "string", "pattern": REVERSE_DOMAIN_PATTERN},
        "developerName": _NON_EMPTY,
        "subtitle": {"type": "string"},
        "version": _NON_EMPTY,
        "versionDate": {"type": "string", "minLength": 1, "format": "date"},
        "versionDescription": {"type": "string"},
        "downloadURL": _URI,
        "localizedDescription": {"type": "string"},
        "iconURL": _URI,
        "tintColor": {"type": "string", "pattern": TINT_COLOR_PATTERN},
        "size": {"type": "integer", "minimum": 0},
        "screenshotURLs": {"type": "array", "items": _URI},
    },
    "additionalProperties": True,
}

SOURCE_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "$id": SCHEMA_ID,
    "title": "Source catalog",
    "type": "object",
    "required": ["name", "identifier", "apps"],
    "properties": {
        "name": _NON_EMPTY,
        "identifier": {"type": "string", "pattern": REVERSE_DOMAIN_PATTERN},
        "apps": {"type": "array", "items": APP_SCHEMA},
    },
    "additionalProperties": True,
}


def schema_document() -> Dict[str, Any]:
    """Return a copy of the schema that callers may modify."""
    return copy.deepcopy(SOURCE_SCHEMA)
