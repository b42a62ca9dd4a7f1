"""
altsource Utility Modules

File helpers used when publishing catalog snapshots.
"""

from .atomic_write import (
    atomic_write_text,
    atomic_write_json,
    safe_backup,
)

__all__ = [
    "atomic_write_text",
    "atomic_write_json",
    "safe_backup",
]
