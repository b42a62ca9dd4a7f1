"""
Atomic file writes for catalog snapshots.

A published catalog is replaced in one step: content goes to a temp file in
the same directory, is fsynced, and is renamed over the target. Readers see
either the previous snapshot or the new one, never a partial file.
"""

from __future__ import annotations

import json
import os
import shutil
import tempfile
from pathlib import Path
from typing import Any, Optional, Union


def _fsync_dir(directory: Path) -> None:
    try:
        dir_fd = os.open(str(directory), os.O_RDONLY | os.O_DIRECTORY)
    except (OSError, AttributeError):
        # O_DIRECTORY is POSIX only
        return
    try:
        os.fsync(dir_fd)
    except OSError:
        pass
    finally:
        os.close(dir_fd)


def atomic_write_text(path: Union[str, Path], content: str, mode: int = 0o644) -> None:
    """
    Write text content to a file atomically.

    Args:
        path: Destination file path
        content: Text content to write
        mode: File permissions (default 0o644)
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, temp_path = tempfile.mkstemp(
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp",
    )

    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())

        os.chmod(temp_path, mode)
        os.replace(temp_path, path)
    except BaseException:
        try:
            os.unlink(temp_path)
        except OSError:
            pass
        raise

    _fsync_dir(path.parent)


def atomic_write_json(
    path: Union[str, Path],
    data: Any,
    indent: int = 2,
    mode: int = 0o644,
) -> None:
    """
    Serialize ``data`` as UTF-8 JSON and write it atomically.

    Non-ASCII text is written as-is; the file ends with a newline.
    """
    content = json.dumps(data, indent=indent, ensure_ascii=False)
    atomic_write_text(path, content + "\n", mode)


def safe_backup(path: Union[str, Path], backup_suffix: str = ".bak") -> Optional[Path]:
    """
    Copy ``path`` next to itself before it is replaced.

    Returns:
        Path to the backup, or None when there was nothing to back up.
    """
    path = Path(path)
    if not path.exists():
        return None

    backup_path = path.with_name(path.name + backup_suffix)
    shutil.copy2(path, backup_path)
    return backup_path
