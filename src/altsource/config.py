"""
Tool configuration.

Settings live in ``$XDG_CONFIG_HOME/altsource/config.json``
(``~/.config/altsource/config.json`` by default). A missing file means
defaults; a file with wrong types is an error.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

from common.exceptions import InvalidConfigError

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "altsource/1.0"


def default_config_path() -> Path:
    """Location of the per-user config file."""
    base = os.environ.get("XDG_CONFIG_HOME")
    config_home = Path(base) if base else Path.home() / ".config"
    return config_home / "altsource" / "config.json"


@dataclass
class ToolConfig:
    """Network settings used by the enricher."""
    timeout: float = 30.0
    user_agent: str = DEFAULT_USER_AGENT
    max_retries: int = 3
    retry_delay: float = 1.0
    follow_redirects: bool = True

    def __post_init__(self):
        self._check()

    def _check(self) -> None:
        if isinstance(self.timeout, bool) or not isinstance(self.timeout, (int, float)):
            raise InvalidConfigError("timeout", self.timeout, "must be a number")
        if self.timeout <= 0:
            raise InvalidConfigError("timeout", self.timeout, "must be positive")
        if not isinstance(self.user_agent, str) or not self.user_agent.strip():
            raise InvalidConfigError("user_agent", self.user_agent, "must be a non-empty string")
        if isinstance(self.max_retries, bool) or not isinstance(self.max_retries, int):
            raise InvalidConfigError("max_retries", self.max_retries, "must be an integer")
        if self.max_retries < 1:
            raise InvalidConfigError("max_retries", self.max_retries, "must be at least 1")
        if isinstance(self.retry_delay, bool) or not isinstance(self.retry_delay, (int, float)):
            raise InvalidConfigError("retry_delay", self.retry_delay, "must be a number")
        if self.retry_delay < 0:
            raise InvalidConfigError("retry_delay", self.retry_delay, "must not be negative")
        if not isinstance(self.follow_redirects, bool):
            raise InvalidConfigError("follow_redirects", self.follow_redirects, "must be true or false")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ToolConfig":
        known = {f.name for f in fields(cls)}
        for key in data:
            if key not in known:
                logger.warning(f"Ignoring unknown config key: {key}")
        return cls(**{k: v for k, v in data.items() if k in known})

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "ToolConfig":
        """
        Load configuration from disk.

        Args:
            path: Explicit config file; when given it must exist

        Returns:
            ToolConfig, defaults when no file is present.
        """
        explicit = path is not None
        path = Path(path) if explicit else default_config_path()

        if not path.exists():
            if explicit:
                raise InvalidConfigError("config", str(path), "file does not exist")
            logger.debug(f"No config at {path}, using defaults")
            return cls()

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise InvalidConfigError("config", str(path), f"unreadable: {e}") from e

        if not isinstance(data, dict):
            raise InvalidConfigError("config", str(path), "top level must be an object")

        logger.debug(f"Loaded config from {path}")
        return cls.from_dict(data)
