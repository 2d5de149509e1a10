"""Configuration management for Theme Sync.

Stores and retrieves project settings from a JSON config file, by
default in the platform-appropriate application data directory.
"""

import json
import logging
from pathlib import Path
from typing import Any

from theme_sync.platform_utils import (
    get_config_dir as _platform_config_dir,
)
from theme_sync.platform_utils import (
    get_log_path as _platform_log_path,
)

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "theme_sync.json"

DEFAULT_CONFIG: dict[str, Any] = {
    "directory": "",  # Project root to load and watch
    "environment": "development",
    "include_patterns": [],  # Glob patterns files must match (empty = all files)
    "ignored_files": [],  # Glob patterns to exclude (e.g. ["*.tmp", "node_modules/"])
    "ignores": [],  # Paths of files listing more exclude patterns, one per line
    "use_default_ignores": True,  # VCS folders, editor junk, config files
    # ---- watcher ----
    "notify": "",  # File touched once the first change has been handed off
    "debounce_ms": 400,  # Quiet period before a changed path is dispatched
    # ---- logging ----
    "log_level": "INFO",
    "max_log_size_mb": 10,  # rotate log when it exceeds this size
    "log_backup_count": 3,  # number of rotated log files to keep
}


def get_config_dir() -> Path:
    """Return the platform-appropriate application config directory."""
    return _platform_config_dir()


def get_config_path() -> Path:
    """Return the path to the default configuration file."""
    return get_config_dir() / CONFIG_FILENAME


def get_log_path() -> Path:
    """Return the path to the log file."""
    return _platform_log_path()


class Config:
    """Project configuration backed by a JSON file."""

    def __init__(self, path: Path | str | None = None):
        """Load config from *path*, falling back to the platform default."""
        self._path = Path(path) if path else get_config_path()
        self._data: dict[str, Any] = dict(DEFAULT_CONFIG)
        self.load()

    @property
    def path(self) -> Path:
        """Return the location of the backing JSON file."""
        return self._path

    # ---- persistence ----

    def load(self) -> None:
        """Load configuration from disk, applying defaults for missing keys."""
        if self._path.exists():
            try:
                with open(self._path, encoding="utf-8") as fh:
                    stored = json.load(fh)
                # Merge stored values over defaults so new keys get defaults
                self._data = {**DEFAULT_CONFIG, **stored}
                logger.info("Configuration loaded from %s", self._path)
            except (json.JSONDecodeError, OSError) as exc:
                logger.warning("Could not read config (%s); using defaults.", exc)
                self._data = dict(DEFAULT_CONFIG)
        else:
            self._data = dict(DEFAULT_CONFIG)
            self.save()
            logger.info("Created default configuration at %s", self._path)

    def save(self) -> None:
        """Persist the current configuration to disk."""
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with open(self._path, "w", encoding="utf-8") as fh:
                json.dump(self._data, fh, indent=2)
            logger.info("Configuration saved.")
        except OSError as exc:
            logger.error("Failed to save configuration: %s", exc)

    # ---- project ----

    @property
    def directory(self) -> str:
        """Return the project root directory."""
        return self._data["directory"]

    @directory.setter
    def directory(self, value: str) -> None:
        self._data["directory"] = str(value)

    @property
    def environment(self) -> str:
        """Return the name of the target environment."""
        return self._data.get("environment", "development")

    @environment.setter
    def environment(self, value: str) -> None:
        self._data["environment"] = value.strip() or "development"

    # ---- filtering ----

    @property
    def include_patterns(self) -> list[str]:
        """Glob patterns files must match to be synced (empty = all files)."""
        return self._data.get("include_patterns", [])

    @include_patterns.setter
    def include_patterns(self, value: list[str]) -> None:
        self._data["include_patterns"] = [p.strip() for p in value if p.strip()]

    @property
    def ignored_files(self) -> list[str]:
        """Return glob patterns used to skip files."""
        return self._data.get("ignored_files", [])

    @ignored_files.setter
    def ignored_files(self, value: list[str]) -> None:
        self._data["ignored_files"] = [p.strip() for p in value if p.strip()]

    @property
    def ignores(self) -> list[str]:
        """Return paths of ignore files holding extra exclude patterns."""
        return self._data.get("ignores", [])

    @ignores.setter
    def ignores(self, value: list[str]) -> None:
        self._data["ignores"] = [p.strip() for p in value if p.strip()]

    @property
    def use_default_ignores(self) -> bool:
        """Return whether the built-in exclude list applies."""
        return bool(self._data.get("use_default_ignores", True))

    @use_default_ignores.setter
    def use_default_ignores(self, value: bool) -> None:
        self._data["use_default_ignores"] = value

    # ---- watcher ----

    @property
    def notify(self) -> str:
        """Return the notify file path (blank = none)."""
        return self._data.get("notify", "")

    @notify.setter
    def notify(self, value: str) -> None:
        self._data["notify"] = value.strip()

    @property
    def debounce_ms(self) -> int:
        """Return the debounce window in milliseconds."""
        return int(self._data.get("debounce_ms", 400))

    @debounce_ms.setter
    def debounce_ms(self, value: int) -> None:
        """Set the debounce window (minimum 0 ms)."""
        self._data["debounce_ms"] = max(0, int(value))

    # ---- logging ----

    @property
    def log_level(self) -> str:
        """Return the current logging level name."""
        return self._data.get("log_level", "INFO")

    @log_level.setter
    def log_level(self, value: str) -> None:
        self._data["log_level"] = value

    @property
    def max_log_size_mb(self) -> int:
        """Return the maximum log file size in MB before rotation."""
        return int(self._data.get("max_log_size_mb", 10))

    @max_log_size_mb.setter
    def max_log_size_mb(self, value: int) -> None:
        """Set the maximum log file size in MB (minimum 1)."""
        self._data["max_log_size_mb"] = max(1, int(value))

    @property
    def log_backup_count(self) -> int:
        """Return the number of rotated log backups to keep."""
        return int(self._data.get("log_backup_count", 3))

    @log_backup_count.setter
    def log_backup_count(self, value: int) -> None:
        """Set the number of rotated log backups to keep."""
        self._data["log_backup_count"] = max(0, int(value))

    # ---- convenience ----

    def is_configured(self) -> bool:
        """Return True when a project directory is set."""
        return bool(self.directory)
