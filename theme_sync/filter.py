"""Include/exclude path filter shared by the loader and the watcher."""

from __future__ import annotations

import fnmatch
import logging
import os
import re
from collections.abc import Iterable
from typing import TYPE_CHECKING

from theme_sync.loader import path_to_project

if TYPE_CHECKING:
    from theme_sync.config import Config

logger = logging.getLogger(__name__)

# Applied when ``use_defaults`` is set (the config's ``use_default_ignores``)
DEFAULT_EXCLUDES = (
    ".git/",
    ".hg/",
    ".bzr/",
    ".svn/",
    "_darcs/",
    "CVS/",
    "node_modules/",
    ".sass-cache/",
    "*.sublime-project",
    "*.sublime-workspace",
    ".DS_Store",
    "Thumbs.db",
    "desktop.ini",
    "*.swp",
    "*~",
    "config.yml",
    "theme_sync.json",
)


def _is_regex(pattern: str) -> bool:
    return len(pattern) > 2 and pattern.startswith("/") and pattern.endswith("/")


class _Pattern:
    """One compiled include/exclude rule."""

    def __init__(self, raw: str):
        self.raw = raw
        self._regex = re.compile(raw[1:-1]) if _is_regex(raw) else None
        self._dir_only = self._regex is None and raw.endswith("/")
        self._glob = raw.rstrip("/").lower()

    def matches(self, key: str) -> bool:
        if self._regex is not None:
            return self._regex.search(key) is not None
        lowered = key.lower()
        parts = lowered.split("/")
        if self._dir_only:
            # Any directory component, or a leading run of components
            dirs = parts if key.endswith("/") else parts[:-1]
            if any(fnmatch.fnmatch(part, self._glob) for part in dirs if part):
                return True
            return any(
                fnmatch.fnmatch("/".join(dirs[:i]), self._glob)
                for i in range(1, len(dirs) + 1)
            )
        return fnmatch.fnmatch(lowered, self._glob) or fnmatch.fnmatch(
            parts[-1], self._glob
        )


class PathFilter:
    """Decides which project paths are ignored.

    An exclude match always wins. When include patterns are given a file
    must match at least one of them. With no patterns nothing is ignored.

    Patterns are case-insensitive globs matched against the project-relative
    key and its basename. A trailing ``/`` restricts a pattern to directory
    names; ``/regex/`` is searched in the key.
    """

    def __init__(
        self,
        root: str = "",
        includes: Iterable[str] = (),
        excludes: Iterable[str] = (),
        use_defaults: bool = False,
    ):
        self.root = root
        self._includes = tuple(_Pattern(p) for p in includes if p.strip())
        exclude_list = [p for p in excludes if p.strip()]
        if use_defaults:
            exclude_list.extend(DEFAULT_EXCLUDES)
        self._excludes = tuple(_Pattern(p) for p in exclude_list)

    @classmethod
    def from_config(cls, config: Config) -> PathFilter:
        """Build a filter from the config's patterns and ignore files."""
        excludes = list(config.ignored_files)
        for ignore_file in config.ignores:
            excludes.extend(read_ignore_file(ignore_file))
        return cls(
            config.directory,
            includes=config.include_patterns,
            excludes=excludes,
            use_defaults=config.use_default_ignores,
        )

    @property
    def includes(self) -> list[str]:
        return [p.raw for p in self._includes]

    @property
    def excludes(self) -> list[str]:
        return [p.raw for p in self._excludes]

    def _key(self, path: str) -> str:
        if self.root:
            return path_to_project(self.root, path)
        return path.replace(os.sep, "/")

    def ignore(self, path: str) -> bool:
        """Return True if the file at *path* should be skipped."""
        key = self._key(path)
        for pattern in self._excludes:
            if pattern.matches(key):
                logger.debug("Excluding %s (matches %s)", key, pattern.raw)
                return True
        if self._includes and not any(p.matches(key) for p in self._includes):
            logger.debug("Ignoring %s (does not match any include pattern)", key)
            return True
        return False

    def ignore_dir(self, path: str) -> bool:
        """Return True if the directory at *path* should not be watched."""
        key = self._key(path)
        if key in ("", "."):
            return False
        return any(p.matches(key + "/") for p in self._excludes)

    def __call__(self, path: str) -> bool:
        return self.ignore(path)


def read_ignore_file(path: str) -> list[str]:
    """Return the patterns listed in an ignore file.

    Blank lines and ``#`` comments are skipped.
    """
    with open(path, encoding="utf-8") as fh:
        lines = [line.strip() for line in fh]
    patterns = [line for line in lines if line and not line.startswith("#")]
    logger.debug("Read %d pattern(s) from %s", len(patterns), path)
    return patterns
