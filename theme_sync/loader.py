"""Directory loader for Theme Sync.

Walks a project folder and turns its files into :class:`Asset` objects.
"""

from __future__ import annotations

import base64
import logging
import os
from collections.abc import Callable

from theme_sync.asset import Asset
from theme_sync.errors import (
    AssetIsDirectoryError,
    AssetNotFoundError,
    PathNotDirectoryError,
)

logger = logging.getLogger(__name__)


def path_to_project(root: str, path: str) -> str:
    """Return *path* as a ``/``-separated key relative to *root*.

    Relative paths are taken to be project-relative already.
    """
    if os.path.isabs(path):
        path = os.path.relpath(os.path.normpath(path), os.path.abspath(root))
    return os.path.normpath(path).replace(os.sep, "/")


def _raise(exc: OSError) -> None:
    raise exc


def find_all_files(root: str) -> list[str]:
    """Return every regular file below *root*, sorted.

    Symlinked directories are followed; each real directory is visited once.

    Raises
    ------
    PathNotDirectoryError
        If *root* is not a directory.
    OSError
        If a directory below *root* cannot be listed.
    """
    if not os.path.isdir(root):
        raise PathNotDirectoryError("Path is not a directory")

    files = []  # type: list[str]
    seen = set()  # type: set[str]
    for dirpath, dirnames, filenames in os.walk(root, followlinks=True, onerror=_raise):
        real = os.path.realpath(dirpath)
        if real in seen:
            dirnames[:] = []
            continue
        seen.add(real)
        for name in filenames:
            path = os.path.join(dirpath, name)
            if os.path.isfile(path):
                files.append(path)
    files.sort()
    return files


def load_assets_from_directory(
    root: str,
    prefix: str = "",
    ignore: Callable[[str], bool] | None = None,
) -> list[Asset]:
    """Load every file under ``root/prefix`` that *ignore* does not reject.

    *ignore* receives the root-relative key. The first file that fails to
    load aborts the whole load.
    """
    base = os.path.join(root, prefix) if prefix else root
    assets = []  # type: list[Asset]
    for path in find_all_files(base):
        key = path_to_project(root, os.path.abspath(path))
        if ignore is not None and ignore(key):
            logger.debug("Ignoring %s", key)
            continue
        assets.append(load_asset(root, key))
    logger.debug("Loaded %d asset(s) from %s", len(assets), base)
    return assets


def load_asset(root: str, key: str) -> Asset:
    """Read ``root/key`` into an :class:`Asset`.

    Files that decode as UTF-8 and contain no NUL byte become text assets;
    anything else is base64-encoded into the attachment.

    Raises
    ------
    AssetIsDirectoryError
        If *key* names a directory.
    AssetNotFoundError
        If *key* does not exist.
    """
    key = path_to_project(root, key)
    path = os.path.join(root, *key.split("/"))
    if os.path.isdir(path):
        raise AssetIsDirectoryError(f"Asset is a directory: {key}")
    try:
        with open(path, "rb") as fh:
            data = fh.read()
    except FileNotFoundError as exc:
        raise AssetNotFoundError(f"Asset not found: {key}") from exc

    if b"\x00" not in data:
        try:
            return Asset(key=key, value=data.decode("utf-8"))
        except UnicodeDecodeError:
            pass
    return Asset(key=key, attachment=base64.b64encode(data).decode("ascii"))
