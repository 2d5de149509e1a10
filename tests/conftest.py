"""Pytest configuration and fixtures."""

import os
from pathlib import Path

import pytest

from tests.helpers import PROJECT_FILES


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """Generate a theme project with the files in PROJECT_FILES."""
    root = tmp_path / "project"
    for key, data in PROJECT_FILES.items():
        path = root / key
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
    return root


@pytest.fixture
def symlink_project(tmp_path: Path, project: Path) -> Path:
    """Return a symlink pointing at the generated project."""
    link = tmp_path / "symlink_project"
    try:
        os.symlink(project, link, target_is_directory=True)
    except (OSError, NotImplementedError):
        pytest.skip("symlinks not supported on this platform")
    return link


@pytest.fixture
def config_file(tmp_path: Path, project: Path) -> Path:
    """Write a config file, outside the project, pointing at it."""
    path = tmp_path / "conf" / "theme_sync.json"
    path.parent.mkdir()
    path.write_text(
        '{"directory": "%s", "debounce_ms": 50}' % project.as_posix(),
        encoding="utf-8",
    )
    return path
