"""Tests for the headless runner."""

import json
import logging
import os
import signal
import threading
import time

import pytest

from tests.helpers import PROJECT_FILES
from theme_sync import service
from theme_sync.asset import Asset
from theme_sync.client import ThemeClient
from theme_sync.config import Config
from theme_sync.errors import WatchSetupError
from theme_sync.watcher import EventType, FileWatcher


@pytest.fixture(autouse=True)
def no_logging_setup(monkeypatch):
    monkeypatch.setattr(service, "setup_logging", lambda config: None)


def _wait_for_watcher(previous, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        watcher = service._active_watcher
        if watcher is not None and watcher is not previous and watcher.is_watching():
            return watcher
        time.sleep(0.02)
    raise AssertionError("watcher did not start")


def _replace_config(path, data):
    tmp = path.with_name(path.name + ".tmp")
    tmp.write_text(json.dumps(data), encoding="utf-8")
    os.replace(tmp, path)


def test_deploy_hands_every_asset_to_callback(config_file):
    calls = []
    count = service.deploy(Config(config_file), lambda c, a, e: calls.append((a, e)))
    assert count == len(PROJECT_FILES)
    assert sorted(a.key for a, _ in calls) == sorted(PROJECT_FILES)
    assert all(e is EventType.UPDATE for _, e in calls)


def test_deploy_applies_filter(config_file):
    cfg = Config(config_file)
    cfg.ignored_files = ["assets/"]
    calls = []
    count = service.deploy(cfg, lambda c, a, e: calls.append(a.key))
    assert count == len(PROJECT_FILES) - 2
    assert not any(key.startswith("assets/") for key in calls)


def test_log_change(caplog):
    client = ThemeClient("/theme", environment="staging")
    with caplog.at_level(logging.INFO, logger="theme_sync.service"):
        service.log_change(client, Asset(key="a.txt", value="abc"), EventType.UPDATE)
        service.log_change(client, Asset(key="b.txt"), EventType.REMOVE)
    assert "[staging] update a.txt (3 bytes)" in caplog.text
    assert "[staging] remove b.txt" in caplog.text


def test_watch_requires_directory(tmp_path):
    with pytest.raises(RuntimeError):
        service.watch(tmp_path / "empty.json")


def test_watch_reloads_on_config_change_and_stops(config_file, project):
    keys = []
    thread = threading.Thread(
        target=service.watch,
        args=(config_file, lambda c, a, e: keys.append(a.key)),
        daemon=True,
    )
    thread.start()
    try:
        first = _wait_for_watcher(None)

        _replace_config(
            config_file,
            {"directory": project.as_posix(), "debounce_ms": 50, "ignored_files": ["*.png"]},
        )
        _wait_for_watcher(first)
        assert not first.is_watching()

        (project / "snippets" / "snippet.js").write_text("changed", encoding="utf-8")
        deadline = time.monotonic() + 5
        while "snippets/snippet.js" not in keys and time.monotonic() < deadline:
            time.sleep(0.02)
        assert "snippets/snippet.js" in keys
    finally:
        service.stop()
        thread.join(timeout=5)
    assert not thread.is_alive()


def test_watch_stops_watcher_when_config_watch_fails(config_file, monkeypatch):
    created = []
    start = service._start_watcher

    def start_and_keep(cfg, callback):
        watcher = start(cfg, callback)
        created.append(watcher)
        return watcher

    def fail(self, path, reload_queue):
        raise WatchSetupError("config file vanished")

    monkeypatch.setattr(service, "_start_watcher", start_and_keep)
    monkeypatch.setattr(FileWatcher, "watch_config", fail)
    with pytest.raises(WatchSetupError):
        service.watch(config_file)
    assert len(created) == 1
    assert not created[0].is_watching()


def test_signal_handler_stops_watch_while_lock_is_held(config_file):
    thread = threading.Thread(
        target=service.watch, args=(config_file, lambda c, a, e: None), daemon=True
    )
    thread.start()
    try:
        watcher = _wait_for_watcher(None)
        with service._active_lock:
            service._handle_signal(signal.SIGTERM, None)
            assert service._stop_requested.is_set()
        assert watcher.wait(timeout=5)
    finally:
        service.stop()
        thread.join(timeout=5)
    assert not thread.is_alive()


def test_main_usage_errors(capsys):
    assert service.main(["bogus"]) == 2
    assert service.main(["deploy", "--verbose"]) == 2
    assert "Usage" in capsys.readouterr().out


def test_main_deploy(config_file):
    assert service.main(["deploy", "--config", str(config_file)]) == 0


def test_main_deploy_not_configured(tmp_path):
    assert service.main(["deploy", "--config", str(tmp_path / "new.json")]) == 1


def _write_config(path, directory):
    path.write_text(json.dumps({"directory": str(directory)}), encoding="utf-8")
    return str(path)


def test_main_deploy_missing_directory(tmp_path):
    cfg = _write_config(tmp_path / "theme_sync.json", tmp_path / "missing")
    assert service.main(["deploy", "--config", cfg]) == 1


def test_main_watch_missing_directory(tmp_path, monkeypatch, capsys):
    monkeypatch.setattr(service.signal, "signal", lambda signum, handler: None)
    cfg = _write_config(tmp_path / "theme_sync.json", tmp_path / "missing")
    assert service.main(["watch", "--config", cfg]) == 1
    assert "ERROR" in capsys.readouterr().out
