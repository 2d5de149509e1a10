"""
Headless runner for Theme Sync.

    python -m theme_sync deploy [--config PATH]   Hand every project file to the uploader
    python -m theme_sync watch  [--config PATH]   Watch the project until Ctrl-C

While watching, a write to the config file restarts the watcher from
scratch with the new settings.
"""

from __future__ import annotations

import logging
import logging.handlers
import queue
import signal
import sys
import threading
from pathlib import Path

from theme_sync import __app_name__, __version__
from theme_sync.asset import Asset
from theme_sync.client import ThemeClient
from theme_sync.config import Config, get_log_path
from theme_sync.errors import ThemeSyncError, WatchSetupError
from theme_sync.filter import PathFilter
from theme_sync.loader import load_assets_from_directory
from theme_sync.watcher import ChangeCallback, EventType, FileWatcher

logger = logging.getLogger(__name__)

_logging_configured = False
_active_lock = threading.Lock()
_active_watcher: FileWatcher | None = None
_stop_requested = threading.Event()


def setup_logging(config: Config) -> None:
    """Configure rotating file log and stderr handler (once per process)."""
    global _logging_configured
    if _logging_configured:
        return
    _logging_configured = True

    level = getattr(logging, config.log_level.upper(), logging.INFO)
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    fmt = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    # Rotating file handler
    max_bytes = config.max_log_size_mb * 1024 * 1024
    fh = logging.handlers.RotatingFileHandler(
        str(get_log_path()),
        maxBytes=max_bytes,
        backupCount=config.log_backup_count,
        encoding="utf-8",
    )
    fh.setLevel(level)
    fh.setFormatter(fmt)
    root_logger.addHandler(fh)

    # Stderr handler
    sh = logging.StreamHandler(sys.stderr)
    sh.setLevel(level)
    sh.setFormatter(fmt)
    root_logger.addHandler(sh)


def log_change(client: ThemeClient, asset: Asset, event: EventType) -> None:
    """Default change callback: log what would be sent to the remote store."""
    if event is EventType.REMOVE:
        logger.info("[%s] remove %s", client.environment, asset.key)
    else:
        logger.info(
            "[%s] update %s (%d bytes)", client.environment, asset.key, asset.size()
        )


def deploy(config: Config, callback: ChangeCallback = log_change) -> int:
    """Hand every non-ignored project file to *callback* as an update.

    Returns the number of assets dispatched.
    """
    client = ThemeClient.from_config(config)
    path_filter = PathFilter.from_config(config)
    assets = load_assets_from_directory(config.directory, "", path_filter.ignore)
    for asset in assets:
        callback(client, asset, EventType.UPDATE)
    logger.info("Deployed %d asset(s) from %s", len(assets), config.directory)
    return len(assets)


def _start_watcher(config: Config, callback: ChangeCallback) -> FileWatcher:
    client = ThemeClient.from_config(config)
    return FileWatcher(
        client,
        notify_file=config.notify,
        wait_notify=bool(config.notify),
        path_filter=PathFilter.from_config(config),
        callback=callback,
        debounce=config.debounce_ms / 1000.0,
    )


def watch(
    config_path: Path | str | None = None,
    callback: ChangeCallback = log_change,
) -> None:
    """Watch the configured project until stopped.

    Each config change rebuilds the filter and the watcher from scratch.
    """
    global _active_watcher
    _stop_requested.clear()
    while not _stop_requested.is_set():
        cfg = Config(config_path)
        setup_logging(cfg)
        if not cfg.is_configured():
            logger.error("Cannot watch: no project directory configured in %s", cfg.path)
            raise RuntimeError(f"{__app_name__} is not configured.")

        reload_queue = queue.Queue()  # type: queue.Queue[bool]
        watcher = _start_watcher(cfg, callback)
        try:
            watcher.watch_config(str(cfg.path), reload_queue)
        except WatchSetupError:
            watcher.stop_watching()
            raise
        with _active_lock:
            _active_watcher = watcher
        if _stop_requested.is_set():
            watcher.stop_watching()

        watcher.wait()
        with _active_lock:
            _active_watcher = None

        try:
            reload_queue.get_nowait()
        except queue.Empty:
            break
        logger.info("Reloading configuration from %s", cfg.path)


def stop() -> None:
    """Stop the running :func:`watch` loop, if any."""
    _stop_requested.set()
    with _active_lock:
        watcher = _active_watcher
    if watcher is not None:
        watcher.stop_watching()


def _handle_signal(sig, frame) -> None:
    """Signal handler: stop the watch loop from a helper thread.

    The handler runs on the main thread between bytecodes, possibly while
    that thread holds one of the locks :func:`stop` needs.
    """
    _stop_requested.set()
    threading.Thread(target=stop, name="ThemeSyncStop", daemon=True).start()


# ======================================================================
# CLI entry
# ======================================================================

def main(argv: list[str] | None = None) -> int:
    """Entry point for the ``deploy`` and ``watch`` commands."""
    args = list(sys.argv[1:] if argv is None else argv)
    cmd = args.pop(0) if args else ""

    config_path = None
    if args[:1] == ["--config"] and len(args) > 1:
        config_path = args[1]
    elif args:
        _show_help()
        return 2

    if cmd == "deploy":
        cfg = Config(config_path)
        setup_logging(cfg)
        if not cfg.is_configured():
            logger.error("Cannot deploy: no project directory configured in %s", cfg.path)
            return 1
        try:
            deploy(cfg)
        except (ThemeSyncError, OSError) as exc:
            logger.error("Deploy failed: %s", exc)
            return 1
        return 0

    if cmd == "watch":
        signal.signal(signal.SIGINT, _handle_signal)
        signal.signal(signal.SIGTERM, _handle_signal)

        print(f"{__app_name__} {__version__} watching (press Ctrl-C to stop)…")
        try:
            watch(config_path)
        except RuntimeError as exc:
            print(f"ERROR: {exc}")
            return 1
        except (ThemeSyncError, OSError) as exc:
            logger.error("Watch failed: %s", exc)
            print(f"ERROR: {exc}")
            return 1
        print(f"{__app_name__} stopped.")
        return 0

    _show_help()
    return 2


def _show_help() -> None:
    print(f"{__app_name__} {__version__}")
    print()
    print("Usage:")
    print("  python -m theme_sync deploy [--config PATH]   Send every project file")
    print("  python -m theme_sync watch  [--config PATH]   Watch for changes (Ctrl-C to stop)")
