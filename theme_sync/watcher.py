"""File system watcher for Theme Sync.

Uses the watchdog library to monitor every directory of a theme project,
coalesces bursts of changes per path, and hands each settled change to a
callback together with a freshly loaded asset. A second observer can watch
the config file; a write to it asks the caller to reload and stops the
watcher.

Watchdog delivers events on its own threads. Handlers only enqueue them on
the watcher's inbox; a single loop thread does everything else, so
callbacks always run one at a time on that thread.
"""

from __future__ import annotations

import enum
import logging
import os
import queue
import threading
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from theme_sync.asset import Asset
from theme_sync.errors import (
    AssetIsDirectoryError,
    AssetNotFoundError,
    WatchSetupError,
)
from theme_sync.filter import PathFilter
from theme_sync.ledger import EventLedger
from theme_sync.loader import load_asset, path_to_project

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE = 0.4  # seconds a path must stay quiet before dispatch

# Inbox sources
_TREE = "tree"
_CONFIG = "config"
_FLUSH = "flush"
_STOP = "stop"


class EventType(enum.Enum):
    """What happened to an asset."""

    UPDATE = "update"
    REMOVE = "remove"


ChangeCallback = Callable[[Any, Asset, EventType], None]


def event_type_for(event: FileSystemEvent) -> EventType | None:
    """Map a watchdog event to an :class:`EventType`.

    Returns None for kinds that do not change content (opened, closed...).
    """
    if event.event_type in ("created", "modified"):
        return EventType.UPDATE
    if event.event_type in ("deleted", "moved"):
        return EventType.REMOVE
    return None


class _TreeHandler(FileSystemEventHandler):
    """Forwards project file events to the watcher's inbox."""

    def __init__(self, inbox: queue.Queue):
        super().__init__()
        self._inbox = inbox

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or event_type_for(event) is None:
            return
        self._inbox.put((_TREE, event))


class _ConfigHandler(FileSystemEventHandler):
    """Forwards writes to a single config file to the watcher's inbox."""

    def __init__(self, inbox: queue.Queue, config_path: str):
        super().__init__()
        self._inbox = inbox
        self.config_path = config_path

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        if event.event_type == "moved":
            target = event.dest_path
        elif event.event_type in ("created", "modified"):
            target = event.src_path
        else:
            return
        if os.path.realpath(os.fsdecode(target)) == self.config_path:
            self._inbox.put((_CONFIG, event))


@dataclass
class _PendingChange:
    path: str
    event_type: EventType
    generation: int
    timer: threading.Timer


class FileWatcher:
    """Watches a theme project and dispatches debounced changes.

    Usage:
        watcher = FileWatcher(client, callback=upload)
        watcher.watch_config("theme_sync.json", reload_queue)
        ...
        watcher.stop_watching()

    Parameters
    ----------
    client : ThemeClient
        Context handed back to *callback*; its ``directory`` is the
        project root.
    notify_file : str
        File to touch after the first successful dispatch.
    wait_notify : bool
        Whether *notify_file* should be touched at all.
    path_filter : PathFilter, optional
        Paths it ignores are neither watched nor dispatched.
    callback : callable, optional
        Invoked as ``callback(client, asset, event_type)`` once per settled
        change, never while an internal lock is held.
    debounce : float
        Seconds a path must stay quiet before its change is dispatched.

    Raises
    ------
    WatchSetupError
        If the project tree cannot be watched.
    """

    def __init__(
        self,
        client: Any,
        notify_file: str = "",
        wait_notify: bool = False,
        path_filter: PathFilter | None = None,
        callback: ChangeCallback | None = None,
        debounce: float = DEFAULT_DEBOUNCE,
    ):
        self._client = client
        self.root = os.path.abspath(client.directory)
        self._filter = path_filter or PathFilter(self.root)
        self._callback = callback
        self._notify_file = notify_file
        self._wait_notify = wait_notify
        self._debounce = max(0.0, debounce)
        self.recorded_events = EventLedger()

        self._inbox = queue.Queue()  # type: queue.Queue[tuple[str, Any]]
        self._done = threading.Event()
        self._state_lock = threading.Lock()
        self._running = False
        # key -> latest change not yet dispatched
        self._lock = threading.Lock()
        self._pending = {}  # type: dict[str, _PendingChange]
        self._generation = 0
        # real directory -> path of that directory under the project root
        self._aliases = {}  # type: dict[str, str]

        self._tree_handler = _TreeHandler(self._inbox)
        self._observer = Observer()
        self._config_handler: _ConfigHandler | None = None
        self._config_observer: Any | None = None
        self._reload_queue: queue.Queue | None = None

        self._watch_tree()
        try:
            self._observer.start()
        except OSError as exc:
            self._observer.unschedule_all()
            raise WatchSetupError(f"Could not start watching {self.root}: {exc}") from exc

        with self._state_lock:
            self._running = True
        self._thread = threading.Thread(
            target=self._consume, daemon=True, name="FileWatcher"
        )
        self._thread.start()
        logger.info(
            "Watching '%s' (%d directories, debounce=%.2fs)",
            self.root,
            len(self._aliases),
            self._debounce,
        )

    # ---- setup ----

    def _watch_tree(self) -> None:
        """Schedule a non-recursive watch on every directory not excluded.

        Symlinked directories are resolved first; watching the link itself
        would never report changes.
        """
        if not os.path.isdir(self.root):
            raise WatchSetupError(f"Project directory does not exist: {self.root}")

        for dirpath, dirnames, _ in os.walk(self.root, followlinks=True):
            real = os.path.realpath(dirpath)
            if real in self._aliases:
                dirnames[:] = []
                continue
            self._aliases[real] = dirpath
            try:
                self._observer.schedule(self._tree_handler, real, recursive=False)
            except OSError as exc:
                raise WatchSetupError(f"Could not watch {dirpath}: {exc}") from exc
            logger.debug("Watching directory %s", real)

            kept = []
            for name in sorted(dirnames):
                key = path_to_project(self.root, os.path.join(dirpath, name))
                if self._filter.ignore_dir(key):
                    logger.debug("Not watching excluded directory %s", key)
                else:
                    kept.append(name)
            dirnames[:] = kept

    def watch_config(self, path: str, reload_queue: queue.Queue) -> None:
        """Watch the config file at *path*.

        The first write to it puts ``True`` on *reload_queue* and stops the
        watcher.

        Raises
        ------
        WatchSetupError
            If *path* is not an existing file or cannot be watched.
        """
        if self._done.is_set():
            raise WatchSetupError("Cannot watch config on a stopped watcher")
        config_path = os.path.realpath(path)
        if not os.path.isfile(config_path):
            raise WatchSetupError(f"Config file does not exist: {path}")

        handler = _ConfigHandler(self._inbox, config_path)
        observer = Observer()
        try:
            observer.schedule(handler, os.path.dirname(config_path), recursive=False)
            observer.start()
        except OSError as exc:
            observer.unschedule_all()
            raise WatchSetupError(f"Could not watch config file {path}: {exc}") from exc

        with self._state_lock:
            stopped = self._done.is_set()
            previous = None if stopped else self._config_observer
            if not stopped:
                self._config_handler = handler
                self._config_observer = observer
                self._reload_queue = reload_queue
        if stopped:
            observer.stop()
            raise WatchSetupError("Cannot watch config on a stopped watcher")
        if previous is not None:
            previous.stop()
        logger.info("Watching config file %s", config_path)

    # ---- lifecycle ----

    def is_watching(self) -> bool:
        """Return whether the watcher is active."""
        with self._state_lock:
            return self._running

    def stop_watching(self) -> None:
        """Stop watching and release all watches.

        Safe to call more than once and from any thread. A dispatch already
        in progress is allowed to finish; nothing new is dispatched.
        """
        with self._state_lock:
            if self._done.is_set():
                return
            self._running = False
            self._done.set()
            observers = [self._observer, self._config_observer]
        self._inbox.put((_STOP, None))

        with self._lock:
            pending = list(self._pending.values())
            self._pending.clear()
        for change in pending:
            change.timer.cancel()
        self.recorded_events.clear()

        for observer in observers:
            if observer is None:
                continue
            observer.unschedule_all()
            observer.stop()
            if observer.is_alive() and observer is not threading.current_thread():
                observer.join(timeout=5)
        if self._thread.is_alive() and self._thread is not threading.current_thread():
            self._thread.join(timeout=5)
        logger.info("Watcher stopped.")

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the watcher stops; return False on timeout."""
        return self._done.wait(timeout)

    # ---- status ----

    @property
    def watched_directories(self) -> list[str]:
        """Return the real paths of all watched project directories."""
        return sorted(self._aliases)

    @property
    def pending_count(self) -> int:
        """Return the number of paths waiting for their debounce to expire."""
        with self._lock:
            return len(self._pending)

    # ---- event loop ----

    def _consume(self) -> None:
        """Drain the inbox until the watcher stops."""
        while not self._done.is_set():
            source, payload = self._inbox.get()
            if self._done.is_set():
                break
            try:
                if source == _TREE:
                    self.on_event(payload)
                elif source == _FLUSH:
                    self._flush(*payload)
                elif source == _CONFIG:
                    self.on_reload()
            except Exception:
                logger.exception("Error handling %s event", source)
        logger.debug("Watcher loop exited.")

    def _project_path(self, path: str | bytes) -> str:
        """Map a reported path back under the project root."""
        path = os.path.abspath(os.fsdecode(path))
        parent, name = os.path.split(path)
        logical = self._aliases.get(parent)
        if logical is not None:
            return os.path.join(logical, name)
        return path

    def on_event(self, event: FileSystemEvent) -> None:
        """Record a raw event and restart the debounce timer for its path.

        A move also reports its destination as updated.
        """
        if event.is_directory:
            return
        event_type = event_type_for(event)
        if event_type is None:
            return
        self._queue_change(event.src_path, event_type)
        if event.event_type == "moved" and event.dest_path:
            self._queue_change(event.dest_path, EventType.UPDATE)

    def _queue_change(self, raw_path: str | bytes, event_type: EventType) -> None:
        path = self._project_path(raw_path)
        key = path_to_project(self.root, path)
        if key == ".." or key.startswith("../"):
            logger.debug("Ignoring change outside the project: %s", path)
            return
        if self._filter.ignore(key):
            return

        self.recorded_events.record(path)
        with self._lock:
            self._generation += 1
            generation = self._generation
            timer = threading.Timer(
                self._debounce, self._inbox.put, args=((_FLUSH, (key, generation)),)
            )
            timer.daemon = True
            previous = self._pending.get(key)
            self._pending[key] = _PendingChange(path, event_type, generation, timer)
        if previous is not None:
            previous.timer.cancel()
        timer.start()

    def _flush(self, key: str, generation: int) -> None:
        """Dispatch *key* if no newer event has re-armed its timer."""
        with self._lock:
            change = self._pending.get(key)
            if change is None or change.generation != generation:
                return
            del self._pending[key]
        self.recorded_events.discard(change.path)
        if self.is_watching():
            self._dispatch(key, change.event_type)

    def handle_event(self, event: FileSystemEvent) -> None:
        """Dispatch a single raw event immediately, without debouncing."""
        event_type = event_type_for(event)
        if event.is_directory or event_type is None:
            return
        key = path_to_project(self.root, self._project_path(event.src_path))
        self._dispatch(key, event_type)

    def _dispatch(self, key: str, event_type: EventType) -> None:
        if event_type is EventType.UPDATE:
            try:
                asset = load_asset(self.root, key)
            except (AssetNotFoundError, AssetIsDirectoryError) as exc:
                logger.debug("Skipping %s: %s", key, exc)
                return
        else:
            asset = Asset(key=key)

        logger.info("Dispatching %s for %s", event_type.value, key)
        if self._callback is not None:
            self._callback(self._client, asset, event_type)
        self.touch_notify_file()

    def touch_notify_file(self) -> None:
        """Create the notify file if one was requested and not yet touched."""
        if not self._wait_notify or not self._notify_file:
            return
        self._wait_notify = False
        try:
            Path(self._notify_file).touch()
            logger.info("Touched notify file %s", self._notify_file)
        except OSError as exc:
            logger.error("Could not touch notify file %s: %s", self._notify_file, exc)

    def on_reload(self) -> None:
        """Signal a config reload and stop watching."""
        if not self.is_watching():
            return
        logger.info("Config file changed; requesting reload.")
        if self._reload_queue is not None:
            self._reload_queue.put(True)
        self.stop_watching()
