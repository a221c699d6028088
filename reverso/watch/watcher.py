"""Debounced file watching on top of watchdog."""

from __future__ import annotations

import os
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from ..constants import DEFAULT_EXCLUDE_PATTERNS, DEFAULT_INCLUDE_PATTERNS, DEFAULT_WATCH_DEBOUNCE_MS
from ..events import ChangeType
from ..logging import get_logger
from ..parser.files import find_source_files, is_included, relative_posix

_JOIN_TIMEOUT = 5.0


@dataclass(frozen=True)
class WatchEvent:
    type: ChangeType
    path: str
    timestamp: float


WatchEventHandler = Callable[[WatchEvent], None]
ErrorHandler = Callable[[BaseException], None]


class _EventRelay(FileSystemEventHandler):
    """Translates watchdog callbacks into add/change/unlink notifications."""

    def __init__(self, watcher: "FileWatcher") -> None:
        super().__init__()
        self._watcher = watcher

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._watcher._handle_event("add", os.fsdecode(event.src_path))

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._watcher._handle_event("change", os.fsdecode(event.src_path))

    def on_deleted(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._watcher._handle_event("unlink", os.fsdecode(event.src_path))

    def on_moved(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        self._watcher._handle_event("unlink", os.fsdecode(event.src_path))
        self._watcher._handle_event("add", os.fsdecode(event.dest_path))


class FileWatcher:
    """Watches a source directory and reports debounced per-file changes.

    Each path has its own timer: further events on the same path within the
    debounce window restart it and the last event type wins. Events for
    different paths never delay each other. ``debounce`` is in milliseconds.
    """

    def __init__(
        self,
        src_dir: Path,
        *,
        include: Optional[Sequence[str]] = None,
        exclude: Optional[Sequence[str]] = None,
        debounce: int = DEFAULT_WATCH_DEBOUNCE_MS,
        on_event: Optional[WatchEventHandler] = None,
        on_error: Optional[ErrorHandler] = None,
        on_ready: Optional[Callable[[], None]] = None,
        accepts: Optional[Callable[[str], bool]] = None,
        observer_factory: Callable[[], object] = Observer,
        timer_factory: Callable[..., threading.Timer] = threading.Timer,
    ) -> None:
        self.src_dir = Path(src_dir).expanduser().resolve()
        self.include = list(include) if include is not None else list(DEFAULT_INCLUDE_PATTERNS)
        self.exclude = list(exclude) if exclude is not None else list(DEFAULT_EXCLUDE_PATTERNS)
        self.debounce = max(0, int(debounce))
        self.on_event = on_event
        self.on_error = on_error
        self.on_ready = on_ready
        self._accepts = accepts
        self._observer_factory = observer_factory
        self._timer_factory = timer_factory
        self._observer: Optional[object] = None
        self._timers: Dict[str, threading.Timer] = {}
        self._lock = threading.Lock()
        self._ready = False
        self.logger = get_logger("watch")

    def start(self) -> None:
        """Begin watching; a second call while running does nothing."""
        if self._observer is not None:
            return
        observer = self._observer_factory()
        try:
            observer.schedule(_EventRelay(self), str(self.src_dir), recursive=True)
            observer.start()
        except Exception as exc:
            self.logger.debug("Failed to start watching %s", self.src_dir, exc_info=True)
            self._report_error(exc)
            return
        self._observer = observer
        self._ready = True
        self.logger.debug("Watching %s (debounce %d ms)", self.src_dir, self.debounce)
        if self.on_ready is not None:
            self.on_ready()

    def stop(self) -> None:
        """Cancel pending timers and close the observer. Safe to call repeatedly."""
        with self._lock:
            timers = list(self._timers.values())
            self._timers.clear()
        for timer in timers:
            timer.cancel()

        observer, self._observer = self._observer, None
        self._ready = False
        if observer is None:
            return
        try:
            observer.stop()
            observer.join(_JOIN_TIMEOUT)
        except Exception as exc:
            self._report_error(exc)
        self.logger.debug("Stopped watching %s", self.src_dir)

    def is_running(self) -> bool:
        return self._observer is not None

    def ready(self) -> bool:
        return self._ready

    def pending(self) -> List[str]:
        """Paths with a debounce timer still waiting to fire."""
        with self._lock:
            return list(self._timers)

    def watched_paths(self) -> List[str]:
        """Files currently covered by the watch, empty when not running."""
        if self._observer is None:
            return []
        try:
            return [
                str(path)
                for path in find_source_files(self.src_dir, self.include, self.exclude)
                if self.accepts(str(path))
            ]
        except OSError as exc:
            self._report_error(exc)
            return []

    def accepts(self, path: str) -> bool:
        if self._accepts is not None:
            return self._accepts(path)
        return is_included(relative_posix(Path(path), self.src_dir), self.include, self.exclude)

    def _handle_event(self, change_type: ChangeType, path: str) -> None:
        if self._observer is None or not self.accepts(path):
            return
        timer = self._timer_factory(self.debounce / 1000.0, self._fire, args=(change_type, path))
        timer.daemon = True
        with self._lock:
            previous = self._timers.pop(path, None)
            self._timers[path] = timer
        if previous is not None:
            previous.cancel()
        self.logger.debug("Scheduled %s for %s", change_type, path)
        timer.start()

    def _fire(self, change_type: ChangeType, path: str) -> None:
        with self._lock:
            self._timers.pop(path, None)
        if self._observer is None or self.on_event is None:
            return
        try:
            self.on_event(WatchEvent(type=change_type, path=path, timestamp=time.time()))
        except Exception as exc:
            self._report_error(exc)

    def _report_error(self, exc: BaseException) -> None:
        if self.on_error is None:
            self.logger.error("Watcher error: %s", exc)
            return
        try:
            self.on_error(exc)
        except Exception:
            self.logger.exception("Watcher error handler failed")


def create_watcher(src_dir: Path, **options: object) -> FileWatcher:
    return FileWatcher(src_dir, **options)  # type: ignore[arg-type]


__all__ = ["FileWatcher", "WatchEvent", "create_watcher"]
