"""File watching for live rescans."""

from .watcher import FileWatcher, WatchEvent, create_watcher

__all__ = ["FileWatcher", "WatchEvent", "create_watcher"]
