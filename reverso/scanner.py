"""Scan pipeline orchestration and watch-mode lifecycle."""

from __future__ import annotations

import threading
import time
from dataclasses import fields as dataclass_fields, replace
from pathlib import Path
from typing import Callable, Optional

from .config import ScannerConfig
from .constants import DETECTION_CACHE_FILE_NAME
from .differ import compare_schemas, format_schema_diff
from .events import (
    EventBus,
    EventHandler,
    FileChanged,
    ScanCompleted,
    ScanFailed,
    ScanStarted,
    Subscription,
)
from .logging import get_logger
from .models import ProjectSchema, ScanMeta, ScanResult
from .output import OutputWriter
from .parser import AstParser
from .schema import generate_schema, update_schema_meta, validate_schema_structure
from .stores import DetectionCache
from .watch import FileWatcher, WatchEvent

_PATH_OPTIONS = {"root", "src_dir", "output_dir"}

WatcherFactory = Callable[..., FileWatcher]


class Scanner:
    """Runs extract, generate, diff and write for one project.

    The scanner owns the most recent schema snapshot. Every scan rebuilds the
    schema from the full detection set and diffs it against the copy stored
    in the output directory. Scans are serialized: two scans never write
    output at the same time, and rescans requested by the watcher while one
    is running collapse into a single follow-up scan.
    """

    def __init__(
        self,
        config: ScannerConfig | None = None,
        *,
        parser: AstParser | None = None,
        writer: OutputWriter | None = None,
        watcher_factory: WatcherFactory | None = None,
        **overrides: object,
    ) -> None:
        self.config = _apply_overrides(config or ScannerConfig(), overrides)
        self.src_dir = self.config.resolved_src_dir()
        self.output_dir = self.config.resolved_output_dir()
        self.parser = parser or AstParser(
            self.src_dir,
            include=self.config.include,
            exclude=self.config.exclude,
            cache=DetectionCache(
                self.output_dir / DETECTION_CACHE_FILE_NAME if self.config.cache else None
            ),
        )
        self.writer = writer or OutputWriter(
            self.output_dir,
            pretty=self.config.pretty_print,
            generate_types=self.config.generate_types,
        )
        self.events = EventBus()
        self.logger = get_logger("scanner")
        self._watcher_factory = watcher_factory or FileWatcher
        self._watcher: Optional[FileWatcher] = None
        self._current_schema: Optional[ProjectSchema] = None
        self._scan_lock = threading.RLock()
        self._state_lock = threading.Lock()
        self._rescan_running = False
        self._rescan_pending = False

    def on(self, handler: EventHandler) -> Subscription:
        """Subscribe to scan events; call the returned handle to unsubscribe."""
        return self.events.subscribe(handler)

    def scan(self) -> ScanResult:
        """Run the full pipeline once and return its result.

        Per-file problems are collected in the result. Anything else is
        reported through a ``ScanFailed`` event and re-raised.
        """
        with self._scan_lock:
            self.events.emit(ScanStarted())
            started = time.perf_counter()
            self.logger.info("Scanning %s", self.src_dir)
            try:
                parsed = self.parser.parse_all()
                generated = generate_schema(parsed.fields, self.config.schema)
                schema = update_schema_meta(
                    generated.schema,
                    ScanMeta(
                        src_dir=self.config.src_dir.as_posix(),
                        files_scanned=len(parsed.file_results),
                        files_with_markers=sum(1 for result in parsed.file_results if result.fields),
                        scan_duration=(time.perf_counter() - started) * 1000.0,
                    ),
                )

                previous = self.writer.read_schema()
                if previous is not None:
                    for issue in validate_schema_structure(previous):
                        self.logger.warning("Previous schema: %s", issue)
                diff = compare_schemas(previous, schema)

                self.writer.write(schema)
                self.parser.cache.persist()
                self._current_schema = schema
            except Exception as exc:
                self.logger.error("Scan failed: %s", exc)
                self.events.emit(ScanFailed(error=exc))
                raise

            for error in parsed.errors:
                self.logger.warning("%s", error.describe())
            self.logger.info(
                "Found %d field(s) in %d page(s) across %d file(s) in %.0f ms",
                schema.total_fields,
                schema.page_count,
                schema.meta.files_with_markers,
                schema.meta.scan_duration,
            )
            self.logger.debug("%s", format_schema_diff(diff))

            result = ScanResult(
                schema=schema,
                files=parsed.file_results,
                errors=parsed.errors,
                warnings=generated.warnings,
                diff=diff,
            )
            self.events.emit(ScanCompleted(schema=schema, diff=diff))
            return result

    def start_watch(self) -> Optional[ScanResult]:
        """Scan once, then rescan whenever a watched file changes.

        Returns the initial scan result, or None when already watching.
        """
        if self.is_watching():
            self.logger.debug("Watch already running for %s", self.src_dir)
            return None
        result = self.scan()
        watcher = self._watcher_factory(
            self.src_dir,
            include=self.config.include,
            exclude=self.config.exclude,
            debounce=self.config.watch.debounce,
            on_event=self._handle_watch_event,
            on_error=self._handle_watch_error,
            accepts=self.parser.accepts,
        )
        self._watcher = watcher
        watcher.start()
        if watcher.is_running():
            self.logger.info("Watching %s for changes", self.src_dir)
        return result

    def stop_watch(self) -> None:
        """Stop watching and wait for a scan already in progress to finish."""
        watcher, self._watcher = self._watcher, None
        if watcher is not None:
            watcher.stop()
        with self._state_lock:
            self._rescan_pending = False
        with self._scan_lock:
            pass

    def is_watching(self) -> bool:
        return self._watcher is not None and self._watcher.is_running()

    def get_schema(self) -> Optional[ProjectSchema]:
        return self._current_schema

    def clear(self) -> None:
        """Drop cached detections and the current schema."""
        with self._scan_lock:
            self.parser.clear()
            self._current_schema = None

    def _handle_watch_event(self, event: WatchEvent) -> None:
        if self._watcher is None:
            self.logger.debug("Ignoring %s for %s after watch stopped", event.type, event.path)
            return
        self.logger.info("File %s: %s", _change_verb(event.type), event.path)
        self.events.emit(FileChanged(changed_file=event.path, change_type=event.type))
        # Drop the file's detections so the next scan re-extracts (or forgets) it.
        with self._scan_lock:
            self.parser.remove_file(event.path)
        self._request_rescan()

    def _handle_watch_error(self, error: BaseException) -> None:
        self.logger.error("Watcher error: %s", error)
        self.events.emit(ScanFailed(error=error))

    def _request_rescan(self) -> None:
        with self._state_lock:
            if self._watcher is None:
                return
            if self._rescan_running:
                self._rescan_pending = True
                return
            self._rescan_running = True

        while True:
            try:
                self.scan()
            except Exception:
                self.logger.debug("Rescan failed", exc_info=True)
            with self._state_lock:
                if not self._rescan_pending or self._watcher is None:
                    self._rescan_pending = False
                    self._rescan_running = False
                    return
                self._rescan_pending = False


def create_scanner(config: ScannerConfig | None = None, **overrides: object) -> Scanner:
    return Scanner(config, **overrides)


def scan(config: ScannerConfig | None = None, **overrides: object) -> ScanResult:
    """Scan a project once with a throwaway :class:`Scanner`."""
    return Scanner(config, **overrides).scan()


def _apply_overrides(config: ScannerConfig, overrides: dict) -> ScannerConfig:
    if not overrides:
        return config
    known = {item.name for item in dataclass_fields(ScannerConfig)}
    unknown = sorted(set(overrides) - known)
    if unknown:
        raise TypeError(f"Unknown scanner option(s): {', '.join(unknown)}")
    values = {
        name: Path(value) if name in _PATH_OPTIONS else value  # type: ignore[arg-type]
        for name, value in overrides.items()
    }
    return replace(config, **values)


def _change_verb(change_type: str) -> str:
    return {"add": "added", "change": "changed", "unlink": "removed"}.get(change_type, change_type)


__all__ = ["Scanner", "create_scanner", "scan"]
