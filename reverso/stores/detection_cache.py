"""Per-file cache of marker detections."""

from __future__ import annotations

from dataclasses import asdict
from datetime import UTC, datetime
import json
import os
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from ..logging import get_logger
from ..models import DetectedField, FileScanResult, ScanError

_CACHE_VERSION = 1

Fingerprint = Tuple[int, int]


class DetectionCache:
    """Stores extraction results keyed by absolute file path and file fingerprint.

    A fingerprint is ``(size, mtime_ns)``; a lookup with a different
    fingerprint is a miss. When ``path`` is given the entries survive across
    processes through :meth:`persist`.
    """

    def __init__(self, path: Path | None = None) -> None:
        self._path = path
        self._entries: Dict[str, Dict[str, object]] = {}
        self._results: Dict[str, FileScanResult] = {}
        self._dirty = False
        self.logger = get_logger("stores.detection_cache")
        if self._path is not None:
            self._load(self._path)

    def __contains__(self, file: str) -> bool:
        return file in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def keys(self) -> List[str]:
        return list(self._entries)

    def get(self, file: str, *, fingerprint: Fingerprint) -> Optional[FileScanResult]:
        entry = self._entries.get(file)
        if not entry:
            return None
        if tuple(entry.get("fingerprint") or ()) != tuple(fingerprint):
            return None
        cached = self._results.get(file)
        if cached is None:
            cached = _result_from_dict(file, entry)
            if cached is None:
                return None
            self._results[file] = cached
        return cached

    def store(self, result: FileScanResult, *, fingerprint: Fingerprint) -> None:
        self._entries[result.file] = {
            "fingerprint": list(fingerprint),
            "fields": [_field_to_dict(field) for field in result.fields],
            "errors": [asdict(error) for error in result.errors],
            "updated_at": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
        }
        self._results[result.file] = result
        self._dirty = True

    def invalidate(self, file: str) -> bool:
        """Drop the cached result for ``file``; return True when one existed."""
        removed = self._entries.pop(file, None) is not None
        self._results.pop(file, None)
        if removed:
            self._dirty = True
            self.logger.debug("Invalidated cached detections for %s", file)
        return removed

    def prune(self, files_to_keep: Iterable[str]) -> None:
        keep = set(files_to_keep)
        removed = [file for file in self._entries if file not in keep]
        for file in removed:
            self._entries.pop(file, None)
            self._results.pop(file, None)
        if removed:
            self._dirty = True

    def persist(self) -> None:
        if not self._dirty or self._path is None:
            return
        payload = {
            "version": _CACHE_VERSION,
            "entries": self._entries,
        }
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_name(self._path.name + ".tmp")
        tmp.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
        os.replace(tmp, self._path)
        self._dirty = False

    def clear(self) -> None:
        self._entries.clear()
        self._results.clear()
        self._dirty = True

    # ------------------------------------------------------------------
    # Internal helpers

    def _load(self, path: Path) -> None:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return
        except (OSError, json.JSONDecodeError):
            self.logger.debug("Ignoring unreadable detection cache at %s", path)
            return
        if not isinstance(data, dict) or data.get("version") != _CACHE_VERSION:
            return
        entries = data.get("entries")
        if not isinstance(entries, dict):
            return
        valid_entries: Dict[str, Dict[str, object]] = {}
        for key, raw in entries.items():
            if not isinstance(key, str) or not isinstance(raw, dict):
                continue
            if "fingerprint" not in raw or "fields" not in raw or "errors" not in raw:
                continue
            valid_entries[key] = raw
        self._entries = valid_entries
        self._dirty = False


def fingerprint_for(path: Path) -> Fingerprint:
    """Return the ``(size, mtime_ns)`` fingerprint of a file on disk."""
    stat_result = path.stat()
    return (stat_result.st_size, stat_result.st_mtime_ns)


def _field_to_dict(field: DetectedField) -> Dict[str, object]:
    return {
        "path": field.path,
        "attributes": dict(field.attributes),
        "file": field.file,
        "line": field.line,
        "column": field.column,
        "element": field.element,
        "text_content": field.text_content,
    }


def _result_from_dict(file: str, entry: Dict[str, object]) -> Optional[FileScanResult]:
    raw_fields = entry.get("fields")
    raw_errors = entry.get("errors")
    if not isinstance(raw_fields, list) or not isinstance(raw_errors, list):
        return None
    fields: List[DetectedField] = []
    for payload in raw_fields:
        if not isinstance(payload, dict):
            continue
        try:
            fields.append(
                DetectedField(
                    path=str(payload["path"]),
                    attributes=dict(payload.get("attributes") or {}),
                    file=str(payload["file"]),
                    line=int(payload["line"]),
                    column=int(payload["column"]),
                    element=str(payload.get("element") or ""),
                    text_content=payload.get("text_content"),
                )
            )
        except (KeyError, TypeError, ValueError):
            return None
    errors: List[ScanError] = []
    for payload in raw_errors:
        if not isinstance(payload, dict) or payload.get("type") not in {"parse", "validation", "io"}:
            continue
        errors.append(
            ScanError(
                type=payload["type"],
                message=str(payload.get("message", "")),
                file=payload.get("file"),
                line=payload.get("line"),
                column=payload.get("column"),
            )
        )
    return FileScanResult(file=file, fields=tuple(fields), errors=tuple(errors))


__all__ = ["DetectionCache", "Fingerprint", "fingerprint_for"]
