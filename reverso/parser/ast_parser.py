"""Project-wide marker extraction with per-file caching."""

from __future__ import annotations

import time
from pathlib import Path
from typing import List, Optional, Sequence

from ..constants import DEFAULT_EXCLUDE_PATTERNS, DEFAULT_INCLUDE_PATTERNS
from ..logging import get_logger
from ..models import DetectedField, FileScanResult, ParseResult, ScanError
from ..stores.detection_cache import DetectionCache, fingerprint_for
from .files import find_source_files, is_included, relative_posix
from .tree_sitter import JsxMarkerExtractor


class AstParser:
    """Extracts markers from every included file under a source directory.

    Results are cached per file so unchanged files are not re-parsed and a
    deleted file only costs dropping its own entry.
    """

    def __init__(
        self,
        src_dir: Path,
        *,
        include: Optional[Sequence[str]] = None,
        exclude: Optional[Sequence[str]] = None,
        extractor: JsxMarkerExtractor | None = None,
        cache: DetectionCache | None = None,
    ) -> None:
        self.src_dir = Path(src_dir).expanduser().resolve()
        self.include = list(include) if include is not None else list(DEFAULT_INCLUDE_PATTERNS)
        self.exclude = list(exclude) if exclude is not None else list(DEFAULT_EXCLUDE_PATTERNS)
        self.extractor = extractor or JsxMarkerExtractor()
        self.cache = cache if cache is not None else DetectionCache()
        self.logger = get_logger("parser.ast_parser")

    def find_files(self) -> List[Path]:
        return [
            path
            for path in find_source_files(self.src_dir, self.include, self.exclude)
            if self.extractor.supports(path)
        ]

    def accepts(self, path: str | Path) -> bool:
        """Return True when ``path`` is a source file this parser would scan."""
        candidate = Path(path)
        if not self.extractor.supports(candidate):
            return False
        rel_path = relative_posix(candidate, self.src_dir)
        return is_included(rel_path, self.include, self.exclude)

    def parse_all(self) -> ParseResult:
        """Extract markers from every included file, reusing cached results."""
        started = time.perf_counter()
        errors: List[ScanError] = []
        file_results: List[FileScanResult] = []
        fields: List[DetectedField] = []

        try:
            paths = self.find_files()
        except OSError as exc:
            errors.append(ScanError(type="io", message=f"Failed to scan directory: {exc}"))
            paths = []

        reused = 0
        for path in paths:
            result, hit = self._parse_cached(path)
            reused += int(hit)
            file_results.append(result)
            fields.extend(result.fields)
            errors.extend(result.errors)

        if paths or not errors:
            self.cache.prune(str(path) for path in paths)
        self.logger.debug(
            "Parsed %d file(s) under %s (%d from cache)", len(paths), self.src_dir, reused
        )
        return ParseResult(
            fields=tuple(fields),
            file_results=tuple(file_results),
            errors=tuple(errors),
            duration=(time.perf_counter() - started) * 1000.0,
        )

    def parse_file(self, path: str | Path) -> FileScanResult:
        """Re-extract a single file, refreshing its cache entry."""
        absolute = Path(path).expanduser().resolve()
        self.cache.invalidate(str(absolute))
        result, _ = self._parse_cached(absolute)
        return result

    def remove_file(self, path: str | Path) -> bool:
        """Forget cached detections for a deleted file."""
        return self.cache.invalidate(str(Path(path).expanduser().resolve()))

    def clear(self) -> None:
        self.cache.clear()

    def _parse_cached(self, path: Path) -> tuple[FileScanResult, bool]:
        key = str(path)
        try:
            fingerprint = fingerprint_for(path)
        except OSError as exc:
            self.cache.invalidate(key)
            return (
                FileScanResult(
                    file=key,
                    errors=(ScanError(type="io", message=f"Failed to stat file: {exc}", file=key),),
                ),
                False,
            )

        cached = self.cache.get(key, fingerprint=fingerprint)
        if cached is not None:
            return cached, True

        result = self.extractor.extract(path)
        if not any(error.type == "io" for error in result.errors):
            self.cache.store(result, fingerprint=fingerprint)
        return result, False


def create_parser(
    src_dir: Path,
    *,
    include: Optional[Sequence[str]] = None,
    exclude: Optional[Sequence[str]] = None,
    cache: DetectionCache | None = None,
) -> AstParser:
    """Create a parser for ``src_dir`` with the default extractor."""
    return AstParser(src_dir, include=include, exclude=exclude, cache=cache)


__all__ = ["AstParser", "create_parser"]
