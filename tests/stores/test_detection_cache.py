"""Tests for the detection cache store."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from reverso.models import DetectedField, FileScanResult, ScanError
from reverso.stores import DetectionCache, fingerprint_for


def _result(file: str = "/src/Hero.tsx") -> FileScanResult:
    return FileScanResult(
        file=file,
        fields=(
            DetectedField(
                path="home.hero.title",
                attributes={"type": "text", "required": "true"},
                file=file,
                line=3,
                column=5,
                element="h1",
                text_content="Hello",
            ),
        ),
        errors=(ScanError(type="parse", message="<h2>: bad", file=file, line=9, column=3),),
    )


def test_detection_cache_round_trip(tmp_path: Path) -> None:
    cache_path = tmp_path / "detections.json"
    cache = DetectionCache(cache_path)
    cache.store(_result(), fingerprint=(120, 1000))
    cache.persist()

    loaded = DetectionCache(cache_path)
    reuse = loaded.get("/src/Hero.tsx", fingerprint=(120, 1000))

    assert reuse is not None
    assert reuse.fields == _result().fields
    assert reuse.errors == _result().errors


def test_detection_cache_misses_on_fingerprint_change(tmp_path: Path) -> None:
    cache = DetectionCache(tmp_path / "detections.json")
    cache.store(_result(), fingerprint=(120, 1000))

    assert cache.get("/src/Hero.tsx", fingerprint=(120, 1000)) is not None
    assert cache.get("/src/Hero.tsx", fingerprint=(121, 1000)) is None
    assert cache.get("/src/Hero.tsx", fingerprint=(120, 2000)) is None
    assert cache.get("/src/Other.tsx", fingerprint=(120, 1000)) is None


def test_invalidate_and_prune(tmp_path: Path) -> None:
    cache = DetectionCache(tmp_path / "detections.json")
    cache.store(_result("/src/A.tsx"), fingerprint=(1, 1))
    cache.store(_result("/src/B.tsx"), fingerprint=(1, 1))
    cache.store(_result("/src/C.tsx"), fingerprint=(1, 1))

    assert cache.invalidate("/src/A.tsx") is True
    assert cache.invalidate("/src/A.tsx") is False
    cache.prune(["/src/B.tsx"])
    cache.persist()

    reloaded = DetectionCache(tmp_path / "detections.json")
    assert reloaded.keys() == ["/src/B.tsx"]


def test_memory_only_cache_never_writes(tmp_path: Path) -> None:
    cache = DetectionCache()
    cache.store(_result(), fingerprint=(1, 1))
    cache.persist()

    assert len(cache) == 1
    assert list(tmp_path.iterdir()) == []


def test_unreadable_or_outdated_cache_is_ignored(tmp_path: Path) -> None:
    cache_path = tmp_path / "detections.json"
    cache_path.write_text("{not json", encoding="utf-8")
    assert len(DetectionCache(cache_path)) == 0

    cache_path.write_text(json.dumps({"version": 99, "entries": {}}), encoding="utf-8")
    assert len(DetectionCache(cache_path)) == 0


def test_fingerprint_tracks_size_and_mtime(tmp_path: Path) -> None:
    path = tmp_path / "Hero.tsx"
    path.write_text("a", encoding="utf-8")
    size, mtime = fingerprint_for(path)

    assert size == 1
    assert mtime == path.stat().st_mtime_ns


def test_failed_persist_keeps_previous_file_intact(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    cache_path = tmp_path / "detections.json"
    cache = DetectionCache(cache_path)
    cache.store(_result(), fingerprint=(120, 1000))
    cache.persist()
    before = cache_path.read_text(encoding="utf-8")

    def fail_replace(src, dst) -> None:
        raise OSError("disk full")

    cache.store(_result("/src/About.tsx"), fingerprint=(10, 20))
    monkeypatch.setattr("reverso.stores.detection_cache.os.replace", fail_replace)
    with pytest.raises(OSError):
        cache.persist()

    assert cache_path.read_text(encoding="utf-8") == before
    assert DetectionCache(cache_path).keys() == ["/src/Hero.tsx"]


def test_persist_leaves_no_temp_file(tmp_path: Path) -> None:
    cache = DetectionCache(tmp_path / "out" / "detections.json")
    cache.store(_result(), fingerprint=(1, 2))

    cache.persist()

    assert [path.name for path in (tmp_path / "out").iterdir()] == ["detections.json"]
