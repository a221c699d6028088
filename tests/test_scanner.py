"""Tests for the scan controller pipeline and watch lifecycle."""

from __future__ import annotations

import json
import threading
import time
from typing import Dict, List

import pytest

from reverso.config import ScannerConfig
from reverso.events import FileChanged, ScanCompleted, ScanFailed, ScanStarted
from reverso.scanner import Scanner, create_scanner, scan
from reverso.watch import FileWatcher, WatchEvent
from tests._fixtures.watch_fakes import FakeObserver, FakeTimers

HERO = """
export const Hero = () => (
  <section>
    <h1 data-reverso="home.hero.title" data-reverso-label="Title">Hello</h1>
    <p data-reverso="home.hero.subtitle">World</p>
  </section>
);
"""

FEATURES = """
export const Features = ({ items }) => (
  <ul>
    {items.map((item) => (
      <li key={item.id}>
        <h3 data-reverso="home.features.$.title">{item.title}</h3>
      </li>
    ))}
  </ul>
);
"""


def _collect(scanner: Scanner) -> List[object]:
    events: List[object] = []
    scanner.on(events.append)
    return events


def test_scan_writes_outputs_and_emits_events(project_builder) -> None:
    project_builder.write({"components/Hero.tsx": HERO, "components/Features.jsx": FEATURES})
    scanner = Scanner(project_builder.config())
    events = _collect(scanner)

    result = scanner.scan()

    assert result.success is True
    assert result.errors == ()
    assert result.schema.total_fields == 3
    assert result.schema.meta.files_scanned == 2
    assert result.schema.meta.files_with_markers == 2
    assert result.schema.meta.src_dir == "src"
    assert len(result.diff.added) == 3
    assert scanner.get_schema() is result.schema
    assert [type(event) for event in events] == [ScanStarted, ScanCompleted]
    assert events[1].schema is result.schema

    data = json.loads((project_builder.output_dir / "schema.json").read_text(encoding="utf-8"))
    assert data["totalFields"] == 3
    types = (project_builder.output_dir / "types.ts").read_text(encoding="utf-8")
    assert "features: HomeFeaturesItem[];" in types


def test_rescan_diffs_against_previous_output(project_builder) -> None:
    project_builder.write({"components/Hero.tsx": HERO})
    Scanner(project_builder.config()).scan()

    unchanged = Scanner(project_builder.config()).scan()
    assert unchanged.diff.has_changes is False

    project_builder.write({"components/Hero.tsx": HERO.replace('label="Title"', 'label="Headline"')})
    changed = Scanner(project_builder.config()).scan()

    assert len(changed.diff.modified) == 1
    assert changed.diff.modified[0].path == "home.hero.title"
    assert changed.diff.modified[0].changes == ("label",)


def test_invalid_markers_are_warnings_and_parse_errors_fail(project_builder) -> None:
    project_builder.write(
        {
            "Bad.tsx": 'export const B = () => <h1 data-reverso="home.title">x</h1>;\n',
            "Dynamic.tsx": "export const D = ({ k }) => <h1 data-reverso={k}>x</h1>;\n",
            "Good.tsx": 'export const G = () => <h1 data-reverso="home.hero.title">x</h1>;\n',
        }
    )

    result = Scanner(project_builder.config()).scan()

    assert result.schema.total_fields == 1
    assert len(result.warnings) == 1
    assert result.warnings[0].file.endswith("Bad.tsx")
    assert result.warnings[0].line == 1
    assert [error.type for error in result.errors] == ["parse"]
    assert result.success is False


def test_pipeline_failure_emits_error_and_raises(project_builder) -> None:
    project_builder.write({"Hero.tsx": HERO})

    class BrokenWriter:
        def read_schema(self):
            return None

        def write(self, schema):
            raise OSError("disk full")

    scanner = Scanner(project_builder.config(), writer=BrokenWriter())
    events = _collect(scanner)

    with pytest.raises(OSError):
        scanner.scan()

    assert isinstance(events[-1], ScanFailed)
    assert "disk full" in str(events[-1].error)
    assert scanner.get_schema() is None


def test_types_are_optional(project_builder) -> None:
    project_builder.write({"Hero.tsx": HERO})

    Scanner(project_builder.config(generate_types=False)).scan()

    assert (project_builder.output_dir / "schema.json").exists()
    assert not (project_builder.output_dir / "types.ts").exists()


def test_keyword_overrides_and_helpers(project_builder) -> None:
    project_builder.write({"Hero.tsx": HERO})

    scanner = create_scanner(root=project_builder.root, output_dir="out")
    assert scanner.output_dir == (project_builder.root / "out").resolve()
    assert isinstance(scanner.config, ScannerConfig)

    result = scan(root=str(project_builder.root), src_dir="src", output_dir="out")
    assert result.schema.total_fields == 2

    with pytest.raises(TypeError):
        Scanner(colour="blue")


def test_clear_drops_schema_and_cache(project_builder) -> None:
    project_builder.write({"Hero.tsx": HERO})
    scanner = Scanner(project_builder.config())
    scanner.scan()

    scanner.clear()

    assert scanner.get_schema() is None
    assert len(scanner.parser.cache) == 0


@pytest.fixture
def watched(project_builder):
    timers = FakeTimers()
    observer = FakeObserver()

    def factory(src_dir, **options) -> FileWatcher:
        return FileWatcher(
            src_dir, observer_factory=lambda: observer, timer_factory=timers, **options
        )

    project_builder.write({"Hero.tsx": HERO})
    scanner = Scanner(project_builder.config(), watcher_factory=factory)
    events = _collect(scanner)
    yield scanner, timers, events, project_builder
    scanner.stop_watch()


def _scans(events: List[object]) -> int:
    return sum(1 for event in events if isinstance(event, ScanStarted))


def test_start_watch_scans_then_watches(watched) -> None:
    scanner, _, events, _ = watched

    result = scanner.start_watch()

    assert result is not None
    assert result.schema.total_fields == 2
    assert scanner.is_watching()
    assert _scans(events) == 1
    assert scanner.start_watch() is None


def test_two_rapid_changes_trigger_one_rescan(watched) -> None:
    scanner, timers, events, builder = watched
    scanner.start_watch()
    path = str(builder.src.resolve() / "Hero.tsx")

    scanner._watcher._handle_event("change", path)
    scanner._watcher._handle_event("change", path)
    timers.fire_all()

    assert _scans(events) == 2
    changes = [event for event in events if isinstance(event, FileChanged)]
    assert len(changes) == 1
    assert changes[0].changed_file == path
    assert changes[0].change_type == "change"


def test_unlink_invalidates_file_before_rescan(watched) -> None:
    scanner, timers, events, builder = watched
    scanner.start_watch()
    removed = builder.remove("Hero.tsx").resolve()
    assert str(removed) in scanner.parser.cache

    cache_state: List[bool] = []
    scanner.on(
        lambda event: cache_state.append(str(removed) in scanner.parser.cache)
        if isinstance(event, ScanStarted)
        else None
    )
    scanner._watcher._handle_event("unlink", str(removed))
    timers.fire_all()

    assert cache_state == [False]
    assert scanner.get_schema().total_fields == 0
    assert [field.path for field in events[-1].diff.removed] == [
        "home.hero.subtitle",
        "home.hero.title",
    ]


def test_rescans_requested_during_a_scan_are_coalesced(watched) -> None:
    scanner, _, events, _ = watched
    scanner.start_watch()
    requested: List[bool] = []

    def request_more(event) -> None:
        if isinstance(event, ScanStarted) and not requested:
            requested.append(True)
            scanner._request_rescan()
            scanner._request_rescan()

    scanner.on(request_more)
    scanner._request_rescan()

    assert _scans(events) == 3


def test_stop_watch_is_idempotent(watched) -> None:
    scanner, timers, events, builder = watched
    scanner.start_watch()
    scanner._watcher._handle_event("change", str(builder.src.resolve() / "Hero.tsx"))

    scanner.stop_watch()
    scanner.stop_watch()
    timers.fire_all()

    assert not scanner.is_watching()
    assert _scans(events) == 1


def test_concurrent_rescan_requests_never_overlap(watched) -> None:
    scanner, _, _, _ = watched
    scanner.start_watch()
    lock = threading.Lock()
    state: Dict[str, int] = {"active": 0, "peak": 0, "starts": 0}

    def track(event) -> None:
        if isinstance(event, ScanStarted):
            with lock:
                state["active"] += 1
                state["starts"] += 1
                state["peak"] = max(state["peak"], state["active"])
            time.sleep(0.1)
        elif isinstance(event, (ScanCompleted, ScanFailed)):
            with lock:
                state["active"] -= 1

    scanner.on(track)
    barrier = threading.Barrier(6)

    def request() -> None:
        barrier.wait()
        scanner._request_rescan()

    threads = [threading.Thread(target=request) for _ in range(6)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=10)

    assert not any(thread.is_alive() for thread in threads)
    assert state["peak"] == 1
    assert 1 <= state["starts"] <= 2
    assert state["active"] == 0


def test_events_delivered_after_stop_are_ignored(watched) -> None:
    scanner, _, events, builder = watched
    scanner.start_watch()
    path = str(builder.src.resolve() / "Hero.tsx")
    scanner.stop_watch()

    scanner._handle_watch_event(WatchEvent(type="unlink", path=path, timestamp=0.0))

    assert _scans(events) == 1
    assert not any(isinstance(event, FileChanged) for event in events)
    assert path in scanner.parser.cache
