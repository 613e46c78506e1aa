"""Tests for the geometry extraction driver."""
from __future__ import annotations

import asyncio
import json

import pytest

from conftest import FakeHarness, route_event, snapshot_event
from sessiongeo.schemas.geometry import GeometryOutput
from sessiongeo.schemas.session import RecordedSession
from sessiongeo.services.geometry import (
    GeometryExtractor,
    extract_session_file,
    geometry_output_path,
    progress_percent,
)
from sessiongeo.utils.exceptions import ExtractionCancelled, GeometryExtractionError, SessionFormatError


def _extractor(**kwargs) -> GeometryExtractor:
    return GeometryExtractor(step_ms=500, settle_ms=0, init_settle_ms=0, **kwargs)


@pytest.mark.asyncio
async def test_minimal_session_yields_three_snapshots(fake_harness):
    events = [route_event(1000, "/a"), route_event(2000, "/b")]

    snapshots = await _extractor().sample(fake_harness, events)

    assert len(snapshots) == (2000 - 1000) // 500 + 1
    assert [s.offsetMs for s in snapshots] == [0, 500, 1000]
    assert [s.timestamp for s in snapshots] == [1000, 1500, 2000]
    assert [s.route.pathname for s in snapshots] == ["/a", "/a", "/b"]
    assert snapshots[0].elements[0].tag == "main"


@pytest.mark.asyncio
async def test_route_correlation_uses_latest_preceding_route(fake_harness):
    events = [route_event(0, "/login"), snapshot_event(500), route_event(1500, "/dashboard"), snapshot_event(2000)]

    snapshots = {s.timestamp: s for s in await _extractor().sample(fake_harness, events)}

    assert snapshots[1000].route.pathname == "/login"
    assert snapshots[2000].route.pathname == "/dashboard"


@pytest.mark.asyncio
async def test_route_is_null_before_first_route_event(fake_harness):
    events = [snapshot_event(0), route_event(700, "/later")]

    snapshots = await _extractor().sample(fake_harness, events)

    assert snapshots[0].route is None
    assert snapshots[1].route is None
    assert len(snapshots) == 2


@pytest.mark.asyncio
async def test_each_seek_completes_before_geometry_read(fake_harness):
    await _extractor().sample(fake_harness, [snapshot_event(0), snapshot_event(1000)])

    assert fake_harness.calls == [
        ("init", 2),
        ("seek", 0), ("geometry", 0),
        ("seek", 500), ("geometry", 500),
        ("seek", 1000), ("geometry", 1000),
    ]


@pytest.mark.asyncio
async def test_step_failure_is_fatal():
    harness = FakeHarness(fail_at_offset=500)

    with pytest.raises(GeometryExtractionError, match="offset 500ms"):
        await _extractor().sample(harness, [snapshot_event(0), snapshot_event(1000)])


@pytest.mark.asyncio
async def test_cancellation_stops_between_steps(fake_harness):
    cancel = asyncio.Event()
    progress = []

    def on_progress(percent):
        progress.append(percent)
        if percent >= 50:
            cancel.set()

    extractor = _extractor(progress=on_progress)
    with pytest.raises(ExtractionCancelled):
        await extractor.sample(fake_harness, [snapshot_event(0), snapshot_event(2000)], cancel=cancel)

    assert progress == [0, 25, 50]


def test_progress_percent_bounds():
    assert progress_percent(1000, 1000, 2000) == 0
    assert progress_percent(2000, 1000, 2000) == 100
    assert progress_percent(5, 5, 5) == 100


def test_output_path_sits_next_to_input(tmp_path):
    assert geometry_output_path(tmp_path / "session-abc.json") == tmp_path / "session-abc.geometry.json"
    assert geometry_output_path(tmp_path / "trace.txt") == tmp_path / "trace.txt.geometry.json"


@pytest.mark.asyncio
async def test_extract_session_file_writes_output(write_session, monkeypatch):
    async def fake_extract(self, session, original_recording, cancel=None):
        snapshots = await self.sample(FakeHarness(), session.events, cancel=cancel)
        return GeometryOutput(sessionId=session.sessionId, originalRecording=original_recording, snapshots=snapshots)

    monkeypatch.setattr(GeometryExtractor, "extract", fake_extract)
    path = write_session({
        "sessionId": "sess-9",
        "startedAt": 1000,
        "events": [route_event(1000, "/a"), route_event(2000, "/b")],
    })

    output_path = await extract_session_file(path, extractor=_extractor())

    assert output_path.name == "session-test.geometry.json"
    assert output_path.resolve() == (path.parent / "session-test.geometry.json").resolve()
    document = json.loads(output_path.read_text())
    assert document["sessionId"] == "sess-9"
    assert document["originalRecording"] == "session-test.json"
    assert [s["offsetMs"] for s in document["snapshots"]] == [0, 500, 1000]
    assert document["snapshots"][0]["route"] == {"pathname": "/a", "search": "", "hash": ""}


@pytest.mark.asyncio
async def test_failed_extraction_leaves_no_output(write_session, monkeypatch):
    async def failing_extract(self, session, original_recording, cancel=None):
        raise GeometryExtractionError("Replay harness did not become ready")

    monkeypatch.setattr(GeometryExtractor, "extract", failing_extract)
    path = write_session([snapshot_event(0), snapshot_event(500)])

    with pytest.raises(GeometryExtractionError):
        await extract_session_file(path, extractor=_extractor())

    assert not geometry_output_path(path).exists()


@pytest.mark.asyncio
async def test_usage_errors_never_reach_the_browser(write_session, monkeypatch):
    async def must_not_run(self, *args, **kwargs):
        raise AssertionError("browser work started")

    monkeypatch.setattr(GeometryExtractor, "extract", must_not_run)

    with pytest.raises(SessionFormatError, match="No events found"):
        await extract_session_file(write_session({"sessionId": "x", "events": []}))
    with pytest.raises(SessionFormatError, match="Failed to parse JSON"):
        await extract_session_file(write_session("{oops", name="broken.json"))


@pytest.mark.asyncio
async def test_asset_failure_is_fatal(monkeypatch):
    from sessiongeo.services import geometry

    def offline(base_url):
        raise OSError("network unreachable")

    monkeypatch.setattr(geometry, "load_rrweb_assets", offline)

    with pytest.raises(GeometryExtractionError, match="Failed to load replay assets"):
        await _extractor().extract(
            session=RecordedSession(sessionId="s", startedAt=0, events=[snapshot_event(0)]),
            original_recording="s.json",
        )
