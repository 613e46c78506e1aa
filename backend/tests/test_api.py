"""Tests for the live session endpoints."""
from __future__ import annotations

import asyncio
import json
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from sessiongeo.api import session as session_api
from sessiongeo.config import settings
from sessiongeo.main import create_app
from sessiongeo.services.recorder import CaptureContext, SessionRecorder


@pytest.fixture
def sessions_dir(tmp_path: Path, monkeypatch) -> Path:
    monkeypatch.setattr(settings, "sessions_dir", str(tmp_path / "sessions"))
    return tmp_path / "sessions"


@pytest.fixture
def recording() -> CaptureContext:
    capture = CaptureContext()
    recorder = SessionRecorder(capture, id_factory=lambda: "live-1")
    asyncio.run(recorder.start("http://app.test/dashboard"))
    recorder.navigate("http://app.test/reports")
    return capture


def test_download_before_recording_is_404():
    client = TestClient(create_app(CaptureContext()))
    response = client.get("/api/session")
    assert response.status_code == 404
    assert response.json()["detail"] == "Session not found"


def test_download_returns_session_document(recording):
    client = TestClient(create_app(recording))
    response = client.get("/api/session")

    assert response.status_code == 200
    body = response.json()
    assert body["sessionId"] == "live-1"
    assert set(body) == {"sessionId", "startedAt", "events"}
    assert [e["data"]["payload"]["pathname"] for e in body["events"]] == ["/dashboard", "/reports"]


def test_save_writes_session_file(recording, sessions_dir):
    client = TestClient(create_app(recording))
    response = client.post("/api/session/save")

    assert response.status_code == 200
    body = response.json()
    assert body["event_count"] == 2
    saved = json.loads(Path(body["path"]).read_text())
    assert saved["sessionId"] == "live-1"
    assert Path(body["path"]).parent == sessions_dir


def test_extract_queues_job(recording, sessions_dir, monkeypatch):
    queued = []

    async def fake_queue(path):
        queued.append(path)
        return True

    monkeypatch.setattr(session_api, "queue_geometry_extraction", fake_queue)
    client = TestClient(create_app(recording))
    response = client.post("/api/session/extract")

    assert response.status_code == 200
    assert response.json()["job_queued"] is True
    assert queued and queued[0].endswith("session-live-1.json")


def test_endpoints_hidden_in_production(recording, monkeypatch):
    monkeypatch.setattr(settings, "environment", "production")
    client = TestClient(create_app(recording))

    assert client.get("/api/session").status_code == 404
    assert client.post("/api/session/save").status_code == 404


def test_health_reports_recording_state():
    client = TestClient(create_app(CaptureContext()))
    assert client.get("/health").json() == {"status": "healthy", "recording": False}
