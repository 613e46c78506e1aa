"""Shared pytest fixtures."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import pytest

from sessiongeo.constants import EventType
from sessiongeo.utils.logger import network_logger


def route_event(timestamp: int, pathname: str, search: str = "", hash: str = "") -> dict[str, Any]:
    return {
        "type": EventType.CUSTOM,
        "timestamp": timestamp,
        "data": {
            "tag": "route",
            "payload": {
                "pathname": pathname,
                "search": search,
                "hash": hash,
                "at": timestamp,
                "sessionId": "test-session",
            },
        },
    }


def snapshot_event(timestamp: int) -> dict[str, Any]:
    return {
        "type": EventType.FULL_SNAPSHOT,
        "timestamp": timestamp,
        "data": {"node": {"type": 0, "childNodes": [], "id": 1}, "initialOffset": {"top": 0, "left": 0}},
    }


class FakeHarness:
    """Records the call sequence the extractor drives."""

    def __init__(self, fail_at_offset: float | None = None):
        self.calls: list[tuple[str, Any]] = []
        self.offset: float | None = None
        self.fail_at_offset = fail_at_offset

    async def init_replay(self, events):
        self.calls.append(("init", len(events)))

    async def seek_to(self, offset_ms):
        if self.fail_at_offset is not None and offset_ms == self.fail_at_offset:
            raise RuntimeError("Execution context was destroyed")
        self.calls.append(("seek", offset_ms))
        self.offset = offset_ms

    async def get_geometry_snapshot(self):
        self.calls.append(("geometry", self.offset))
        return [
            {
                "tag": "main",
                "id": "app",
                "classes": ["layout"],
                "text": None,
                "x": 0,
                "y": 0,
                "width": 1280,
                "height": 720,
                "visible": True,
            }
        ]


class RecordCollector(logging.Handler):
    def __init__(self):
        super().__init__(level=logging.DEBUG)
        self.records: list[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)

    def messages(self) -> list[str]:
        return [r.getMessage() for r in self.records]


@pytest.fixture
def network_records():
    """Collect records written to the network log sink."""
    collector = RecordCollector()
    previous_level = network_logger.level
    network_logger.setLevel(logging.DEBUG)
    network_logger.addHandler(collector)
    yield collector
    network_logger.removeHandler(collector)
    network_logger.setLevel(previous_level)


@pytest.fixture
def write_session(tmp_path: Path):
    """Write a session document to a temp file and return its path."""

    def _write(document: Any, name: str = "session-test.json") -> Path:
        path = tmp_path / name
        if isinstance(document, str):
            path.write_text(document, encoding="utf-8")
        else:
            path.write_text(json.dumps(document), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def fake_harness() -> FakeHarness:
    return FakeHarness()
