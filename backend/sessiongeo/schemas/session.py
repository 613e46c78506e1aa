"""Schemas for recorded sessions and route markers."""
from pydantic import BaseModel, Field
from typing import List, Dict, Any, Union

from sessiongeo.utils.url import split_location


class RouteLocation(BaseModel):
    """Logical route of the host application."""
    pathname: str = "/"
    search: str = ""
    hash: str = ""

    @classmethod
    def from_url(cls, url: str) -> "RouteLocation":
        """Build a location from an absolute or relative URL."""
        pathname, search, fragment = split_location(url)
        return cls(pathname=pathname, search=search, hash=fragment)


class RoutePayload(RouteLocation):
    """Payload carried by a `route` custom event."""
    at: Union[int, float] = Field(..., description="Page clock ms when the route was observed")
    sessionId: str


class RecordedSession(BaseModel):
    """One continuous capture, as persisted to disk."""
    sessionId: str = Field(..., description="Opaque session identifier")
    startedAt: int = Field(..., description="Capture start, ms since epoch")
    events: List[Dict[str, Any]] = Field(default_factory=list, description="Array of rrweb events")

    def to_file_dict(self) -> Dict[str, Any]:
        """Session file document: {sessionId, startedAt, events}."""
        return {
            "sessionId": self.sessionId,
            "startedAt": self.startedAt,
            "events": self.events,
        }


class SessionSaveResponse(BaseModel):
    """Response schema for /api/session/save."""
    success: bool
    session_id: str
    path: str
    event_count: int


class ExtractionQueuedResponse(BaseModel):
    """Response schema for /api/session/extract."""
    success: bool
    session_id: str
    path: str
    job_queued: bool = False
