"""Pydantic schemas for session files and geometry output."""
from sessiongeo.schemas.session import RouteLocation, RoutePayload, RecordedSession
from sessiongeo.schemas.geometry import ElementGeometry, GeometrySnapshot, GeometryOutput

__all__ = [
    "RouteLocation",
    "RoutePayload",
    "RecordedSession",
    "ElementGeometry",
    "GeometrySnapshot",
    "GeometryOutput",
]
