"""Schemas for the geometry timeline."""
from pydantic import BaseModel
from typing import List, Optional, Union

from sessiongeo.schemas.session import RouteLocation


class ElementGeometry(BaseModel):
    """Bounding box of one rendered element."""
    tag: str
    id: Optional[str] = None
    classes: List[str] = []
    text: Optional[str] = None
    x: float
    y: float
    width: float
    height: float
    visible: bool = True


class GeometrySnapshot(BaseModel):
    """Sampled layout at one replay offset."""
    timestamp: Union[int, float]
    offsetMs: Union[int, float]
    route: Optional[RouteLocation] = None
    elements: List[ElementGeometry] = []


class GeometryOutput(BaseModel):
    """Contents of <basename>.geometry.json."""
    sessionId: str
    originalRecording: str
    snapshots: List[GeometrySnapshot] = []
