"""Helpers over rrweb event dictionaries.

Events stay plain dicts so engine-defined fields survive serialization
untouched; only the discriminants below are interpreted.
"""
import math
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sessiongeo.constants import EventType, ROUTE_TAG
from sessiongeo.schemas.session import RouteLocation


def is_numeric_timestamp(value: Any) -> bool:
    """True for finite int/float timestamps (bools excluded)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def is_custom_event(event: Any, tag: str) -> bool:
    if not isinstance(event, dict) or event.get("type") != EventType.CUSTOM:
        return False
    data = event.get("data")
    return isinstance(data, dict) and data.get("tag") == tag


def is_route_event(event: Any) -> bool:
    return is_custom_event(event, ROUTE_TAG)


def build_custom_event(tag: str, payload: Dict[str, Any], timestamp: int) -> Dict[str, Any]:
    """Custom event in the shape rrweb's addCustomEvent produces."""
    return {
        "type": EventType.CUSTOM,
        "data": {"tag": tag, "payload": payload},
        "timestamp": timestamp,
    }


def partition_route_events(
    events: Iterable[Dict[str, Any]],
) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]:
    """
    Split events into route custom events and everything else.

    Returns:
        (route_events, other_events), each in original order
    """
    route_events: List[Dict[str, Any]] = []
    other_events: List[Dict[str, Any]] = []
    for event in events:
        if is_route_event(event):
            route_events.append(event)
        else:
            other_events.append(event)
    return route_events, other_events


def timestamp_range(events: Iterable[Dict[str, Any]]) -> Optional[Tuple[int, int]]:
    """(min, max) over numeric event timestamps, or None when there are none."""
    timestamps = [
        e.get("timestamp")
        for e in events
        if isinstance(e, dict) and is_numeric_timestamp(e.get("timestamp"))
    ]
    if not timestamps:
        return None
    return min(timestamps), max(timestamps)


def snapshot_times(first: int, last: int, step_ms: int) -> List[int]:
    """
    Sample times from first to last inclusive.

    The count is floor((last - first) / step_ms) + 1.
    """
    if step_ms <= 0:
        raise ValueError("step_ms must be positive")
    times = []
    t = first
    while t <= last:
        times.append(t)
        t += step_ms
    return times


def find_latest_route(route_events: Iterable[Dict[str, Any]], t: float) -> Optional[Dict[str, Any]]:
    """
    Find the route event with the greatest timestamp not exceeding t.

    Among events sharing that timestamp the earliest one in the stream wins.
    """
    latest = None
    for event in route_events:
        timestamp = event.get("timestamp")
        if not is_numeric_timestamp(timestamp) or timestamp > t:
            continue
        if latest is None or timestamp > latest["timestamp"]:
            latest = event
    return latest


def route_from_event(event: Optional[Dict[str, Any]]) -> Optional[RouteLocation]:
    """Extract {pathname, search, hash} from a route custom event."""
    if event is None:
        return None
    data = event.get("data")
    payload = data.get("payload") if isinstance(data, dict) else None
    if not isinstance(payload, dict):
        payload = {}

    def text(key: str, default: str) -> str:
        value = payload.get(key)
        return value if isinstance(value, str) else default

    return RouteLocation(
        pathname=text("pathname", "/"),
        search=text("search", ""),
        hash=text("hash", ""),
    )
