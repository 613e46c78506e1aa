"""Loading and saving session files."""
import json
from pathlib import Path
from typing import Optional, Union

from sessiongeo.constants import UNKNOWN_SESSION_ID
from sessiongeo.schemas.session import RecordedSession
from sessiongeo.services.events import is_numeric_timestamp, timestamp_range
from sessiongeo.utils.exceptions import SessionFormatError
from sessiongeo.utils.logger import logger
from sessiongeo.utils.serialization import write_json_atomic


def session_filename(session_id: str) -> str:
    """File name used when the live session is saved."""
    return f"session-{session_id}.json"


def save_session(session: RecordedSession, path: Union[str, Path]) -> Path:
    """
    Persist a session as {sessionId, startedAt, events}.

    Args:
        session: The session to write
        path: Destination file, or a directory to place session-<id>.json in

    Returns:
        Path of the written file
    """
    path = Path(path)
    if path.is_dir():
        path = path / session_filename(session.sessionId)
    written = write_json_atomic(path, session.to_file_dict())
    logger.info(f"Saved session {session.sessionId} ({len(session.events)} events) to {written}")
    return written


def _reject_constant(name: str):
    # NaN, Infinity and -Infinity are not JSON
    raise ValueError(f"Invalid JSON constant {name}")


def load_session_file(path: Optional[Union[str, Path]]) -> RecordedSession:
    """
    Load a session file in either supported shape.

    Accepts {sessionId, startedAt, events} or a bare array of events.

    Args:
        path: Path to the JSON document

    Returns:
        RecordedSession; a bare array gets sessionId "unknown-session"

    Raises:
        SessionFormatError: no path, missing file, bad JSON, unknown shape,
            empty event list, or no numeric timestamps
    """
    if not path:
        raise SessionFormatError("No session file given")

    path = Path(path).resolve()
    if not path.is_file():
        raise SessionFormatError(f"File not found: {path}")

    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise SessionFormatError(f"Failed to parse JSON: {e}") from e
    except OSError as e:
        raise SessionFormatError(f"Failed to read session file: {e}") from e

    try:
        parsed = json.loads(text, parse_constant=_reject_constant)
    except ValueError as e:
        raise SessionFormatError(f"Failed to parse JSON: {e}") from e

    if isinstance(parsed, list):
        session_id = UNKNOWN_SESSION_ID
        started_at = None
        events = parsed
    elif isinstance(parsed, dict) and isinstance(parsed.get("events"), list):
        session_id = parsed.get("sessionId") or UNKNOWN_SESSION_ID
        started_at = parsed.get("startedAt")
        events = parsed["events"]
    else:
        raise SessionFormatError(
            "Invalid session format. Expected { sessionId, startedAt, events } or an array of events."
        )

    if len(events) == 0:
        raise SessionFormatError("No events found in the session.")

    if not all(isinstance(e, dict) for e in events):
        raise SessionFormatError("Invalid session format. Every event must be a JSON object.")

    time_range = timestamp_range(events)
    if time_range is None:
        raise SessionFormatError("No event carries a numeric timestamp.")

    if not is_numeric_timestamp(started_at):
        started_at = time_range[0]

    return RecordedSession(sessionId=str(session_id), startedAt=int(started_at), events=events)
