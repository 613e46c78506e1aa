"""Live session download and extraction endpoints."""
from pathlib import Path
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request

from sessiongeo.config import settings
from sessiongeo.schemas.session import ExtractionQueuedResponse, SessionSaveResponse
from sessiongeo.services.recorder import CaptureContext
from sessiongeo.services.session_store import save_session, session_filename
from sessiongeo.utils.exceptions import not_found_error
from sessiongeo.utils.extraction_queue import queue_geometry_extraction
from sessiongeo.utils.logger import logger

router = APIRouter(prefix="/api/session", tags=["session"])


def require_development() -> None:
    """Session export is a development aid; hide it in production."""
    if settings.is_production:
        raise not_found_error("Endpoint")


def get_capture_context(request: Request) -> CaptureContext:
    """Dependency returning the capture context the app was built with."""
    return request.app.state.capture


def _live_session(capture: CaptureContext):
    if capture.session is None:
        logger.warning("No session data available to download")
        raise not_found_error("Session")
    return capture.session


@router.get("", dependencies=[Depends(require_development)])
async def download_session(capture: CaptureContext = Depends(get_capture_context)) -> Dict[str, Any]:
    """
    Return the live session as a session file document.

    Returns:
        {sessionId, startedAt, events}
    """
    return _live_session(capture).to_file_dict()


@router.post("/save", response_model=SessionSaveResponse, dependencies=[Depends(require_development)])
async def save_live_session(capture: CaptureContext = Depends(get_capture_context)) -> SessionSaveResponse:
    """Persist the live session to the sessions directory."""
    session = _live_session(capture)
    path = save_session(session, Path(settings.sessions_dir) / session_filename(session.sessionId))
    return SessionSaveResponse(
        success=True,
        session_id=session.sessionId,
        path=str(path),
        event_count=len(session.events),
    )


@router.post("/extract", response_model=ExtractionQueuedResponse, dependencies=[Depends(require_development)])
async def extract_live_session(capture: CaptureContext = Depends(get_capture_context)) -> ExtractionQueuedResponse:
    """Save the live session and queue geometry extraction for it."""
    session = _live_session(capture)
    path = save_session(session, Path(settings.sessions_dir) / session_filename(session.sessionId))
    queued = await queue_geometry_extraction(str(path.resolve()))
    return ExtractionQueuedResponse(
        success=True,
        session_id=session.sessionId,
        path=str(path),
        job_queued=queued,
    )
