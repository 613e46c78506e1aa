"""Session recorder: event capture, route markers and network logging.

A `CaptureContext` is created once per host page lifetime and handed to
whatever needs the live session (the save/download action, teardown). The
`SessionRecorder` controller owns that context and is the only writer of its
event buffer.
"""
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, Union

from sessiongeo.constants import ROUTE_TAG
from sessiongeo.schemas.session import RecordedSession, RouteLocation, RoutePayload
from sessiongeo.services.console import ConsoleCapture
from sessiongeo.services.events import build_custom_event, is_numeric_timestamp
from sessiongeo.services.network import Fetch, instrument_fetch
from sessiongeo.services.session_id import generate_session_id
from sessiongeo.services.session_store import save_session
from sessiongeo.utils.clock import now_ms
from sessiongeo.utils.exceptions import RecorderError
from sessiongeo.utils.logger import logger

StopHandle = Callable[[], Awaitable[None]]


class RecordingEngine(Protocol):
    """Something that observes the host page and produces rrweb events."""

    async def start(
        self,
        emit: Callable[[Dict[str, Any]], None],
        on_console: Callable[..., None],
        on_navigate: Callable[..., None],
    ) -> StopHandle:
        ...


@dataclass
class CaptureContext:
    """Process-wide capture state shared by the recorder and its consumers."""
    original_fetch: Optional[Fetch] = None
    fetch: Optional[Fetch] = None
    session: Optional[RecordedSession] = None
    initialized: bool = False
    active: bool = False
    stop_engine: Optional[StopHandle] = None
    last_location: Optional[RouteLocation] = None

    def __post_init__(self):
        if self.fetch is None:
            self.fetch = self.original_fetch

    @property
    def session_id(self) -> Optional[str]:
        return self.session.sessionId if self.session else None


class SessionRecorder:
    """Controls one recording lifetime over a CaptureContext."""

    def __init__(
        self,
        context: CaptureContext,
        engine: Optional[RecordingEngine] = None,
        console: Optional[ConsoleCapture] = None,
        id_factory: Callable[[], str] = generate_session_id,
    ):
        self.context = context
        self.engine = engine
        self.console = console or ConsoleCapture()
        self.id_factory = id_factory
        self._last_timestamp = 0

    @property
    def session(self) -> RecordedSession:
        if self.context.session is None:
            raise RecorderError("Recording has not started")
        return self.context.session

    async def start(self, location: Union[RouteLocation, str]) -> RecordedSession:
        """
        Initialize recording exactly once.

        Generates the session, installs the fetch wrapper, starts the engine
        and records the initial route. Later calls return the existing
        session and emit nothing.

        Args:
            location: Current route of the host page (RouteLocation or URL)

        Returns:
            The live session
        """
        if self.context.initialized:
            logger.debug("Recorder already initialized, skipping start")
            return self.session
        self.context.initialized = True

        session_id = self.id_factory()
        self.context.session = RecordedSession(sessionId=session_id, startedAt=now_ms(), events=[])
        self._last_timestamp = self.context.session.startedAt

        if self.context.original_fetch is not None:
            original = self.context.original_fetch
            if getattr(original, "__instrumented__", False):
                logger.warning("Fetch callable is already instrumented, leaving it as is")
                self.context.fetch = original
            else:
                self.context.fetch = instrument_fetch(original)

        self.context.active = True
        if self.engine is not None:
            try:
                self.context.stop_engine = await self.engine.start(
                    emit=self.emit,
                    on_console=self.capture_console,
                    on_navigate=self.navigate,
                )
            except Exception as e:
                # Recording continues with route/console markers only
                logger.error(f"Failed to start recording engine for session {session_id}: {e}", exc_info=True)
                self.context.stop_engine = None

        self._emit_route(self._as_location(location))
        logger.info(f"Started recording session {session_id}")
        return self.context.session

    def _as_location(self, location: Union[RouteLocation, str]) -> RouteLocation:
        if isinstance(location, RouteLocation):
            return location
        return RouteLocation.from_url(location)

    def _next_timestamp(self, stamped: Optional[float] = None) -> float:
        """Page-side stamp when the engine supplied one, else the host clock."""
        if is_numeric_timestamp(stamped):
            return stamped
        return max(now_ms(), self._last_timestamp)

    def _append_ordered(self, event: Dict[str, Any]) -> None:
        events = self.context.session.events
        timestamp = event.get("timestamp")
        if not is_numeric_timestamp(timestamp) or timestamp >= self._last_timestamp:
            if is_numeric_timestamp(timestamp):
                self._last_timestamp = timestamp
            events.append(event)
            return

        # Late delivery: slot in after the last event not newer than it
        index = len(events)
        while index > 0:
            previous = events[index - 1].get("timestamp")
            if is_numeric_timestamp(previous) and previous > timestamp:
                index -= 1
            else:
                break
        logger.debug(f"Event at {timestamp} arrived after {self._last_timestamp}, stored at index {index}")
        events.insert(index, event)

    def emit(self, event: Dict[str, Any]) -> None:
        """Append one event to the session buffer. Never raises."""
        try:
            if not self.context.active or self.context.session is None:
                return
            if not isinstance(event, dict):
                logger.warning(f"Dropping non-object event of type {type(event).__name__}")
                return
            self._append_ordered(event)
        except Exception as e:
            logger.error(f"Failed to record event: {e}", exc_info=True)

    def add_custom_event(self, tag: str, payload: Dict[str, Any], timestamp: Optional[float] = None) -> None:
        """Inject an application-level marker into the event stream."""
        try:
            self.emit(build_custom_event(tag, payload, self._next_timestamp(timestamp)))
        except Exception as e:
            logger.error(f"Failed to add custom event {tag}: {e}", exc_info=True)

    def _emit_route(self, location: RouteLocation, timestamp: Optional[float] = None) -> None:
        at = self._next_timestamp(timestamp)
        payload = RoutePayload(
            pathname=location.pathname,
            search=location.search,
            hash=location.hash,
            at=at,
            sessionId=self.session.sessionId,
        )
        self.add_custom_event(ROUTE_TAG, payload.model_dump(), at)
        self.context.last_location = location

    def navigate(self, location: Union[RouteLocation, str], timestamp: Optional[float] = None) -> None:
        """
        Record a logical navigation.

        Emits a route event only when pathname, search or hash changed since
        the last recorded location. `timestamp` is the page's own clock
        reading for the change, when the engine reports one.
        """
        try:
            # The initial route is recorded by start()
            if not self.context.active or self.context.last_location is None:
                return
            location = self._as_location(location)
            if location == self.context.last_location:
                return
            self._emit_route(location, timestamp)
        except Exception as e:
            logger.error(f"Failed to record navigation: {e}", exc_info=True)

    def capture_console(
        self,
        level: str,
        args: List[Any],
        trace: Optional[List[str]] = None,
        timestamp: Optional[float] = None,
    ) -> None:
        """Record a console call if its level is captured. Never raises."""
        try:
            if not self.context.active or not self.console.accepts(level):
                return
            self.emit(self.console.build_event(level, args, self._next_timestamp(timestamp), trace))
        except Exception as e:
            logger.error(f"Failed to capture console {level}: {e}", exc_info=True)

    async def stop(self) -> None:
        """Restore the original fetch and stop the engine. Safe to call twice."""
        if self.context.original_fetch is not None:
            self.context.fetch = self.context.original_fetch

        stop_engine, self.context.stop_engine = self.context.stop_engine, None
        if stop_engine is not None:
            try:
                await stop_engine()
            except Exception as e:
                logger.warning(f"Error while stopping recording engine: {e}")

        if self.context.active:
            self.context.active = False
            logger.info(
                f"Stopped recording session {self.context.session_id} "
                f"({len(self.context.session.events)} events)"
            )

    def save(self, path: Union[str, Path]) -> Path:
        """Persist the live session to a file or directory."""
        return save_session(self.session, path)

    async def __aenter__(self) -> "SessionRecorder":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()
