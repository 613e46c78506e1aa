"""Geometry extraction: replay a session headlessly and sample element layout."""
import asyncio
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from sessiongeo.config import settings
from sessiongeo.constants import GEOMETRY_SUFFIX
from sessiongeo.schemas.geometry import GeometryOutput, GeometrySnapshot
from sessiongeo.schemas.session import RecordedSession
from sessiongeo.services.events import (
    find_latest_route,
    partition_route_events,
    route_from_event,
    snapshot_times,
    timestamp_range,
)
from sessiongeo.services.harness import ReplayHarness, load_rrweb_assets, render_harness_html
from sessiongeo.services.session_store import load_session_file
from sessiongeo.utils.exceptions import ExtractionCancelled, GeometryExtractionError, SessionFormatError
from sessiongeo.utils.logger import logger
from sessiongeo.utils.serialization import write_json_atomic

ProgressCallback = Callable[[int], None]


def geometry_output_path(input_path: Union[str, Path]) -> Path:
    """<dir>/<basename without .json>.geometry.json next to the input."""
    input_path = Path(input_path)
    name = input_path.name
    if name.endswith(".json"):
        name = name[: -len(".json")]
    return input_path.parent / f"{name}{GEOMETRY_SUFFIX}"


def progress_percent(t: float, first: float, last: float) -> int:
    """Share of [first, last] covered at t, as a whole percentage."""
    if last <= first:
        return 100
    return round((t - first) / (last - first) * 100)


class GeometryExtractor:
    """Replays rrweb events in headless Chromium and samples geometry."""

    def __init__(
        self,
        step_ms: int = None,
        settle_ms: int = None,
        init_settle_ms: int = None,
        width: int = None,
        height: int = None,
        harness_timeout_ms: int = None,
        max_elements: int = None,
        progress: Optional[ProgressCallback] = None,
    ):
        self.step_ms = step_ms or settings.step_ms
        self.settle_ms = settle_ms if settle_ms is not None else settings.settle_ms
        self.init_settle_ms = init_settle_ms if init_settle_ms is not None else settings.init_settle_ms
        self.width = width or settings.viewport_width
        self.height = height or settings.viewport_height
        self.harness_timeout_ms = harness_timeout_ms or settings.harness_timeout_ms
        self.max_elements = max_elements or settings.max_geometry_elements
        self.progress = progress

    def _report_progress(self, percent: int) -> None:
        if self.progress is None:
            logger.debug(f"Progress: {percent}%")
            return
        try:
            self.progress(percent)
        except Exception as e:
            logger.debug(f"Progress callback failed: {e}")

    async def sample(
        self,
        harness: Any,
        events: List[Dict[str, Any]],
        cancel: Optional[asyncio.Event] = None,
    ) -> List[GeometrySnapshot]:
        """
        Run the fixed-cadence sampling loop against a loaded harness.

        Each seek completes and settles before the next geometry read.

        Args:
            harness: Object exposing init_replay, seek_to and get_geometry_snapshot
            events: Full event list of the session
            cancel: Optional event checked before every step

        Returns:
            One GeometrySnapshot per step
        """
        route_events, _ = partition_route_events(events)
        time_range = timestamp_range(events)
        if time_range is None:
            raise SessionFormatError("No event carries a numeric timestamp.")
        first, last = time_range

        logger.info(f"Route events found: {len(route_events)}")
        logger.info(f"Recording duration: {last - first}ms")

        try:
            await harness.init_replay(events)
        except Exception as e:
            raise GeometryExtractionError(f"Failed to initialize replay: {e}") from e
        await asyncio.sleep(self.init_settle_ms / 1000)

        logger.info(f"Extracting geometry snapshots (step: {self.step_ms}ms)...")
        snapshots: List[GeometrySnapshot] = []
        for t in snapshot_times(first, last, self.step_ms):
            if cancel is not None and cancel.is_set():
                raise ExtractionCancelled(f"Extraction cancelled at offset {t - first}ms")

            offset_ms = t - first
            try:
                await harness.seek_to(offset_ms)
                await asyncio.sleep(self.settle_ms / 1000)
                elements = await harness.get_geometry_snapshot()

                snapshots.append(GeometrySnapshot(
                    timestamp=t,
                    offsetMs=offset_ms,
                    route=route_from_event(find_latest_route(route_events, t)),
                    elements=elements or [],
                ))
            except Exception as e:
                raise GeometryExtractionError(f"Snapshot at offset {offset_ms}ms failed: {e}") from e
            self._report_progress(progress_percent(t, first, last))

        return snapshots

    def _harness_html(self) -> str:
        try:
            script_content, style_content = load_rrweb_assets(settings.rrweb_asset_base)
        except Exception as e:
            raise GeometryExtractionError(f"Failed to load replay assets: {e}") from e
        return render_harness_html(script_content, style_content)

    async def extract(
        self,
        session: RecordedSession,
        original_recording: str,
        cancel: Optional[asyncio.Event] = None,
    ) -> GeometryOutput:
        """
        Replay a session and build its geometry timeline.

        Args:
            session: Loaded session (non-empty events)
            original_recording: Basename of the session file
            cancel: Optional cancellation flag checked each step

        Returns:
            GeometryOutput with one snapshot per STEP_MS

        Raises:
            GeometryExtractionError: browser launch, harness load or any step failed
        """
        html_content = self._harness_html()

        try:
            from playwright.async_api import async_playwright
        except ImportError as e:
            raise GeometryExtractionError(f"Playwright is not available: {e}") from e

        try:
            async with async_playwright() as p:
                logger.info("Launching Chromium...")
                browser = await p.chromium.launch(
                    headless=True,
                    args=[
                        f"--window-size={self.width},{self.height}",
                        "--no-sandbox",
                        "--disable-setuid-sandbox",
                    ],
                )
                try:
                    context = await browser.new_context(
                        viewport={"width": self.width, "height": self.height},
                    )
                    page = await context.new_page()

                    # Capture browser console logs for debugging
                    page.on("console", lambda msg: logger.debug(f"Browser console [{msg.type}]: {msg.text}"))
                    page.on("pageerror", lambda err: logger.warning(f"Browser page error: {err}"))

                    harness = ReplayHarness(
                        page,
                        max_elements=self.max_elements,
                        ready_timeout_ms=self.harness_timeout_ms,
                    )
                    await harness.load(html_content)

                    logger.info(f"Initializing replay with {len(session.events)} events")
                    snapshots = await self.sample(harness, session.events, cancel=cancel)
                finally:
                    await browser.close()
        except GeometryExtractionError:
            raise
        except Exception as e:
            raise GeometryExtractionError(f"Geometry extraction failed: {e}") from e

        logger.info(f"Extraction complete: {len(snapshots)} snapshots")
        return GeometryOutput(
            sessionId=session.sessionId,
            originalRecording=original_recording,
            snapshots=snapshots,
        )


async def extract_session_file(
    input_path: Union[str, Path],
    extractor: Optional[GeometryExtractor] = None,
    cancel: Optional[asyncio.Event] = None,
) -> Path:
    """
    Load a session file, extract its geometry and write the result.

    Usage errors surface before any browser work. The output file is only
    written once every snapshot has been captured.

    Returns:
        Path of the written <basename>.geometry.json
    """
    session = load_session_file(input_path)
    input_path = Path(input_path).resolve()

    logger.info(f"Loading session from: {input_path}")
    logger.info(f"Session ID: {session.sessionId}")
    logger.info(f"Total events: {len(session.events)}")

    extractor = extractor or GeometryExtractor()
    output = await extractor.extract(session, input_path.name, cancel=cancel)

    try:
        output_path = write_json_atomic(geometry_output_path(input_path), output)
    except OSError as e:
        raise GeometryExtractionError(f"Failed to write output: {e}") from e
    logger.info(f"Output written to: {output_path}")
    return output_path
