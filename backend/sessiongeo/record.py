"""Record a live web application session in a Playwright-driven browser."""
from __future__ import annotations

import argparse
import asyncio
import shutil
from pathlib import Path
from typing import Optional, Sequence

import uvicorn

from sessiongeo.config import settings
from sessiongeo.main import create_app
from sessiongeo.services.browser_engine import PlaywrightRecordingEngine
from sessiongeo.services.recorder import CaptureContext, SessionRecorder
from sessiongeo.services.session_video import create_video_dir, finalize_video, video_context_options
from sessiongeo.utils.logger import logger


async def record_session(
    url: str,
    output_dir: Path,
    headless: bool = False,
    serve: bool = True,
    capture: Optional[CaptureContext] = None,
    record_video: Optional[bool] = None,
) -> Path:
    """
    Open `url`, record until the page is closed, then save the session.

    While recording, the capture context is served over the session API so
    it can be downloaded or queued for extraction at any point. Host-side
    HTTP calls are logged when the caller hands in a context built with
    `original_fetch` and sends requests through `capture.fetch`; the page's
    own fetch/xhr traffic is logged by the recording engine.

    Args:
        url: Application URL to open
        output_dir: Directory for session-<id>.json (and .webm)
        headless: Run Chromium without a window
        serve: Serve the session API while recording
        capture: Capture context to record into; a fresh one by default
        record_video: Save a screen recording; defaults to settings.record_video

    Returns:
        Path of the saved session file
    """
    from playwright.async_api import async_playwright

    capture = capture if capture is not None else CaptureContext()
    if record_video is None:
        record_video = settings.record_video

    server = None
    server_task = None
    if serve:
        config = uvicorn.Config(create_app(capture), host=settings.api_host, port=settings.api_port, log_level="info")
        server = uvicorn.Server(config)
        server_task = asyncio.create_task(server.serve())

    video_dir = create_video_dir() if record_video else None
    try:
        async with async_playwright() as p:
            browser = await p.chromium.launch(headless=headless)
            try:
                context = await browser.new_context(
                    viewport={"width": settings.viewport_width, "height": settings.viewport_height},
                    **video_context_options(video_dir, settings.viewport_width, settings.viewport_height),
                )
                page = await context.new_page()
                await page.goto(url, wait_until="domcontentloaded")

                recorder = SessionRecorder(capture, engine=PlaywrightRecordingEngine(page))
                await recorder.start(page.url)

                closed = asyncio.Event()
                page.on("close", lambda _: closed.set())
                try:
                    await closed.wait()
                finally:
                    await recorder.stop()
                    saved_path = recorder.save(output_dir)
                    if video_dir is not None:
                        await finalize_video(context, video_dir, saved_path)
            finally:
                await browser.close()
    finally:
        if video_dir is not None:
            shutil.rmtree(video_dir, ignore_errors=True)
        if server is not None:
            server.should_exit = True
            await server_task

    return saved_path


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Record a web application session")
    parser.add_argument("url", help="Application URL to open")
    parser.add_argument("--output", type=str, default=settings.sessions_dir, help="Directory for the session file")
    parser.add_argument("--headless", action="store_true", help="Run the browser headless")
    parser.add_argument("--no-serve", action="store_true", help="Do not start the session API")
    parser.add_argument("--video", action="store_true", default=None, help="Save a screen recording next to the session")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    output_dir = Path(args.output)
    output_dir.mkdir(parents=True, exist_ok=True)

    try:
        path = asyncio.run(record_session(
            args.url,
            output_dir,
            headless=args.headless,
            serve=not args.no_serve,
            record_video=args.video,
        ))
    except KeyboardInterrupt:
        logger.info("Recording interrupted")
        return 1

    print(f"Session written to: {path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
