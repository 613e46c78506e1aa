"""Screen recording of a live capture, saved beside the session file."""
import os
import shutil
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional, Union

from sessiongeo.utils.logger import logger


def create_video_dir() -> str:
    """Scratch directory Playwright writes the raw page video into."""
    return tempfile.mkdtemp(prefix="sessiongeo-video-")


def video_context_options(video_dir: Optional[str], width: int, height: int) -> Dict[str, Any]:
    """Extra `browser.new_context` options; empty when video is off."""
    if not video_dir:
        return {}
    return {
        "record_video_dir": video_dir,
        "record_video_size": {"width": width, "height": height},
    }


def session_video_path(session_path: Union[str, Path]) -> Path:
    """session-<id>.json -> session-<id>.webm in the same directory."""
    return Path(session_path).with_suffix(".webm")


async def finalize_video(context, video_dir: str, session_path: Union[str, Path]) -> Optional[Path]:
    """
    Close the browser context and move its video next to the session file.

    Playwright only finishes writing the video once the context is closed.

    Args:
        context: Playwright BrowserContext created with video options
        video_dir: Directory passed as record_video_dir
        session_path: Path of the saved session JSON

    Returns:
        Path of the .webm file, or None when no video was produced
    """
    try:
        await context.close()
    except Exception as e:
        logger.warning(f"Error while closing recording context: {e}")

    try:
        video_files = [
            os.path.join(video_dir, name)
            for name in os.listdir(video_dir)
            if name.endswith(".webm")
        ]
        if not video_files:
            logger.warning("No session video was produced")
            return None

        latest_video = max(video_files, key=os.path.getctime)
        destination = session_video_path(session_path)
        shutil.move(latest_video, destination)
        logger.info(f"Session video written to {destination} ({os.path.getsize(destination)} bytes)")
        return destination
    except OSError as e:
        logger.error(f"Failed to save session video: {e}")
        return None
    finally:
        shutil.rmtree(video_dir, ignore_errors=True)
