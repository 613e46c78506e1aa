"""ARQ background tasks for geometry extraction."""
from typing import Any, Dict

from sessiongeo.services.geometry import extract_session_file
from sessiongeo.utils.exceptions import GeometryExtractionError, SessionFormatError
from sessiongeo.utils.logger import logger


async def extract_session_geometry(ctx: Dict[str, Any], session_path: str) -> Dict[str, Any]:
    """
    Extract the geometry timeline for a saved session file.

    Args:
        ctx: ARQ context
        session_path: Path of the session JSON

    Returns:
        Dict with success status and the output path or error
    """
    try:
        output_path = await extract_session_file(session_path)
    except (SessionFormatError, GeometryExtractionError) as e:
        logger.error(f"Geometry extraction failed for {session_path}: {e}")
        return {"success": False, "error": str(e)}

    ctx["extractions"] = ctx.get("extractions", 0) + 1
    logger.info(f"Geometry extracted for {session_path}: {output_path}")
    return {"success": True, "session_path": session_path, "output_path": str(output_path)}
