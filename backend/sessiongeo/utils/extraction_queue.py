"""Geometry extraction queue utilities."""
from arq import create_pool
from sessiongeo.workers.config import redis_settings
from sessiongeo.utils.logger import logger


async def queue_geometry_extraction(session_path: str) -> bool:
    """
    Queue a geometry extraction job for a saved session file.

    Args:
        session_path: Absolute path of the session JSON

    Returns:
        True if job was queued successfully, False otherwise
    """
    try:
        redis = await create_pool(redis_settings)
        await redis.enqueue_job("extract_session_geometry", session_path)
        await redis.close()
        return True
    except Exception as e:
        logger.error(f"Failed to queue geometry extraction for {session_path}: {e}", exc_info=True)
        return False
