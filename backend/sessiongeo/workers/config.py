"""ARQ worker configuration."""
from pathlib import Path
from urllib.parse import urlparse

from arq.connections import RedisSettings

from sessiongeo.config import settings
from sessiongeo.utils.logger import logger
from sessiongeo.workers.tasks import extract_session_geometry


def parse_redis_url(url: str) -> RedisSettings:
    """Parse Redis URL into RedisSettings."""
    parsed = urlparse(url)
    return RedisSettings(
        host=parsed.hostname or "localhost",
        port=parsed.port or 6379,
        password=parsed.password,
        database=int(parsed.path[1:]) if parsed.path and len(parsed.path) > 1 else 0,
    )


redis_settings = parse_redis_url(settings.redis_url)


async def startup(ctx):
    """Prepare the sessions directory and note the sampling cadence."""
    Path(settings.sessions_dir).mkdir(parents=True, exist_ok=True)
    ctx["extractions"] = 0
    logger.info(
        f"Geometry worker ready (step {settings.step_ms}ms, settle {settings.settle_ms}ms, "
        f"redis {redis_settings.host}:{redis_settings.port})"
    )


async def shutdown(ctx):
    logger.info(f"Geometry worker stopping after {ctx.get('extractions', 0)} extraction(s)")


class WorkerSettings:
    """Settings for the background geometry extraction worker."""

    functions = [
        extract_session_geometry,
    ]

    on_startup = startup
    on_shutdown = shutdown

    redis_settings = redis_settings

    # Single Chromium instance per worker
    max_jobs = 1
    job_timeout = 600
    keep_result = 3600
    retry_jobs = False
    max_tries = 1
