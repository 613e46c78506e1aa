"""Wall clock helpers."""
import time


def now_ms() -> int:
    """Milliseconds since epoch."""
    return int(time.time() * 1000)
