"""Session identifier generation."""
import random
import time
import uuid

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def fallback_session_id() -> str:
    """Timestamp plus random suffix, used when secure randomness is unavailable."""
    timestamp = _to_base36(int(time.time() * 1000))
    suffix = "".join(random.choice(_BASE36) for _ in range(8))
    return f"{timestamp}-{suffix}"


def generate_session_id() -> str:
    """
    Generate a unique session ID.

    Returns:
        A random UUID4 string, or a "<base36 ms>-<suffix>" identifier when the
        OS random source cannot be used
    """
    try:
        return str(uuid.uuid4())
    except (NotImplementedError, OSError):
        return fallback_session_id()
