"""URL utility functions."""
import urllib.parse
from typing import Tuple


def split_location(url: str) -> Tuple[str, str, str]:
    """
    Split a URL into browser-style location parts.

    Args:
        url: Absolute or relative URL

    Returns:
        (pathname, search, hash) where search keeps its leading "?" and
        hash its leading "#", both empty when absent
    """
    parsed = urllib.parse.urlsplit(url or "")
    pathname = parsed.path or "/"
    search = f"?{parsed.query}" if parsed.query else ""
    fragment = f"#{parsed.fragment}" if parsed.fragment else ""
    return pathname, search, fragment
