"""Application-wide constants."""


# rrweb event type discriminants
class EventType:
    """rrweb event type values as they appear on the wire."""
    DOM_CONTENT_LOADED = 0
    LOAD = 1
    FULL_SNAPSHOT = 2
    INCREMENTAL_SNAPSHOT = 3
    META = 4
    CUSTOM = 5
    PLUGIN = 6


ROUTE_TAG = "route"
CONSOLE_PLUGIN = "rrweb/console@1"
CONSOLE_LEVELS = frozenset({"log", "warn", "error"})

UNKNOWN_SESSION_ID = "unknown-session"
GEOMETRY_SUFFIX = ".geometry.json"

# Log markers for the network sink
NET_REQUEST_MARKER = "[REC_NET_REQUEST]"
NET_RESPONSE_MARKER = "[REC_NET_RESPONSE]"
