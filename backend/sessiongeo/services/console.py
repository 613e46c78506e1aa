"""Console capture with bounded payloads."""
import json
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional

from sessiongeo.config import settings
from sessiongeo.constants import CONSOLE_LEVELS, CONSOLE_PLUGIN, EventType

TRUNCATED_MARKER = "..."


@dataclass
class ConsoleCaptureOptions:
    """Limits applied to captured console arguments."""
    level: FrozenSet[str] = CONSOLE_LEVELS
    length_threshold: int = field(default_factory=lambda: settings.console_length_threshold)
    string_length_limit: int = field(default_factory=lambda: settings.console_string_length_limit)
    num_of_keys_limit: int = field(default_factory=lambda: settings.console_num_of_keys_limit)
    depth_limit: int = field(default_factory=lambda: settings.console_depth_limit)


class ConsoleCapture:
    """Turns console calls into rrweb console plugin events."""

    def __init__(self, options: Optional[ConsoleCaptureOptions] = None):
        self.options = options or ConsoleCaptureOptions()

    def accepts(self, level: str) -> bool:
        return level in self.options.level

    def _truncate(self, value: str, limit: int) -> str:
        if len(value) <= limit:
            return value
        return value[:limit] + TRUNCATED_MARKER

    def _bound(self, value: Any, depth: int) -> Any:
        """Shrink a value to the configured width/depth limits."""
        if isinstance(value, str):
            return self._truncate(value, self.options.string_length_limit)
        if value is None or isinstance(value, (bool, int, float)):
            return value
        if depth >= self.options.depth_limit:
            if isinstance(value, dict):
                return "[Object]"
            if isinstance(value, (list, tuple)):
                return "[Array]"
        if isinstance(value, dict):
            if len(value) > self.options.num_of_keys_limit:
                return f"[Object with {len(value)} keys]"
            return {str(k): self._bound(v, depth + 1) for k, v in value.items()}
        if isinstance(value, (list, tuple)):
            items = [self._bound(v, depth + 1) for v in value[: self.options.num_of_keys_limit]]
            if len(value) > self.options.num_of_keys_limit:
                items.append(f"[{len(value) - self.options.num_of_keys_limit} more items]")
            return items
        return self._truncate(repr(value), self.options.string_length_limit)

    def stringify(self, value: Any) -> str:
        """
        Stringify one console argument within the configured limits.

        Never raises; values that cannot be bounded fall back to their repr.
        """
        try:
            if isinstance(value, str):
                text = value
            else:
                text = json.dumps(self._bound(value, 0), ensure_ascii=False, default=repr)
        except Exception:
            try:
                text = repr(value)
            except Exception:
                text = f"<unprintable {type(value).__name__}>"
        return self._truncate(text, self.options.length_threshold)

    def build_event(self, level: str, args: List[Any], timestamp: int,
                    trace: Optional[List[str]] = None) -> Dict[str, Any]:
        """Console plugin event for one console call."""
        return {
            "type": EventType.PLUGIN,
            "data": {
                "plugin": CONSOLE_PLUGIN,
                "payload": {
                    "level": level,
                    "payload": [self.stringify(arg) for arg in args],
                    "trace": list(trace or []),
                },
            },
            "timestamp": timestamp,
        }
