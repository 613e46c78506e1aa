"""Playwright-backed recording engine for a live application page."""
from typing import Any, Callable, Dict, List, Optional

from sessiongeo.config import settings
from sessiongeo.constants import NET_REQUEST_MARKER, NET_RESPONSE_MARKER
from sessiongeo.services.harness import load_rrweb_assets, recording_bootstrap_script
from sessiongeo.services.network import log_network_record, new_request_id
from sessiongeo.utils.clock import now_ms
from sessiongeo.utils.logger import logger

EMIT_BINDING = "__sessiongeoEmit"
NAVIGATE_BINDING = "__sessiongeoNavigate"
CONSOLE_BINDING = "__sessiongeoConsole"

NETWORK_RESOURCE_TYPES = ("fetch", "xhr")


class PlaywrightRecordingEngine:
    """
    Injects rrweb into a Playwright page and streams its events to Python.

    The page keeps being recorded across full navigations because the
    bootstrap is registered as an init script. Route changes and console
    calls are reported from inside the page with the page's timestamp; the
    page's own fetch/xhr traffic is observed from the Playwright side.
    """

    def __init__(self, page, rrweb_script: Optional[str] = None):
        self.page = page
        self.rrweb_script = rrweb_script
        self._stopped = False
        self._emit: Optional[Callable[[Dict[str, Any]], None]] = None
        self._on_console: Optional[Callable[..., None]] = None
        self._on_navigate: Optional[Callable[..., None]] = None
        self._request_ids: Dict[Any, str] = {}
        self._listeners: List[tuple] = []

    def _handle_emit(self, source, event) -> None:
        if not self._stopped and self._emit is not None:
            self._emit(event)

    def _handle_navigate(self, source, url, timestamp=None) -> None:
        if not self._stopped and self._on_navigate is not None:
            self._on_navigate(url, timestamp)

    def _handle_console(self, source, level, args, trace=None, timestamp=None) -> None:
        if self._stopped or self._on_console is None:
            return
        if not isinstance(args, list):
            args = [args]
        self._on_console(level, args, trace or [], timestamp)

    def _handle_request(self, request) -> None:
        if self._stopped or request.resource_type not in NETWORK_RESOURCE_TYPES:
            return
        request_id = new_request_id()
        self._request_ids[request] = request_id
        log_network_record(NET_REQUEST_MARKER, {
            "requestId": request_id,
            "url": request.url,
            "method": request.method,
            "timestamp": now_ms(),
        })

    def _handle_response(self, response) -> None:
        request_id = self._request_ids.pop(response.request, None)
        if request_id is None:
            return
        log_network_record(NET_RESPONSE_MARKER, {
            "requestId": request_id,
            "url": response.url,
            "method": response.request.method,
            "status": response.status,
            "statusText": response.status_text,
            "timestamp": now_ms(),
        })

    def _handle_request_failed(self, request) -> None:
        request_id = self._request_ids.pop(request, None)
        if request_id is None:
            return
        log_network_record(NET_RESPONSE_MARKER, {
            "requestId": request_id,
            "url": request.url,
            "method": request.method,
            "error": request.failure or "Unknown error",
            "timestamp": now_ms(),
        })

    async def start(self, emit, on_console, on_navigate):
        """
        Start recording the page.

        Args:
            emit: Receives each rrweb event
            on_console: Receives (level, args, trace, timestamp) for console calls
            on_navigate: Receives (url, timestamp) after each navigation

        Returns:
            Async callable that stops recording
        """
        self._emit = emit
        self._on_console = on_console
        self._on_navigate = on_navigate

        if self.rrweb_script is None:
            self.rrweb_script, _ = load_rrweb_assets(settings.rrweb_asset_base)

        bootstrap = recording_bootstrap_script(EMIT_BINDING, NAVIGATE_BINDING, CONSOLE_BINDING)

        await self.page.expose_binding(EMIT_BINDING, self._handle_emit)
        await self.page.expose_binding(NAVIGATE_BINDING, self._handle_navigate)
        await self.page.expose_binding(CONSOLE_BINDING, self._handle_console)
        await self.page.add_init_script(script=self.rrweb_script)
        await self.page.add_init_script(script=bootstrap)

        self._listeners = [
            ("request", self._handle_request),
            ("response", self._handle_response),
            ("requestfailed", self._handle_request_failed),
        ]
        for event_name, handler in self._listeners:
            self.page.on(event_name, handler)

        # The current document was loaded before the init scripts existed
        await self.page.add_script_tag(content=self.rrweb_script)
        await self.page.add_script_tag(content=bootstrap)

        logger.info(f"rrweb recording injected into {self.page.url}")
        return self.stop

    async def stop(self) -> None:
        """Detach listeners and stop rrweb in the current document."""
        if self._stopped:
            return
        self._stopped = True

        for event_name, handler in self._listeners:
            try:
                self.page.remove_listener(event_name, handler)
            except Exception as e:
                logger.debug(f"Could not remove {event_name} listener: {e}")
        self._listeners = []
        self._request_ids.clear()

        if not self.page.is_closed():
            await self.page.evaluate(
                "() => { if (window.__sessiongeoStop) { window.__sessiongeoStop(); window.__sessiongeoStop = null; } }"
            )
