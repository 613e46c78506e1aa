"""rrweb assets and the replay harness page driven by Playwright."""
import json
import urllib.request
from functools import lru_cache
from typing import Any, Dict, List

from sessiongeo.config import settings
from sessiongeo.utils.exceptions import GeometryExtractionError
from sessiongeo.utils.logger import logger


@lru_cache(maxsize=4)
def load_rrweb_assets(base_url: str) -> tuple[str, str]:
    """
    Load rrweb static assets (JS and CSS).
    Uses caching to avoid fetching on every run.

    Args:
        base_url: dist/ URL of an rrweb release

    Returns:
        (script_content, style_content)
    """
    logger.info(f"Fetching rrweb assets from {base_url}...")

    with urllib.request.urlopen(f"{base_url}/rrweb.min.js", timeout=30) as response:
        script_content = response.read().decode("utf-8")

    with urllib.request.urlopen(f"{base_url}/rrweb.min.css", timeout=30) as response:
        style_content = response.read().decode("utf-8")

    logger.info("Successfully fetched rrweb assets")
    return script_content, style_content


# Replay harness page.
# Assets are embedded directly so the headless page needs no network access.
HARNESS_HTML_TEMPLATE = """
<!DOCTYPE html>
<html>
<head>
    <meta charset="UTF-8">
    <title>Session Replay Harness</title>
    <style>
        {style_content}

        * {{ margin: 0; padding: 0; box-sizing: border-box; }}
        html, body {{
            width: 100%;
            height: 100%;
            background: #ffffff;
            overflow: hidden;
        }}
        #replay-root {{
            position: absolute;
            top: 0;
            left: 0;
        }}
        .replayer-mouse, .replayer-mouse-tail {{
            display: none !important;
        }}
    </style>
</head>
<body>
    <div id="replay-root"></div>

    <script>
        {script_content}
    </script>

    <script>
        window.harnessReady = false;
        window.loadError = null;
        window.replayer = null;

        var checkCount = 0;
        function checkReady() {{
            checkCount++;
            if (typeof rrweb !== 'undefined' && typeof rrweb.Replayer === 'function') {{
                window.harnessReady = true;
                return;
            }}
            if (checkCount < 100) {{
                setTimeout(checkReady, 100);
            }} else {{
                window.loadError = 'Timeout waiting for rrweb to load';
                console.error(window.loadError);
            }}
        }}
        checkReady();

        window.initReplay = function(events) {{
            if (!events || events.length === 0) {{
                throw new Error('No events provided');
            }}
            var root = document.getElementById('replay-root');
            if (window.replayer) {{
                window.replayer.pause();
                root.innerHTML = '';
            }}
            window.replayer = new rrweb.Replayer(events, {{
                root: root,
                speed: 1,
                skipInactive: false,
                showWarning: false,
                showDebug: false,
                mouseTail: false,
                triggerFocus: false
            }});
            return true;
        }};

        window.seekTo = function(offsetMs) {{
            if (!window.replayer) {{
                throw new Error('initReplay has not been called');
            }}
            window.replayer.pause(offsetMs);
            // Resolve once layout for the rebuilt DOM has been flushed
            return new Promise(function(resolve) {{
                requestAnimationFrame(function() {{
                    requestAnimationFrame(function() {{ resolve(offsetMs); }});
                }});
            }});
        }};

        window.getGeometrySnapshot = function(maxElements) {{
            if (!window.replayer) {{
                throw new Error('initReplay has not been called');
            }}
            var iframe = window.replayer.iframe;
            var doc = iframe && iframe.contentDocument;
            if (!doc || !doc.body) {{
                return [];
            }}
            var win = iframe.contentWindow;
            var viewportWidth = win.innerWidth;
            var viewportHeight = win.innerHeight;
            var limit = maxElements || 2000;
            var elements = [];
            var nodes = doc.body.querySelectorAll('*');

            for (var i = 0; i < nodes.length && elements.length < limit; i++) {{
                var el = nodes[i];
                var rect = el.getBoundingClientRect();
                if (rect.width <= 0 || rect.height <= 0) continue;
                if (rect.right <= 0 || rect.bottom <= 0 || rect.left >= viewportWidth || rect.top >= viewportHeight) continue;

                var style = win.getComputedStyle(el);
                var visible = style.visibility !== 'hidden' && style.display !== 'none' && parseFloat(style.opacity || '1') > 0;

                var text = null;
                for (var c = 0; c < el.childNodes.length; c++) {{
                    var child = el.childNodes[c];
                    if (child.nodeType === 3 && child.textContent.trim()) {{
                        text = (text || '') + child.textContent.trim() + ' ';
                    }}
                }}
                if (text !== null) text = text.trim().slice(0, 80);

                elements.push({{
                    tag: el.tagName.toLowerCase(),
                    id: el.id ? String(el.id) : null,
                    classes: el.classList ? Array.prototype.slice.call(el.classList) : [],
                    text: text,
                    x: rect.x,
                    y: rect.y,
                    width: rect.width,
                    height: rect.height,
                    visible: visible
                }});
            }}
            return elements;
        }};
    </script>
</body>
</html>
"""


def render_harness_html(script_content: str, style_content: str) -> str:
    return HARNESS_HTML_TEMPLATE.format(script_content=script_content, style_content=style_content)


class ReplayHarness:
    """Thin async wrapper over the harness page's three entry points."""

    def __init__(self, page, max_elements: int = None, ready_timeout_ms: int = None):
        self.page = page
        self.max_elements = max_elements or settings.max_geometry_elements
        self.ready_timeout_ms = ready_timeout_ms or settings.harness_timeout_ms

    async def load(self, html_content: str) -> None:
        """Load the harness and wait (bounded) until rrweb is available."""
        # set_content is more reliable than file:// for embedded assets
        await self.page.set_content(html_content, wait_until="domcontentloaded")
        try:
            await self.page.wait_for_function(
                "() => window.harnessReady === true || window.loadError !== null",
                timeout=self.ready_timeout_ms,
            )
        except Exception as e:
            raise GeometryExtractionError(f"Replay harness did not become ready: {e}") from e

        load_error = await self.page.evaluate("() => window.loadError")
        if load_error:
            raise GeometryExtractionError(f"Failed to load replay harness: {load_error}")
        logger.info("Replay harness loaded")

    async def init_replay(self, events: List[Dict[str, Any]]) -> None:
        await self.page.evaluate("(events) => window.initReplay(events)", events)

    async def seek_to(self, offset_ms: float) -> None:
        await self.page.evaluate("(offset) => window.seekTo(offset)", offset_ms)

    async def get_geometry_snapshot(self) -> List[Dict[str, Any]]:
        return await self.page.evaluate(
            "(limit) => window.getGeometrySnapshot(limit)", self.max_elements
        )


def recording_bootstrap_script(emit_binding: str, navigate_binding: str, console_binding: str) -> str:
    """
    In-page script that starts rrweb recording and reports location changes
    and console calls.

    Every report carries the page's own Date.now() so markers share a clock
    with the rrweb events. Runs on every document of the recorded page; a
    window flag keeps it to one recorder per document.
    """
    return """
(function() {
    if (window.__sessiongeoRecording) return;
    window.__sessiongeoRecording = true;

    function reportLocation() {
        try { window[%(navigate)s](window.location.href, Date.now()); } catch (e) {}
    }

    function toTransferable(value) {
        if (value instanceof Error) {
            return value.name + ': ' + value.message;
        }
        if (value === undefined || typeof value === 'function' || typeof value === 'symbol') {
            return String(value);
        }
        try {
            return JSON.parse(JSON.stringify(value));
        } catch (e) {
            return String(value);
        }
    }

    function callerTrace() {
        var stack = (new Error()).stack || '';
        return stack.split('\\n').slice(3).map(function(line) {
            return line.replace(/^\\s*at\\s+/, '').trim();
        }).filter(Boolean);
    }

    ['log', 'info', 'warn', 'error', 'debug'].forEach(function(level) {
        var original = console[level];
        if (typeof original !== 'function') return;
        console[level] = function() {
            var timestamp = Date.now();
            try {
                var args = Array.prototype.map.call(arguments, toTransferable);
                window[%(console)s](level, args, callerTrace(), timestamp);
            } catch (e) {}
            return original.apply(this, arguments);
        };
    });

    function start() {
        window.__sessiongeoStop = rrweb.record({
            emit: function(event) {
                try { window[%(emit)s](event); } catch (e) {}
            }
        });

        var pushState = history.pushState;
        var replaceState = history.replaceState;
        history.pushState = function() {
            var result = pushState.apply(this, arguments);
            reportLocation();
            return result;
        };
        history.replaceState = function() {
            var result = replaceState.apply(this, arguments);
            reportLocation();
            return result;
        };
        window.addEventListener('popstate', reportLocation);
        window.addEventListener('hashchange', reportLocation);
        reportLocation();
    }

    if (document.readyState === 'loading') {
        document.addEventListener('DOMContentLoaded', start);
    } else {
        start();
    }
})();
""" % {
        "emit": json.dumps(emit_binding),
        "navigate": json.dumps(navigate_binding),
        "console": json.dumps(console_binding),
    }
