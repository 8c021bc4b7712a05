"""
Inspector Web Server

Small HTTP server that renders a prefix scan of a key-value store as an HTML
table, plus a resume endpoint that releases a paused workload.

The server runs its own asyncio event loop on a daemon thread so the calling
test or benchmark keeps its thread; requests are served while that thread is
parked on the resume gate.
"""

import asyncio
import html
import logging
import sys
import threading
import time
from concurrent.futures import Future, TimeoutError as FuturesTimeoutError
from dataclasses import dataclass, field
from pathlib import Path
from string import Template
from typing import List, Optional, Union
from urllib.parse import quote

from aiohttp import web
from aiohttp.web import Application, Request, Response

from storage.kv_interface import KeyValueStore

from .errors import TemplateError
from .observability import get_tracer
from .resume_gate import ResumeGate
from .row_mapper import DefaultRowMapper, DisplayRecord, MapperLike, as_row_mapper, decode_key

logger = logging.getLogger(__name__)

DEFAULT_PORT = 8089
DEFAULT_ENDPOINT = "/inspect"
DEFAULT_RESUME_PATH = "/resume"
DEFAULT_PREFIX = "analysis:"
DEFAULT_TEMPLATE_PATH = Path(__file__).parent / "templates" / "inspect.html"

REQUIRED_PLACEHOLDERS = frozenset({"rows", "prefix"})
KNOWN_PLACEHOLDERS = frozenset({"rows", "prefix", "count", "endpoint", "resume_path"})

BANNER_OPEN = "--- TEST PAUSED ---"
BANNER_CLOSE = "-------------------"


@dataclass
class PageView:
    """Rendering context for one request: active prefix and rows in scan order."""
    prefix: str
    items: List[DisplayRecord] = field(default_factory=list)


def load_template(path: Union[str, Path]) -> Template:
    """
    Read and validate the page template.

    Raises:
        TemplateError: If the file cannot be read or its placeholders are
            malformed, missing or unknown
    """
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise TemplateError(f"Cannot read inspector template {path}: {e}") from e

    identifiers = set()
    for match in Template.pattern.finditer(text):
        if match.group("invalid") is not None:
            raise TemplateError(f"Invalid placeholder in {path} at offset {match.start('invalid')}")
        name = match.group("named") or match.group("braced")
        if name:
            identifiers.add(name)

    missing = REQUIRED_PLACEHOLDERS - identifiers
    if missing:
        raise TemplateError(f"Template {path} is missing placeholders: {sorted(missing)}")
    unknown = identifiers - KNOWN_PLACEHOLDERS
    if unknown:
        raise TemplateError(f"Template {path} uses unknown placeholders: {sorted(unknown)}")

    return Template(text)


def print_pause_banner(url: str, stream=None) -> None:
    """Print the operator-facing inspection link between banner lines."""
    stream = stream or sys.stdout
    print(f"\n{BANNER_OPEN}\n\n{url}\n\n{BANNER_CLOSE}", file=stream, flush=True)


class InspectionServer:
    """
    Web server for browsing a key-value store while a workload is paused.

    Provides:
    - GET <endpoint>?prefix=... - HTML table of records whose key starts with prefix
    - GET <resume_path> - arms the resume gate, answers "RESUMED"
    - GET /health - liveness and request counters
    """

    def __init__(self, store: KeyValueStore, port: int = DEFAULT_PORT,
                 endpoint: str = DEFAULT_ENDPOINT, mapper: MapperLike = None,
                 host: str = "0.0.0.0", default_prefix: str = DEFAULT_PREFIX,
                 resume_path: str = DEFAULT_RESUME_PATH,
                 template_path: Optional[Union[str, Path]] = None,
                 gate: Optional[ResumeGate] = None):
        """
        Initialize the inspection server. Nothing listens until start().

        Args:
            store: Store to browse; the server only ever reads from it
            port: Port to listen on, 0 for an ephemeral port
            endpoint: Path of the browsing page
            mapper: RowMapper or plain callable; DefaultRowMapper if None
            host: Interface to bind
            default_prefix: Prefix used when the request has none
            resume_path: Path of the resume endpoint
            template_path: Page template, the bundled one if None
            gate: Resume gate to arm, a fresh one if None

        Raises:
            TemplateError: If the template is missing or malformed
        """
        self.store = store
        self.port = port
        self.endpoint = endpoint
        self.host = host
        self.default_prefix = default_prefix
        self.resume_path = resume_path
        self.mapper = as_row_mapper(mapper)
        self.template = load_template(template_path or DEFAULT_TEMPLATE_PATH)
        self.gate = gate or ResumeGate()
        self.tracer = get_tracer(__name__)

        self.app: Optional[Application] = None
        self.runner: Optional[web.AppRunner] = None
        self.site: Optional[web.TCPSite] = None
        self.loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None
        self._started: Optional[Future] = None
        self._stop_event: Optional[asyncio.Event] = None

        # Server metrics
        self.start_time = time.time()
        self.request_count = 0

    @classmethod
    def from_settings(cls, store: KeyValueStore, settings, mapper: MapperLike = None, **overrides) -> "InspectionServer":
        """Build a server from InspectorSettings, explicit keyword arguments win."""
        if mapper is None:
            mapper = DefaultRowMapper(separator=settings.key_separator)
        options = dict(
            port=settings.port,
            endpoint=settings.endpoint,
            host=settings.host,
            default_prefix=settings.default_prefix,
            resume_path=settings.resume_path,
        )
        options.update(overrides)
        return cls(store, mapper=mapper, **options)

    def create_app(self) -> Application:
        """Create the aiohttp application with routes."""
        app = web.Application(middlewares=[self.request_counter_middleware])
        app.router.add_get(self.endpoint, self.handle_inspect)
        app.router.add_get(self.resume_path, self.handle_resume)
        app.router.add_get('/health', self.handle_health)
        return app

    # ----- lifecycle -----

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> Future:
        """
        Start listening on a background thread and return immediately.

        Returns:
            Future resolving to the bound port, or to the exception that
            prevented binding
        """
        if self.is_running:
            logger.warning(f"Inspector server on port {self.port} is already running")
            return self._started

        self._started = Future()
        self._stop_event = asyncio.Event()
        self.loop = asyncio.new_event_loop()
        self._thread = threading.Thread(
            target=self._serve_forever,
            name=f"inspector-server-{self.port}",
            daemon=True
        )
        self._thread.start()
        return self._started

    def wait_until_started(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for the listener to bind.

        Returns:
            True once listening, False if binding failed or timed out (logged)
        """
        if self._started is None:
            logger.error("Inspector server was never started")
            return False
        try:
            self._started.result(timeout=timeout)
            return True
        except FuturesTimeoutError:
            logger.error(f"Inspector server did not start within {timeout}s")
            return False
        except Exception as e:
            logger.error(f"Inspector server failed to start on {self.host}:{self.port}: {e}")
            return False

    def stop(self, timeout: float = 5.0) -> None:
        """Stop the listener and join the background thread."""
        thread = self._thread
        if thread is None:
            return
        try:
            self.loop.call_soon_threadsafe(self._stop_event.set)
        except RuntimeError:
            # Loop already closed: the thread exited on its own
            pass
        thread.join(timeout)
        if thread.is_alive():
            # Still serving: keep the handle so is_running stays True
            logger.warning(f"Inspector server thread did not stop within {timeout}s")
            return
        self._thread = None

    def _serve_forever(self):
        asyncio.set_event_loop(self.loop)
        try:
            self.loop.run_until_complete(self._serve())
        except Exception as e:
            logger.error(f"Inspector server on {self.host}:{self.port} stopped: {e}", exc_info=True)
            if not self._started.done():
                self._started.set_exception(e)
        finally:
            self.loop.close()

    async def _serve(self):
        self.app = self.create_app()
        self.runner = web.AppRunner(self.app, access_log=None)
        await self.runner.setup()
        try:
            self.site = web.TCPSite(self.runner, self.host, self.port)
            await self.site.start()
            if self.runner.addresses:
                self.port = self.runner.addresses[0][1]
            logger.info(f"Inspector server started on http://localhost:{self.port}{self.endpoint}")
            self._started.set_result(self.port)
            await self._stop_event.wait()
        finally:
            await self.runner.cleanup()
            logger.info("Inspector server stopped")

    # ----- pause / resume -----

    def inspect_url(self, prefix: Optional[str] = None) -> str:
        """URL of the browsing page for ``prefix``."""
        prefix = prefix or self.default_prefix
        return f"http://localhost:{self.port}{self.endpoint}?prefix={quote(prefix, safe=':')}"

    def wait(self, prefix: Optional[str] = None, timeout: Optional[float] = None) -> bool:
        """
        Print the inspection link and block until the operator resumes.

        Returns:
            True on resume, False if ``timeout`` expired first
        """
        print_pause_banner(self.inspect_url(prefix))
        resumed = self.gate.block(timeout)
        if not resumed:
            logger.warning(f"Inspector wait timed out after {timeout}s without a resume")
        return resumed

    # ----- request handling -----

    @web.middleware
    async def request_counter_middleware(self, request: Request, handler):
        """Count requests and turn unexpected handler errors into logged 500s."""
        self.request_count += 1
        start_time = time.time()

        try:
            response = await handler(request)
        except web.HTTPException:
            raise
        except Exception as e:
            logger.error(f"Inspector request {request.path} failed: {e}", exc_info=True)
            response = web.Response(text="Internal inspector error", status=500)
        response.headers['X-Request-ID'] = str(self.request_count)
        response.headers['X-Response-Time'] = f"{(time.time() - start_time) * 1000:.3f}ms"
        return response

    async def handle_inspect(self, request: Request) -> Response:
        """Handle the browsing page."""
        prefix = request.query.get('prefix') or self.default_prefix
        page = await self.collect_page(prefix)

        try:
            body = self.render(page)
        except Exception as e:
            logger.error(f"Failed to render inspector page for prefix {prefix!r}: {e}", exc_info=True)
            return web.Response(
                text=f"<html><body><h1>Error rendering page</h1><p>{html.escape(str(e))}</p></body></html>",
                content_type='text/html',
                status=500
            )
        return web.Response(text=body, content_type='text/html', charset='utf-8')

    async def handle_resume(self, request: Request) -> Response:
        """Handle the operator's resume click."""
        _ = request  # Request parameter required by aiohttp interface
        self.gate.signal()
        logger.info("Resume requested by operator")
        return web.Response(text="RESUMED", content_type='text/plain')

    async def handle_health(self, request: Request) -> Response:
        """Handle health check endpoint."""
        _ = request  # Request parameter required by aiohttp interface
        return web.json_response({
            "status": "ok",
            "uptime_seconds": time.time() - self.start_time,
            "request_count": self.request_count,
            "resume_pending": self.gate.is_armed
        })

    async def collect_page(self, prefix: str) -> PageView:
        """
        Scan the store for ``prefix`` inside a snapshot and map every entry.

        Rows whose mapping fails are skipped; a failing scan keeps the rows
        gathered so far.
        """
        page = PageView(prefix=prefix)
        with self.tracer.start_as_current_span("inspector.scan") as span:
            span.set_attribute("inspector.prefix", prefix)
            try:
                async with self.store.snapshot() as view:
                    async for key, value in view.iter_prefix(prefix):
                        record = self._map_row(key, value)
                        if record is not None:
                            page.items.append(record)
            except Exception as e:
                logger.error(f"Prefix scan for {prefix!r} stopped after {len(page.items)} rows: {e}", exc_info=True)
            span.set_attribute("inspector.rows", len(page.items))
        return page

    def _map_row(self, key: bytes, value: bytes) -> Optional[DisplayRecord]:
        try:
            return self.mapper.map(key, value)
        except Exception as e:
            logger.warning(f"Skipping row {decode_key(key)!r}: mapper failed: {e}", exc_info=True)
            return None

    def render(self, page: PageView) -> str:
        """Render a PageView through the page template."""
        if page.items:
            rows = "\n".join(self._render_row(record) for record in page.items)
        else:
            rows = '            <tr><td colspan="7" class="empty">No records</td></tr>'
        return self.template.substitute(
            rows=rows,
            prefix=html.escape(page.prefix),
            count=len(page.items),
            endpoint=html.escape(self.endpoint),
            resume_path=html.escape(self.resume_path)
        )

    @staticmethod
    def _render_row(record: DisplayRecord) -> str:
        cells = [
            f'<td class="key">{html.escape(record.key)}</td>',
            f'<td>{html.escape(record.kind)}</td>',
            f'<td>{html.escape(record.timestamp)}</td>',
            f'<td>{html.escape(record.entity_id)}</td>',
            f'<td>{html.escape(record.namespace)}</td>',
            f'<td>{html.escape(record.detail)}</td>',
            f'<td>{html.escape(record.scores)}</td>',
        ]
        return "            <tr>" + "".join(cells) + "</tr>"
