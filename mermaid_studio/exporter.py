"""Render Mermaid markup to SVG/PNG/JPEG in a headless browser.

Each export owns one freshly launched Chromium for its whole lifetime and
closes it on every exit path. An admission semaphore bounds how many of
those browsers can be alive at once.
"""

import asyncio
import html
import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncContextManager, AsyncIterator, Callable, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page, async_playwright
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from .config import get_max_concurrent_renders, get_mermaid_script_url, get_render_timeout
from .errors import RenderError, RenderTimeoutError, ValidationError
from .models import ExportArtifact, ExportFormat, ExportRequest

logger = logging.getLogger(__name__)

CONTAINER_SELECTOR = "#diagram"
OUTPUT_SELECTOR = "#diagram svg"
JPEG_QUALITY = 90

CHROMIUM_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--disable-gpu",
]

SandboxFactory = Callable[[], AsyncContextManager[Page]]


def build_render_document(markup: str, script_url: Optional[str] = None) -> str:
    """Static page that renders ``markup`` with Mermaid on load."""
    script_url = script_url or get_mermaid_script_url()
    # Mermaid entity-decodes the element content before parsing
    body = html.escape(markup, quote=False)
    return f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="UTF-8">
    <script src="{html.escape(script_url)}"></script>
    <style>
        body {{
            margin: 0;
            padding: 20px;
            background: white;
        }}
        #diagram {{
            display: inline-block;
        }}
    </style>
</head>
<body>
    <div id="diagram">
        <pre class="mermaid">
{body}
        </pre>
    </div>
    <script>
        mermaid.initialize({{ startOnLoad: true, theme: 'default' }});
    </script>
</body>
</html>
"""


@asynccontextmanager
async def launch_sandbox() -> AsyncIterator[Page]:
    """Launch a disposable headless Chromium and yield a fresh page.

    The browser and the Playwright driver are torn down when the block
    exits, whether it returns or raises.
    """
    async with async_playwright() as playwright:
        logger.debug("Launching headless Chromium")
        browser = await playwright.chromium.launch(headless=True, args=CHROMIUM_ARGS)
        try:
            context = await browser.new_context()
            yield await context.new_page()
        finally:
            await browser.close()
            logger.debug("Closed headless Chromium")


def validate_export_request(markup: Optional[str], fmt) -> ExportRequest:
    """Check export input before any sandbox is acquired."""
    if not markup or not markup.strip():
        raise ValidationError("Mermaid code is required")
    try:
        fmt = ExportFormat(fmt)
    except ValueError:
        raise ValidationError("Invalid format. Must be svg, png, or jpeg") from None
    return ExportRequest(mermaid_code=markup, format=fmt)


class RenderExporter:
    """Rasterizes or serializes Mermaid diagrams through a headless browser."""

    def __init__(
        self,
        sandbox_factory: Optional[SandboxFactory] = None,
        max_concurrent: Optional[int] = None,
        timeout_ms: Optional[int] = None,
        script_url: Optional[str] = None,
    ):
        self.sandbox_factory = sandbox_factory or launch_sandbox
        self.max_concurrent = max_concurrent or get_max_concurrent_renders()
        self.timeout_ms = timeout_ms or get_render_timeout()
        self.script_url = script_url or get_mermaid_script_url()
        self._slots = asyncio.Semaphore(self.max_concurrent)

    def _timed_out(self) -> RenderTimeoutError:
        return RenderTimeoutError(f"Diagram did not render within {self.timeout_ms / 1000:g}s")

    async def _load_and_wait(self, page: Page, document: str, deadline: float):
        await page.set_content(document, wait_until="networkidle", timeout=self.timeout_ms)
        # Network idle and the output node share one budget
        remaining_ms = (deadline - time.monotonic()) * 1000
        if remaining_ms <= 0:
            raise self._timed_out()
        await page.wait_for_selector(OUTPUT_SELECTOR, timeout=remaining_ms)

    async def _wait_until_rendered(self, page: Page, document: str):
        deadline = time.monotonic() + self.timeout_ms / 1000
        try:
            await asyncio.wait_for(
                self._load_and_wait(page, document, deadline),
                timeout=self.timeout_ms / 1000,
            )
        except (PlaywrightTimeoutError, asyncio.TimeoutError) as e:
            raise self._timed_out() from e

    async def _capture_svg(self, page: Page) -> bytes:
        svg = await page.evaluate(
            "(selector) => { const el = document.querySelector(selector); "
            "return el ? el.outerHTML : null; }",
            OUTPUT_SELECTOR,
        )
        if not svg:
            raise RenderError("Failed to generate SVG")
        return svg.encode("utf-8")

    async def _capture_raster(self, page: Page, fmt: ExportFormat) -> bytes:
        element = await page.query_selector(CONTAINER_SELECTOR)
        if element is None:
            raise RenderError("Diagram container not found")
        options = {"type": fmt.value}
        if fmt == ExportFormat.JPEG:
            options["quality"] = JPEG_QUALITY
        else:
            options["omit_background"] = True
        return await element.screenshot(**options)

    async def export(self, markup: str, fmt) -> ExportArtifact:
        """Render ``markup`` and capture it as ``fmt``.

        Raises:
            ValidationError: empty markup or unsupported format (no sandbox
                is launched).
            RenderTimeoutError: the diagram did not appear in time.
            RenderError: the sandbox failed or produced no output.
        """
        request = validate_export_request(markup, fmt)
        fmt = request.format
        document = build_render_document(request.mermaid_code, self.script_url)

        async with self._slots:
            try:
                async with self.sandbox_factory() as page:
                    await self._wait_until_rendered(page, document)
                    if fmt == ExportFormat.SVG:
                        content = await self._capture_svg(page)
                    else:
                        content = await self._capture_raster(page, fmt)
            except RenderError as e:
                logger.error("Export error: %s", e)
                raise
            except PlaywrightError as e:
                logger.error("Export error: %s", e)
                raise RenderError(f"Failed to export diagram: {e}") from e

        return ExportArtifact(
            content=content,
            content_type=fmt.content_type,
            filename=f"diagram.{fmt.value}",
        )


async def export_diagram(markup: str, fmt) -> ExportArtifact:
    """Export with a one-off exporter using the environment defaults."""
    return await RenderExporter().export(markup, fmt)
