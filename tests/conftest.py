"""Shared fixtures for tests."""

import os
from contextlib import asynccontextmanager
from typing import Optional

import httpx
import pytest

from mermaid_studio.config import OllamaConfig, get_mermaid_script_url


# ============================================================================
# Pytest Configuration
# ============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests (may require external services)"
    )
    config.addinivalue_line(
        "markers", "slow: marks tests as slow running"
    )


# ============================================================================
# Environment Detection Fixtures
# ============================================================================

@pytest.fixture(scope="session")
def ollama_available() -> bool:
    """Check if Ollama server is available."""
    base_url = os.getenv("OLLAMA_BASE_URL") or OllamaConfig().url
    try:
        response = httpx.get(f"{base_url.rstrip('/')}/api/tags", timeout=5.0)
        return response.status_code == 200
    except httpx.HTTPError:
        return False


@pytest.fixture(scope="session")
def chromium_available() -> bool:
    """Check if Playwright's Chromium build is installed."""
    from playwright.sync_api import sync_playwright

    try:
        with sync_playwright() as p:
            return os.path.exists(p.chromium.executable_path)
    except Exception:
        return False


# ============================================================================
# Skip Condition Fixtures
# ============================================================================

@pytest.fixture
def require_ollama(ollama_available):
    """Skip test if Ollama is not available."""
    if not ollama_available:
        pytest.skip("Ollama server not available")


@pytest.fixture
def require_chromium(chromium_available):
    """Skip test if no headless Chromium is installed."""
    if not chromium_available:
        pytest.skip("Playwright Chromium not installed (run: playwright install chromium)")


@pytest.fixture(scope="session")
def mermaid_script_reachable() -> bool:
    """Check if the rendering library URL can be fetched."""
    try:
        response = httpx.get(get_mermaid_script_url(), timeout=5.0, follow_redirects=True)
        return response.status_code == 200
    except httpx.HTTPError:
        return False


@pytest.fixture
def require_renderer(require_chromium, mermaid_script_reachable):
    """Skip test unless a real browser export can succeed."""
    if not mermaid_script_reachable:
        pytest.skip("Mermaid script URL not reachable")


# ============================================================================
# Markup Fixtures
# ============================================================================

@pytest.fixture
def fenced_response() -> str:
    """Raw model output wrapped in a mermaid fence."""
    return "```mermaid\nflowchart TD\nA-->B\n```"


@pytest.fixture
def chatty_response() -> str:
    """Raw model output with prose before and after the fenced diagram."""
    return (
        "Sure! Here is the diagram you asked for:\n\n"
        "```mermaid\n"
        "sequenceDiagram\n"
        "    Alice->>Bob: Hello\n"
        "    Bob-->>Alice: Hi\n"
        "```\n"
    )


@pytest.fixture
def simple_markup() -> str:
    return "graph TD\n    A[Client] --> B[Server]\n    B --> C[(Database)]"


# ============================================================================
# Settings Fixtures
# ============================================================================

@pytest.fixture
def all_settings() -> dict:
    """Settings-store shaped dict with every provider filled in."""
    return {
        "provider": "ollama",
        "ollama": {"url": "http://ollama.test:11434", "model": "llama3"},
        "lmstudio": {"url": "http://lmstudio.test:1234", "model": "qwen2.5-7b"},
        "azure": {
            "endpoint": "https://example.openai.azure.com",
            "apiKey": "azure-key",
            "deployment": "gpt-4o",
        },
        "bedrock": {
            "region": "eu-west-1",
            "accessKey": "AKIATEST",
            "secretKey": "secret",
            "modelId": "anthropic.claude-v2",
        },
        "vertex": {"projectId": "my-project", "location": "europe-west4", "model": "gemini-1.5-pro"},
    }


# ============================================================================
# Fake Transport Fixtures
# ============================================================================

class RecordingTransport:
    """httpx transport that answers every request with a canned JSON body."""

    def __init__(self, payload: Optional[dict] = None, status_code: int = 200):
        self.payload = payload or {}
        self.status_code = status_code
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json=self.payload)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def recording_transport():
    """Factory for RecordingTransport instances."""
    return RecordingTransport


class FakeElement:
    def __init__(self, page):
        self.page = page

    async def screenshot(self, **options):
        self.page.screenshot_options = options
        return b"\x89PNG-bytes" if options["type"] == "png" else b"\xff\xd8JPEG-bytes"


class FakePage:
    """Stands in for a Playwright page that has rendered a diagram."""

    def __init__(self, svg: Optional[str] = '<svg id="mermaid-0"><g></g></svg>', fail_wait=None):
        self.svg = svg
        self.fail_wait = fail_wait
        self.content = None
        self.screenshot_options = None

    async def set_content(self, html, wait_until=None, timeout=None):
        self.content = html

    async def wait_for_selector(self, selector, timeout=None):
        if self.fail_wait is not None:
            raise self.fail_wait

    async def evaluate(self, script, arg=None):
        return self.svg

    async def query_selector(self, selector):
        return FakeElement(self)


class CountingSandbox:
    """Sandbox factory that counts acquisitions and releases."""

    def __init__(self, page_factory=FakePage):
        self.page_factory = page_factory
        self.acquired = 0
        self.released = 0
        self.live = 0
        self.max_live = 0
        self.pages: list[FakePage] = []

    @asynccontextmanager
    async def __call__(self):
        self.acquired += 1
        self.live += 1
        self.max_live = max(self.max_live, self.live)
        page = self.page_factory()
        self.pages.append(page)
        try:
            yield page
        finally:
            self.live -= 1
            self.released += 1


@pytest.fixture
def counting_sandbox():
    return CountingSandbox()


@pytest.fixture
def make_sandbox():
    """Build a CountingSandbox whose pages are FakePage(**page_kwargs)."""
    def factory(**page_kwargs) -> CountingSandbox:
        return CountingSandbox(lambda: FakePage(**page_kwargs))
    return factory
