"""
Capability object handed to every scenario body.

An ActionContext wraps one Playwright page and one httpx client. Scenario
code never touches the browser or the HTTP client directly, so the suite
owns their lifecycle: it opens the context at setup, may replace it after a
timed-out scenario, and closes it at teardown.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union
from urllib.parse import urljoin
import logging

import httpx
from playwright.async_api import ElementHandle, Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from .browser_engine import BrowserEngine
from .config import HarnessConfig
from .errors import NetworkError

logger = logging.getLogger(__name__)

Target = Union[str, ElementHandle]


@dataclass(frozen=True)
class HttpResponse:
    status: int
    headers: Dict[str, str] = field(default_factory=dict)
    body: Any = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class ActionContext:
    """Browser and HTTP actions against the system under test"""

    def __init__(
            self,
            page: Optional[Page] = None,
            http: Optional[httpx.AsyncClient] = None,
            engine: Optional[BrowserEngine] = None,
            base_url: str = ""
    ):
        self.page = page
        self.http = http
        self.engine = engine
        self.base_url = base_url
        self.closed = False

    @classmethod
    async def open(cls, config: HarnessConfig) -> "ActionContext":
        """Launch a browser page and an HTTP client configured from config"""
        engine = BrowserEngine(headless=config.headless, slow_mo_ms=config.slow_mo_ms)
        try:
            await engine.initialize()
            page = await engine.new_page(config.viewport_width, config.viewport_height)
        except Exception:
            await engine.cleanup()
            raise

        http = httpx.AsyncClient(
            base_url=config.api_base_url,
            timeout=config.http_timeout_s
        )
        logger.debug("Action context opened")
        return cls(page=page, http=http, engine=engine, base_url=config.base_url)

    async def close(self):
        if self.closed:
            return
        self.closed = True
        if self.http is not None:
            await self.http.aclose()
        if self.engine is not None:
            await self.engine.cleanup()
        logger.debug("Action context closed")

    # Browser actions

    def _require_page(self) -> Page:
        if self.page is None:
            raise RuntimeError("This action context has no browser page")
        return self.page

    def _absolute(self, url: str) -> str:
        if url.startswith(("http://", "https://", "about:", "data:", "file:")):
            return url
        if self.base_url:
            return urljoin(self.base_url.rstrip("/") + "/", url.lstrip("/"))
        return f"https://{url}"

    async def _resolve(self, target: Target) -> ElementHandle:
        if not isinstance(target, str):
            return target
        element = await self.find(target)
        if element is None:
            raise LookupError(f"Could not find element: {target}")
        return element

    async def navigate(self, url: str, wait_until: str = "load") -> Optional[int]:
        """Go to url; returns the main response status when there is one"""
        page = self._require_page()
        response = await page.goto(self._absolute(url), wait_until=wait_until)
        return response.status if response else None

    async def find(self, selector: str) -> Optional[ElementHandle]:
        return await self._require_page().query_selector(selector)

    async def find_all(self, selector: str) -> List[ElementHandle]:
        return await self._require_page().query_selector_all(selector)

    async def click(self, target: Target):
        element = await self._resolve(target)
        await element.click()

    async def type(self, target: Target, text: str, delay_ms: float = 0):
        element = await self._resolve(target)
        await element.type(text, delay=delay_ms)

    async def wait_for(self, selector: str, timeout_ms: int) -> Optional[ElementHandle]:
        """Element once it is attached, or None when timeout_ms passes first"""
        try:
            return await self._require_page().wait_for_selector(selector, timeout=timeout_ms)
        except PlaywrightTimeoutError:
            return None

    async def wait_for_navigation(self, timeout_ms: int) -> bool:
        try:
            await self._require_page().wait_for_event("framenavigated", timeout=timeout_ms)
            return True
        except PlaywrightTimeoutError:
            return False

    async def read_text(self, target: Target) -> str:
        element = await self._resolve(target)
        return (await element.text_content()) or ""

    async def title(self) -> str:
        return await self._require_page().title()

    @property
    def url(self) -> str:
        return self._require_page().url

    async def viewport(self, width: int, height: int):
        await self._require_page().set_viewport_size({"width": width, "height": height})

    async def is_in_viewport(self, target: Target) -> bool:
        """Whether any part of the element's box lies inside the viewport"""
        element = await self._resolve(target)
        box = await element.bounding_box()
        size = self._require_page().viewport_size
        if not box or not size:
            return False
        return (
            box["width"] > 0 and box["height"] > 0
            and box["x"] < size["width"] and box["x"] + box["width"] > 0
            and box["y"] < size["height"] and box["y"] + box["height"] > 0
        )

    async def sleep(self, ms: int):
        await self._require_page().wait_for_timeout(ms)

    # HTTP actions

    async def request(
            self,
            method: str,
            url: str,
            body: Any = None,
            headers: Optional[Dict[str, str]] = None
    ) -> HttpResponse:
        """Issue an HTTP request; non-2xx statuses are returned, not raised"""
        if self.http is None:
            raise RuntimeError("This action context has no HTTP client")
        method = method.upper()
        try:
            response = await self.http.request(method, url, json=body, headers=headers)
        except httpx.HTTPError as e:
            raise NetworkError(method, url, e) from e

        content_type = response.headers.get("content-type", "")
        if "json" in content_type:
            try:
                parsed = response.json()
            except ValueError:
                parsed = response.text
        else:
            parsed = response.text

        logger.debug("%s %s -> %s", method, url, response.status_code)
        return HttpResponse(
            status=response.status_code,
            headers=dict(response.headers),
            body=parsed
        )

    async def get(self, url: str, **kwargs) -> HttpResponse:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, body: Any = None, **kwargs) -> HttpResponse:
        return await self.request("POST", url, body=body, **kwargs)
