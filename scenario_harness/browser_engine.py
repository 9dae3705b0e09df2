from playwright.async_api import async_playwright, Browser, Page, BrowserContext
from typing import Optional
import logging

logger = logging.getLogger(__name__)


class BrowserEngine:
    """Owns one Playwright driver, one browser and the contexts opened on it"""

    def __init__(self, headless: bool = True, slow_mo_ms: int = 0):
        self.headless = headless
        self.slow_mo_ms = slow_mo_ms
        self.playwright = None
        self.browser: Optional[Browser] = None
        self.contexts: list = []

    async def initialize(self):
        """Start Playwright and launch chromium"""
        self.playwright = await async_playwright().start()
        self.browser = await self.playwright.chromium.launch(
            headless=self.headless,
            slow_mo=self.slow_mo_ms,
            args=['--no-sandbox', '--disable-setuid-sandbox']
        )
        logger.debug("Browser launched (headless=%s)", self.headless)

    async def new_page(self, width: int, height: int) -> Page:
        """Open a fresh isolated context with a single page"""
        if self.browser is None:
            await self.initialize()

        context: BrowserContext = await self.browser.new_context(
            viewport={"width": width, "height": height}
        )
        self.contexts.append(context)
        page = await context.new_page()

        page.on("console", lambda msg: logger.debug("Console: %s", msg.text))
        page.on("pageerror", lambda err: logger.warning("Page error: %s", err))

        return page

    async def cleanup(self):
        """Close contexts, the browser and the driver; safe to call twice"""
        contexts, self.contexts = self.contexts, []
        for context in contexts:
            await context.close()
        if self.browser:
            await self.browser.close()
            self.browser = None
        if self.playwright:
            await self.playwright.stop()
            self.playwright = None
