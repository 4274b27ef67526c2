from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from playwright.async_api import Browser, BrowserContext, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError

from ..config import CrawlConfig
from ..errors import FetchFailed
from .base import FetchedPage

logger = logging.getLogger(__name__)


def app_data_dir() -> Path:
    base = os.getenv("LOCALAPPDATA") or str(Path.home() / ".product-crawler")
    p = Path(base) / "product-crawler"
    p.mkdir(parents=True, exist_ok=True)
    return p


class BrowserFetcher:
    """
    Renders pages in headless Chromium, one tab per in-flight fetch, and
    returns the DOM once ``domcontentloaded`` fires.
    """

    def __init__(self, config: CrawlConfig) -> None:
        self.config = config
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None

    async def __aenter__(self) -> "BrowserFetcher":
        os.environ.setdefault("PLAYWRIGHT_BROWSERS_PATH", str(app_data_dir() / "ms-playwright"))
        self._playwright = await async_playwright().start()
        try:
            self._browser = await self._playwright.chromium.launch(headless=self.config.headless)
            self._context = await self._browser.new_context(user_agent=self.config.user_agent)
        except BaseException:
            await self._shutdown()
            raise
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self._shutdown()

    async def _shutdown(self) -> None:
        if self._context is not None:
            await self._context.close()
            self._context = None
        if self._browser is not None:
            await self._browser.close()
            self._browser = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None

    async def fetch(self, url: str) -> FetchedPage:
        if self._context is None:
            raise RuntimeError("BrowserFetcher used outside of 'async with'")
        page = await self._context.new_page()
        try:
            await page.goto(
                url,
                wait_until="domcontentloaded",
                timeout=self.config.request_timeout * 1000,
            )
            html = await page.content()
            return FetchedPage(url=page.url, html=html)
        except PlaywrightError as exc:
            raise FetchFailed(url, str(exc)) from exc
        finally:
            await page.close()
