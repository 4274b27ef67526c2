from __future__ import annotations

import logging
from typing import Optional

from aiohttp import ClientSession

from ..config import CrawlConfig
from .base import FetchedPage
from ..utils.http import create_session, fetch_page

logger = logging.getLogger(__name__)


class HttpFetcher:
    """
    Plain HTTP fetcher on a shared aiohttp session. Fast, but sees only
    server-rendered HTML.
    """

    def __init__(self, config: CrawlConfig) -> None:
        self.config = config
        self._session: Optional[ClientSession] = None

    async def __aenter__(self) -> "HttpFetcher":
        self._session = create_session(limit=self.config.max_concurrency)
        return self

    async def __aexit__(self, *exc_info) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None

    async def fetch(self, url: str) -> FetchedPage:
        if self._session is None:
            raise RuntimeError("HttpFetcher used outside of 'async with'")
        final_url, html = await fetch_page(
            self._session,
            url,
            timeout=self.config.request_timeout,
            user_agent=self.config.user_agent,
            retries=self.config.retries,
        )
        return FetchedPage(url=final_url, html=html)
