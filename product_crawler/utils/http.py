from __future__ import annotations

import asyncio
from typing import Optional, Tuple
from aiohttp import ClientSession, ClientTimeout
import aiohttp
import logging

from ..errors import FetchFailed

logger = logging.getLogger(__name__)


async def fetch_page(
    session: ClientSession,
    url: str,
    *,
    timeout: float = 15.0,
    user_agent: Optional[str] = None,
    retries: int = 0,
) -> Tuple[str, str]:
    """
    Fetch a URL and return ``(final_url, text)``, where ``final_url`` is where
    the body was served from after redirects. Raises FetchFailed once every
    attempt has failed.
    """
    headers = {}
    if user_agent:
        headers["User-Agent"] = user_agent

    last_exc: Optional[Exception] = None
    for attempt in range(retries + 1):
        if attempt:
            await asyncio.sleep(min(2 ** (attempt - 1), 5))
        try:
            async with session.get(url, headers=headers, timeout=ClientTimeout(total=timeout)) as resp:
                resp.raise_for_status()
                return str(resp.url), await resp.text()
        except (aiohttp.ClientError, asyncio.TimeoutError, UnicodeDecodeError) as exc:
            last_exc = exc
            logger.debug("fetch attempt %s failed for %s: %r", attempt + 1, url, exc)
    raise FetchFailed(url, repr(last_exc))


def create_session(limit: int = 0) -> ClientSession:
    """
    Create a shared aiohttp ClientSession.
    """
    # Note: caller is responsible for closing the session (await session.close()).
    connector = aiohttp.TCPConnector(limit=limit)  # 0 = unlimited; concurrency managed by the worker pool
    return aiohttp.ClientSession(connector=connector)
