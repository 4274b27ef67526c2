from __future__ import annotations

from dataclasses import dataclass
from types import TracebackType
from typing import Optional, Protocol, Type


@dataclass(frozen=True)
class FetchedPage:
    url: str  # where the page was finally served from, after redirects
    html: str


class PageFetcher(Protocol):
    """
    Returns a fetched page, raising FetchFailed when it cannot.

    Fetchers are async context managers: the engine builds and enters a fresh
    one per crawl run and always exits it, so browsers and connection pools
    never outlive or leak between runs.
    """

    async def __aenter__(self) -> "PageFetcher":
        ...

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        ...

    async def fetch(self, url: str) -> FetchedPage:
        ...
