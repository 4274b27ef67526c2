from __future__ import annotations


class CrawlerError(Exception):
    """Base class for every error raised by the crawler."""


class InvalidDomain(CrawlerError, ValueError):
    """A seed domain could not be parsed as an absolute http(s) URL."""


class InvalidURL(CrawlerError, ValueError):
    """A discovered link could not be normalized."""


class NoValidDomains(CrawlerError):
    """Every seed was rejected, so there is nothing to crawl."""


class PoolStartupFailed(CrawlerError):
    """The fetcher (browser, HTTP session) backing the worker pool failed to start."""


class FetchFailed(CrawlerError):
    def __init__(self, url: str, reason: str = "") -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"failed to fetch {url}: {reason}" if reason else f"failed to fetch {url}")
