from .base import FetchedPage, PageFetcher
from .http_fetcher import HttpFetcher

__all__ = ["FetchedPage", "PageFetcher", "HttpFetcher"]
