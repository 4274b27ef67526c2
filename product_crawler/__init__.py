"""Crawl seed domains and collect the product URLs linked from each page."""

from .version import __version__

__all__ = ["__version__"]
