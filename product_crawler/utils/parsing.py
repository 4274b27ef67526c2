from __future__ import annotations

import logging
from typing import Set

from bs4 import BeautifulSoup

from ..errors import InvalidURL
from .urls import normalize_url

logger = logging.getLogger(__name__)


def extract_links(html: str, base_url: str, *, keep_query: bool = False) -> Set[str]:
    """
    Extract the deduplicated, normalized links of every ``<a href>`` in an HTML string.
    Hrefs that do not normalize to a crawlable URL are skipped.
    """
    soup = BeautifulSoup(html, "html.parser")
    out: Set[str] = set()
    for a in soup.select("a[href]"):
        href = a.get("href")
        if not href:
            continue
        try:
            out.add(normalize_url(base_url, href, keep_query=keep_query))
        except InvalidURL as exc:
            logger.debug("Invalid URL ignored on %s: %s", base_url, exc)
    return out
