from __future__ import annotations

import re
from typing import Iterable, List, Optional, Pattern
from urllib.parse import urlsplit

from ..config import CrawlConfig, DEFAULT_PRODUCT_PATTERNS


class PatternClassifier:
    """
    Matches the URL path against an ordered list of case-insensitive regexes.
    The first match wins. Swap the pattern set through ``CrawlConfig.product_patterns``.
    """
    name = "patterns"

    def __init__(self, patterns: Optional[Iterable[str]] = None) -> None:
        source = list(patterns) if patterns is not None else list(DEFAULT_PRODUCT_PATTERNS)
        self.patterns: List[Pattern[str]] = [re.compile(p, re.IGNORECASE) for p in source]

    @classmethod
    def from_config(cls, config: CrawlConfig) -> "PatternClassifier":
        return cls(config.product_patterns)

    def is_product(self, url: str) -> bool:
        if not isinstance(url, str):
            return False
        try:
            path = urlsplit(url).path
        except ValueError:
            path = url
        return any(p.search(path) for p in self.patterns)
