from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence
from abc import ABC, abstractmethod


@dataclass
class CrawlOutcome:
    results: Dict[str, List[str]] = field(default_factory=dict)  # page url -> product urls
    failures: int = 0
    visited_count: int = 0
    # False when cancellation, the wall-clock timeout or the page budget cut the run short.
    complete: bool = True

    @property
    def product_count(self) -> int:
        return sum(len(v) for v in self.results.values())


class CrawlEngine(ABC):
    """
    Abstract engine interface. Implementations own the crawl lifecycle.
    """
    @abstractmethod
    async def crawl(
        self,
        seeds: Optional[Sequence[str]] = None,
        *,
        cancel: Optional[asyncio.Event] = None,
    ) -> CrawlOutcome:  # pragma: no cover - interface
        ...
