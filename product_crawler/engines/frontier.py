from __future__ import annotations

import asyncio
import logging
from collections import deque
from dataclasses import dataclass
from typing import Deque, Iterable, Optional, Set

from ..utils.urls import host_of, same_origin

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FrontierEntry:
    url: str
    origin: Optional[str] = None  # page that linked here; None for seeds
    depth: int = 0


class ScopePolicy:
    """
    A link is in scope when it shares the origin of the page that found it,
    is itself a seed, or lives on one of the explicitly allowed hosts.
    """

    def __init__(self, seeds: Iterable[str], allowed_domains: Optional[Iterable[str]] = None) -> None:
        self.seeds: Set[str] = set(seeds)
        self.allowed_hosts: Set[str] = {d.strip().lower() for d in (allowed_domains or []) if d.strip()}

    def allows(self, url: str, origin: str) -> bool:
        if url in self.seeds or same_origin(url, origin):
            return True
        return bool(self.allowed_hosts) and host_of(url) in self.allowed_hosts


class Frontier:
    """
    Pending work plus the visited set for one crawl run.

    ``dequeue`` suspends while the queue is empty but some worker still holds
    an entry, because that worker may enqueue more links. It returns None once
    the queue is empty and nothing is in flight, or after ``close``. Every
    entry handed out by ``dequeue`` must be released with ``task_done``.
    """

    def __init__(
        self,
        scope: ScopePolicy,
        *,
        max_pages: Optional[int] = None,
        max_depth: Optional[int] = None,
    ) -> None:
        self.scope = scope
        self.max_pages = max_pages
        self.max_depth = max_depth
        self._pending: Deque[FrontierEntry] = deque()
        self._visited: Set[str] = set()
        self._in_flight = 0
        self._closed = False
        self.budget_exhausted = False
        self._cond = asyncio.Condition()

    # ---- Visited set ----

    def try_claim(self, url: str) -> bool:
        """
        Mark ``url`` visited; True means the caller owns the fetch.
        No await between the check and the insert, so the claim is atomic
        for every coroutine on the loop.
        """
        if url in self._visited:
            return False
        if self.max_pages is not None and len(self._visited) >= self.max_pages:
            if not self.budget_exhausted:
                logger.warning("Page budget of %s reached; no further pages will be fetched", self.max_pages)
            self.budget_exhausted = True
            return False
        self._visited.add(url)
        return True

    def mark_visited(self, url: str) -> None:
        """Record a URL reached without claiming it, e.g. the target of a redirect."""
        self._visited.add(url)

    def is_visited(self, url: str) -> bool:
        return url in self._visited

    @property
    def visited_count(self) -> int:
        return len(self._visited)

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    # ---- Queue ----

    async def enqueue(self, entry: FrontierEntry) -> bool:
        async with self._cond:
            if self._closed:
                return False
            self._pending.append(entry)
            self._cond.notify()
            return True

    async def offer(self, url: str, parent: FrontierEntry) -> bool:
        """Enqueue a link discovered on ``parent`` if scope and depth allow it."""
        if url in self._visited or self.budget_exhausted:
            return False
        depth = parent.depth + 1
        if self.max_depth is not None and depth > self.max_depth:
            return False
        if not self.scope.allows(url, parent.url):
            logger.debug("Out of scope, not queued: %s (found on %s)", url, parent.url)
            return False
        return await self.enqueue(FrontierEntry(url=url, origin=parent.url, depth=depth))

    async def dequeue(self) -> Optional[FrontierEntry]:
        async with self._cond:
            while not self._pending:
                if self._closed or self._in_flight == 0:
                    # Converged. Each exiting waiter wakes exactly one more, so
                    # releasing N workers costs N wake-ups.
                    self._closed = True
                    self._cond.notify()
                    return None
                await self._cond.wait()
            self._in_flight += 1
            return self._pending.popleft()

    async def task_done(self) -> None:
        async with self._cond:
            self._in_flight -= 1
            if self._in_flight == 0 and not self._pending:
                self._cond.notify()

    async def close(self) -> None:
        """Stop handing out work; entries already dequeued may finish."""
        async with self._cond:
            self._closed = True
            self._pending.clear()
            self._cond.notify()
