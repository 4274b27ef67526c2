from __future__ import annotations

import asyncio
import functools
import logging
from contextlib import AsyncExitStack
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, Optional, Sequence, Set

from .base import CrawlEngine, CrawlOutcome
from .frontier import Frontier, FrontierEntry, ScopePolicy
from ..config import CrawlConfig
from ..classifiers.base import ProductClassifier
from ..errors import InvalidURL, NoValidDomains, PoolStartupFailed
from ..export.aggregator import finalize
from ..fetchers.base import FetchedPage, PageFetcher
from ..utils.loader import load_symbol
from ..utils.parsing import extract_links
from ..utils.throttle import RandomDelay
from ..utils.urls import normalize_url, validate_domains

logger = logging.getLogger(__name__)

LinkExtractor = Callable[[str, str], Set[str]]
FetcherFactory = Callable[[], PageFetcher]


@dataclass
class CrawlContext:
    """Mutable state of one crawl run, handed to each worker. Never shared across runs."""
    frontier: Frontier
    fetcher: PageFetcher
    results: Dict[str, Set[str]] = field(default_factory=dict)
    failures: int = 0
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    async def merge(self, page_url: str, products: Set[str]) -> None:
        if not products:
            return
        async with self.lock:
            self.results.setdefault(page_url, set()).update(products)


class CrawlOrchestrator(CrawlEngine):
    """
    Async crawler over a fixed pool of workers.
    - Frontier owns queueing, dedup and scope.
    - The fetcher owns HTTP/rendering and is built fresh for every run, so
      overlapping crawls on one engine never share sessions or browsers.
    - The extractor and classifier own parsing.
    - Workers never hold a lock while waiting on the network.
    """
    def __init__(
        self,
        config: CrawlConfig,
        *,
        fetcher_factory: Optional[FetcherFactory] = None,
        classifier: Optional[ProductClassifier] = None,
        extractor: Optional[LinkExtractor] = None,
        delay: Optional[Callable[[], Awaitable[None]]] = None,
    ) -> None:
        self.config = config
        self.fetcher_factory = fetcher_factory or functools.partial(load_symbol(config.fetcher), config)
        self.classifier = classifier if classifier is not None else _build_classifier(config)
        self.extractor = extractor or functools.partial(extract_links, keep_query=config.keep_query)
        self.delay = delay or RandomDelay(config.delay_min, config.delay_max)

    async def crawl(
        self,
        seeds: Optional[Sequence[str]] = None,
        *,
        cancel: Optional[asyncio.Event] = None,
    ) -> CrawlOutcome:
        cfg = self.config
        validated = validate_domains(seeds if seeds is not None else cfg.domains)
        if not validated:
            raise NoValidDomains("No valid domains provided.")

        frontier = Frontier(
            ScopePolicy(validated, cfg.allowed_domains),
            max_pages=cfg.max_pages,
            max_depth=cfg.max_depth,
        )
        for url in validated:
            logger.info("Crawling %s...", url)
            await frontier.enqueue(FrontierEntry(url=url))

        async with AsyncExitStack() as stack:
            fetcher: Optional[PageFetcher] = None
            try:
                fetcher = self.fetcher_factory()
                await stack.enter_async_context(fetcher)
            except Exception as exc:
                name = type(fetcher).__name__ if fetcher is not None else "fetcher"
                raise PoolStartupFailed(f"could not start {name}: {exc!r}") from exc
            ctx = CrawlContext(frontier=frontier, fetcher=fetcher)
            complete = await self._drain(ctx, cancel)

        outcome = finalize(
            ctx.results,
            failures=ctx.failures,
            visited_count=frontier.visited_count,
            complete=complete and not frontier.budget_exhausted,
        )
        logger.info(
            "Crawl finished: visited=%s products=%s failures=%s complete=%s",
            outcome.visited_count, outcome.product_count, outcome.failures, outcome.complete,
        )
        return outcome

    async def _drain(self, ctx: CrawlContext, cancel: Optional[asyncio.Event]) -> bool:
        """Run the worker pool until the frontier converges. Returns False if cut short."""
        workers = [
            asyncio.create_task(self._worker(ctx, i), name=f"crawl-worker-{i}")
            for i in range(self.config.max_concurrency)
        ]
        watcher = asyncio.create_task(self._watch_cancel(ctx, cancel)) if cancel is not None else None
        try:
            done, pending = await asyncio.wait(workers, timeout=self.config.crawl_timeout)
            if pending:
                logger.warning("Crawl timeout of %ss reached; aborting %s workers",
                               self.config.crawl_timeout, len(pending))
                await ctx.frontier.close()
            for task in done:
                # Surface programming errors; per-page errors never reach here.
                task.result()
            return not pending and not (cancel is not None and cancel.is_set())
        finally:
            for task in workers:
                task.cancel()
            if watcher is not None:
                watcher.cancel()
            await asyncio.gather(*workers, *([watcher] if watcher else []), return_exceptions=True)

    async def _watch_cancel(self, ctx: CrawlContext, cancel: asyncio.Event) -> None:
        await cancel.wait()
        logger.warning("Crawl cancelled; letting in-flight pages finish")
        await ctx.frontier.close()

    async def _worker(self, ctx: CrawlContext, worker_id: int) -> None:
        frontier = ctx.frontier
        while True:
            entry = await frontier.dequeue()
            if entry is None:
                logger.debug("worker %s: frontier converged", worker_id)
                return
            try:
                await self._visit(ctx, entry)
            finally:
                await frontier.task_done()

    async def _visit(self, ctx: CrawlContext, entry: FrontierEntry) -> None:
        frontier = ctx.frontier
        url = entry.url
        if not frontier.try_claim(url):
            return

        await self.delay()
        logger.info("Visiting URL: %s", url)
        try:
            page: FetchedPage = await asyncio.wait_for(
                ctx.fetcher.fetch(url), timeout=self.config.page_timeout
            )
            base = self._landing_url(url, page)
            links = self.extractor(page.html, base)
        except Exception as exc:  # broad catch to keep crawler moving
            ctx.failures += 1
            logger.warning("Error visiting %s: %r", url, exc)
            return
        logger.debug("Extracted %s links from %s", len(links), base)

        found_on = entry
        if base != url:
            # Links resolve and scope against where the page actually lives.
            logger.debug("%s redirected to %s", url, base)
            frontier.mark_visited(base)
            found_on = FrontierEntry(url=base, origin=entry.origin, depth=entry.depth)

        products: Set[str] = set()
        follow = self.config.follow_links
        for link in links:
            if self.classifier.is_product(link):
                logger.debug("Found product URL: %s", link)
                products.add(link)
            elif follow:
                await frontier.offer(link, found_on)

        await ctx.merge(url, products)

    def _landing_url(self, requested: str, page: FetchedPage) -> str:
        if not page.url or page.url == requested:
            return requested
        try:
            return normalize_url(page.url, page.url, keep_query=self.config.keep_query)
        except InvalidURL:
            return requested


def _build_classifier(config: CrawlConfig) -> ProductClassifier:
    cls = load_symbol(config.classifier)
    factory = getattr(cls, "from_config", None)
    return factory(config) if factory is not None else cls()


def build_engine(config: CrawlConfig) -> CrawlEngine:
    """Instantiate the engine named by ``config.engine``."""
    engine_cls = load_symbol(config.engine)
    return engine_cls(config)

