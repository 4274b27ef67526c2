from __future__ import annotations

import argparse
import asyncio
import logging
import signal
from typing import List

import uvicorn

from ..config import CrawlConfig
from ..engines.base import CrawlEngine, CrawlOutcome
from ..engines.orchestrator import build_engine
from ..errors import CrawlerError
from ..export.base import Exporter
from ..utils.logging import setup_logging
from ..utils.loader import load_symbol

logger = logging.getLogger(__name__)


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Crawl domains and collect product URLs")
    p.add_argument("domains", nargs="*", help="Seed URLs (space-separated)")
    p.add_argument("--config", type=str, help="Path to config JSON", default=None)
    p.add_argument("--max-concurrency", type=int, default=None, help="Concurrent workers (default from config)")
    p.add_argument("--max-pages", type=int, default=None, help="Stop claiming pages after this many")
    p.add_argument("--max-depth", type=int, default=None, help="Max link hops from a seed")
    p.add_argument("--timeout", type=float, default=None, help="Wall-clock limit for the whole crawl (seconds)")
    p.add_argument("--delay", type=str, default=None,
                   help="Random delay before each fetch, 'MIN,MAX' seconds (e.g. 0.5,2)")
    p.add_argument("--seed-only", action="store_true", help="Only visit the seed pages, do not follow links")
    p.add_argument("--keep-query", action="store_true", help="Keep query strings in URL identity")
    p.add_argument("--allowed-domains", type=str, default=None,
                   help="Comma-separated extra hosts links may be followed to")
    p.add_argument("--fetcher", type=str, default=None, help="Fetcher dotted path (module:ClassName)")
    p.add_argument("--browser", action="store_true", help="Render pages with headless Chromium")
    p.add_argument("--classifier", type=str, default=None, help="Classifier dotted path (module:ClassName)")
    p.add_argument("--exporter", type=str, default=None, help="Exporter dotted path (module:ClassName)")
    p.add_argument("--output", type=str, default=None, help="Output file path")
    p.add_argument("--log-level", type=str, default=None, help="Log level (DEBUG, INFO, WARNING, ERROR)")
    p.add_argument("--serve", action="store_true", help="Run REST API server instead of CLI crawl")
    p.add_argument("--host", type=str, default="127.0.0.1", help="API host (when --serve)")
    p.add_argument("--port", type=int, default=4000, help="API port (when --serve)")
    return p


def _parse_delay(raw: str) -> tuple[float, float]:
    parts = [x.strip() for x in raw.split(",")]
    if len(parts) == 1:
        return 0.0, float(parts[0])
    if len(parts) == 2:
        return float(parts[0]), float(parts[1])
    raise ValueError(f"--delay expects 'MIN,MAX', got {raw!r}")


def _load_config(args: argparse.Namespace) -> CrawlConfig:
    if args.config:
        cfg = CrawlConfig.from_file(args.config)
    else:
        cfg = CrawlConfig.from_env()

    if args.domains:
        cfg.domains = list(args.domains)
    if args.max_concurrency is not None:
        cfg.max_concurrency = args.max_concurrency
    if args.max_pages is not None:
        cfg.max_pages = args.max_pages
    if args.max_depth is not None:
        cfg.max_depth = args.max_depth
    if args.timeout is not None:
        cfg.crawl_timeout = args.timeout
    if args.delay:
        cfg.delay_min, cfg.delay_max = _parse_delay(args.delay)
    if args.seed_only:
        cfg.follow_links = False
    if args.keep_query:
        cfg.keep_query = True
    if args.allowed_domains:
        cfg.allowed_domains = [d.strip() for d in args.allowed_domains.split(",") if d.strip()]
    if args.browser:
        cfg.fetcher = "product_crawler.fetchers.browser_fetcher:BrowserFetcher"
    if args.fetcher:
        cfg.fetcher = args.fetcher
    if args.classifier:
        cfg.classifier = args.classifier
    if args.exporter:
        cfg.exporter = args.exporter
    if args.output:
        cfg.output_path = args.output

    cfg.validate()
    return cfg


def run_server(host: str, port: int) -> None:
    uvicorn.run("product_crawler.apis.app:app", host=host, port=port)


async def _crawl_until_signalled(engine: CrawlEngine) -> CrawlOutcome:
    cancel = asyncio.Event()
    loop = asyncio.get_running_loop()
    installed: List[signal.Signals] = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, cancel.set)
            installed.append(sig)
        except (NotImplementedError, RuntimeError):
            # Windows event loops do not support signal handlers.
            pass
    try:
        return await engine.crawl(cancel=cancel)
    finally:
        for sig in installed:
            loop.remove_signal_handler(sig)


def run_cli(argv: List[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)
    setup_logging(args.log_level)

    if args.serve:
        run_server(args.host, args.port)
        return 0

    try:
        cfg = _load_config(args)
    except (OSError, ValueError) as exc:
        logger.error("Invalid configuration: %s", exc)
        return 2

    # Dynamic engine + exporter loading so upgrades don't require code edits.
    exporter_cls = load_symbol(cfg.exporter)

    try:
        outcome = asyncio.run(_crawl_until_signalled(build_engine(cfg)))
    except CrawlerError as exc:
        logger.error("%s", exc)
        return 2

    exporter: Exporter = exporter_cls()
    exporter.export(outcome.results, cfg.output_path)

    logger.info("Visited: %s | Products: %s | Failures: %s | Output: %s",
                outcome.visited_count, outcome.product_count, outcome.failures, cfg.output_path)
    if not outcome.complete:
        logger.warning("Crawl stopped early; results are partial")
    return 0
