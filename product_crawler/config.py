from __future__ import annotations

from dataclasses import dataclass, field, asdict
from typing import List, Optional, Dict, Any
from pathlib import Path
import os
import json
import re

from .version import __version__, CONFIG_SCHEMA_VERSION

DEFAULT_PRODUCT_PATTERNS: List[str] = [
    r"/product/",
    r"/item/",
    r"/p/",
    r"/dp/[A-Z0-9]+",
    r"/gp/product/[A-Z0-9]+",
]

# Upper bound on worker tasks per crawl run.
MAX_CONCURRENCY_LIMIT = 64


@dataclass
class CrawlConfig:
    """
    Canonical configuration object passed throughout the system.
    Keep it dataclass-only (no heavy deps) to stay upgrade-friendly.
    """
    schema_version: int = CONFIG_SCHEMA_VERSION
    domains: List[str] = field(default_factory=list)
    # Hosts beyond the seeds that links may be followed to.
    allowed_domains: Optional[List[str]] = None
    max_concurrency: int = 5
    # Safety limits; None disables the limit.
    max_pages: Optional[int] = 1000
    max_depth: Optional[int] = None
    crawl_timeout: Optional[float] = None
    request_timeout: float = 15.0
    page_timeout: float = 30.0
    retries: int = 0
    delay_min: float = 0.0
    delay_max: float = 0.0
    # False crawls only the seed pages.
    follow_links: bool = True
    keep_query: bool = False
    product_patterns: List[str] = field(default_factory=lambda: list(DEFAULT_PRODUCT_PATTERNS))
    user_agent: str = f"product_crawler/{__version__}"
    headless: bool = True
    # Dotted paths for pluggable parts to allow runtime swapping without code changes.
    engine: str = "product_crawler.engines.orchestrator:CrawlOrchestrator"
    fetcher: str = "product_crawler.fetchers.http_fetcher:HttpFetcher"
    classifier: str = "product_crawler.classifiers.patterns:PatternClassifier"
    exporter: str = "product_crawler.export.json_exporter:JSONExporter"
    # Where to write results
    output_path: str = "productUrls.json"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    # ---------- Loaders ----------

    @classmethod
    def from_env(cls) -> "CrawlConfig":
        """
        Build config from environment variables (all optional).
        """
        def _get(name: str, default: str) -> str:
            return os.getenv(name, default)

        def _list(name: str) -> List[str]:
            return [v.strip() for v in _get(name, "").split(",") if v.strip()]

        def _optional_int(name: str, default: Optional[int]) -> Optional[int]:
            raw = _get(name, "" if default is None else str(default)).strip()
            if not raw or raw.lower() == "none":
                return None
            return int(raw)

        def _bool(name: str, default: bool) -> bool:
            return _get(name, str(default)).strip().lower() in ("1", "true", "yes", "on")

        timeout = _get("CRAWLER_CRAWL_TIMEOUT", "").strip()
        defaults = cls()
        return cls(
            domains=_list("CRAWLER_DOMAINS"),
            allowed_domains=_list("CRAWLER_ALLOWED_DOMAINS") or None,
            max_concurrency=int(_get("CRAWLER_MAX_CONCURRENCY", "5")),
            max_pages=_optional_int("CRAWLER_MAX_PAGES", defaults.max_pages),
            max_depth=_optional_int("CRAWLER_MAX_DEPTH", defaults.max_depth),
            crawl_timeout=float(timeout) if timeout else None,
            request_timeout=float(_get("CRAWLER_REQUEST_TIMEOUT", "15.0")),
            page_timeout=float(_get("CRAWLER_PAGE_TIMEOUT", "30.0")),
            retries=int(_get("CRAWLER_RETRIES", "0")),
            delay_min=float(_get("CRAWLER_DELAY_MIN", "0.0")),
            delay_max=float(_get("CRAWLER_DELAY_MAX", "0.0")),
            follow_links=_bool("CRAWLER_FOLLOW_LINKS", True),
            keep_query=_bool("CRAWLER_KEEP_QUERY", False),
            product_patterns=_list("CRAWLER_PRODUCT_PATTERNS") or list(DEFAULT_PRODUCT_PATTERNS),
            user_agent=_get("CRAWLER_USER_AGENT", defaults.user_agent),
            headless=_bool("CRAWLER_HEADLESS", True),
            engine=_get("CRAWLER_ENGINE", defaults.engine),
            fetcher=_get("CRAWLER_FETCHER", defaults.fetcher),
            classifier=_get("CRAWLER_CLASSIFIER", defaults.classifier),
            exporter=_get("CRAWLER_EXPORTER", defaults.exporter),
            output_path=_get("CRAWLER_OUTPUT_PATH", defaults.output_path),
        )

    @classmethod
    def from_file(cls, path: str | os.PathLike[str]) -> "CrawlConfig":
        """
        Load configuration from a JSON file. Supports schema migration for older versions.
        """
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        data = migrate_config(data)
        return cls(**data)

    # ---------- Validation ----------

    def validate(self) -> None:
        if self.max_concurrency <= 0:
            raise ValueError("max_concurrency must be > 0")
        if self.max_concurrency > MAX_CONCURRENCY_LIMIT:
            raise ValueError(f"max_concurrency must be <= {MAX_CONCURRENCY_LIMIT}")
        if self.max_pages is not None and self.max_pages <= 0:
            raise ValueError("max_pages must be > 0 (or None for no limit)")
        if self.max_depth is not None and self.max_depth < 0:
            raise ValueError("max_depth must be >= 0 (or None for no limit)")
        if self.crawl_timeout is not None and self.crawl_timeout <= 0:
            raise ValueError("crawl_timeout must be > 0 (or None for no limit)")
        if self.request_timeout <= 0 or self.page_timeout <= 0:
            raise ValueError("request_timeout and page_timeout must be > 0")
        if self.retries < 0:
            raise ValueError("retries must be >= 0")
        if self.delay_min < 0 or self.delay_max < self.delay_min:
            raise ValueError("delay range must satisfy 0 <= delay_min <= delay_max")
        for pattern in self.product_patterns:
            try:
                re.compile(pattern)
            except re.error as exc:
                raise ValueError(f"invalid product pattern {pattern!r}: {exc}") from exc
        # Validate output path parent exists or is creatable
        parent = Path(self.output_path).parent
        parent.mkdir(parents=True, exist_ok=True)


def migrate_config(raw: Dict[str, Any]) -> Dict[str, Any]:
    """
    Migrate config dict to the latest schema version.
    Keep this pure and additive. Add migrations here as you bump schema.
    """
    raw = dict(raw)
    schema = raw.get("schema_version", 1)

    if schema < 2:
        if "start_urls" in raw:
            raw.setdefault("domains", raw.pop("start_urls"))
        raw["schema_version"] = 2

    # Ensure a schema_version is present
    raw.setdefault("schema_version", CONFIG_SCHEMA_VERSION)
    return raw
