from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Sequence
import logging

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..config import CrawlConfig
from ..engines.base import CrawlEngine, CrawlOutcome
from ..engines.orchestrator import build_engine
from ..errors import NoValidDomains
from ..export.base import Exporter
from ..utils.loader import load_symbol
from ..utils.urls import validate_domains
from ..version import __version__

logger = logging.getLogger(__name__)

app = FastAPI(title="product_crawler API", version=__version__)

EngineFactory = Callable[[CrawlConfig], CrawlEngine]


class CrawlRequest(BaseModel):
    # Entries are validated one by one; bad ones are dropped rather than rejected.
    domains: List[Any]
    max_concurrency: Optional[int] = None
    max_pages: Optional[int] = None
    max_depth: Optional[int] = None


def get_config() -> CrawlConfig:
    return CrawlConfig.from_env()


def get_engine_factory() -> EngineFactory:
    return build_engine


DOMAINS_ERROR = "Please provide a valid list of domains."


def _describe_validation_error(errors: Sequence[Dict[str, Any]]) -> str:
    """Blame ``domains`` when it (or the body as a whole) is wrong, otherwise name the failing field."""
    blamed: Optional[str] = None
    for err in errors:
        loc = tuple(err.get("loc", ()))
        if len(loc) < 2 or loc[0] != "body" or loc[1] == "domains" or loc[1] not in CrawlRequest.model_fields:
            return DOMAINS_ERROR
        if blamed is None:
            blamed = f"Invalid value for '{loc[1]}': {err.get('msg', 'invalid value')}"
    return blamed or DOMAINS_ERROR


@app.exception_handler(RequestValidationError)
async def invalid_request(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("Rejected crawl request: %s", exc.errors())
    return JSONResponse(status_code=400, content={"error": _describe_validation_error(exc.errors())})


@app.get("/")
async def index() -> str:
    return "HELLO,THIS IS A WEB CRAWLER APPLICATION"


@app.get("/health")
async def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.post("/crawl")
async def crawl(
    req: CrawlRequest,
    cfg: CrawlConfig = Depends(get_config),
    engine_factory: EngineFactory = Depends(get_engine_factory),
) -> JSONResponse:
    validated = validate_domains(req.domains)
    if not validated:
        return JSONResponse(status_code=400, content={"error": "No valid domains provided."})

    cfg.domains = validated
    if req.max_concurrency is not None:
        cfg.max_concurrency = req.max_concurrency
    if req.max_pages is not None:
        cfg.max_pages = req.max_pages
    if req.max_depth is not None:
        cfg.max_depth = req.max_depth

    try:
        cfg.validate()
    except ValueError as exc:
        return JSONResponse(status_code=400, content={"error": str(exc)})

    try:
        # A fresh engine per request: crawl state is never shared between requests.
        engine = engine_factory(cfg)
        outcome: CrawlOutcome = await engine.crawl(validated)
        exporter: Exporter = load_symbol(cfg.exporter)()
        exporter.export(outcome.results, cfg.output_path)
    except NoValidDomains:
        return JSONResponse(status_code=400, content={"error": "No valid domains provided."})
    except Exception:
        logger.exception("Error during crawling")
        return JSONResponse(status_code=500, content={"error": "An error occurred during crawling."})

    return JSONResponse(
        content=outcome.results,
        headers={
            "X-Crawl-Failures": str(outcome.failures),
            "X-Crawl-Complete": "true" if outcome.complete else "false",
        },
    )
