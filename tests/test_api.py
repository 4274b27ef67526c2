from __future__ import annotations

import json

import pytest
from fastapi.testclient import TestClient

from product_crawler.apis.app import app, get_config, get_engine_factory
from product_crawler.config import CrawlConfig
from product_crawler.engines.orchestrator import CrawlOrchestrator

from stubs import StubFetcher, html_page

PAGES = {
    "https://shop.test/": html_page("/product/1", "/about"),
    "https://shop.test/about": html_page("/product/2"),
}


@pytest.fixture
def output_path(tmp_path):
    return tmp_path / "productUrls.json"


@pytest.fixture
def client(output_path):
    app.dependency_overrides[get_config] = lambda: CrawlConfig(output_path=str(output_path))
    app.dependency_overrides[get_engine_factory] = lambda: (
        lambda cfg: CrawlOrchestrator(cfg, fetcher_factory=lambda: StubFetcher(PAGES, failing=["https://down.test/"]))
    )
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def test_index_and_health(client):
    assert client.get("/").json() == "HELLO,THIS IS A WEB CRAWLER APPLICATION"
    assert client.get("/health").json() == {"status": "ok"}


def test_crawl_returns_mapping_and_persists_snapshot(client, output_path):
    resp = client.post("/crawl", json={"domains": ["https://shop.test/"]})

    expected = {
        "https://shop.test/": ["https://shop.test/product/1"],
        "https://shop.test/about": ["https://shop.test/product/2"],
    }
    assert resp.status_code == 200
    assert resp.json() == expected
    assert resp.headers["X-Crawl-Failures"] == "0"
    assert json.loads(output_path.read_text(encoding="utf-8")) == expected


def test_invalid_entries_are_dropped(client):
    resp = client.post("/crawl", json={"domains": ["nope", 7, "https://shop.test", "https://down.test/"]})

    assert resp.status_code == 200
    assert "https://shop.test/" in resp.json()
    assert resp.headers["X-Crawl-Failures"] == "1"


@pytest.mark.parametrize(
    "body",
    [
        {},
        {"domains": "https://shop.test/"},
        {"domains": None},
        {"urls": ["https://shop.test/"]},
    ],
)
def test_missing_or_malformed_domains(client, body):
    resp = client.post("/crawl", json=body)
    assert resp.status_code == 400
    assert resp.json() == {"error": "Please provide a valid list of domains."}


@pytest.mark.parametrize("domains", [[], ["not a url", "mailto:x@y.test"]])
def test_no_valid_domains(client, domains):
    resp = client.post("/crawl", json={"domains": domains})
    assert resp.status_code == 400
    assert resp.json() == {"error": "No valid domains provided."}


def test_bad_limits_are_client_errors(client):
    resp = client.post("/crawl", json={"domains": ["https://shop.test/"], "max_concurrency": 0})
    assert resp.status_code == 400


def test_oversized_concurrency_is_rejected(client, output_path):
    resp = client.post("/crawl", json={"domains": ["https://shop.test/"], "max_concurrency": 100000})

    assert resp.status_code == 400
    assert "max_concurrency" in resp.json()["error"]
    assert not output_path.exists()


def test_malformed_field_is_named_in_error(client):
    resp = client.post("/crawl", json={"domains": ["https://shop.test/"], "max_pages": "x"})

    assert resp.status_code == 400
    error = resp.json()["error"]
    assert "max_pages" in error
    assert error != "Please provide a valid list of domains."


def test_domains_error_wins_over_other_fields(client):
    resp = client.post("/crawl", json={"domains": None, "max_pages": "x"})
    assert resp.json() == {"error": "Please provide a valid list of domains."}


def test_unexpected_failure_is_server_error(client):
    class Exploding:
        async def crawl(self, seeds=None, *, cancel=None):
            raise RuntimeError("boom")

    app.dependency_overrides[get_engine_factory] = lambda: (lambda cfg: Exploding())
    resp = client.post("/crawl", json={"domains": ["https://shop.test/"]})
    assert resp.status_code == 500
    assert resp.json() == {"error": "An error occurred during crawling."}
