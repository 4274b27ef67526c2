from __future__ import annotations

import pytest
from playwright.async_api import Error as PlaywrightError

from product_crawler.config import CrawlConfig
from product_crawler.errors import FetchFailed
from product_crawler.fetchers import browser_fetcher
from product_crawler.fetchers.browser_fetcher import BrowserFetcher


REDIRECTS = {"http://shop.test/": "https://shop.test/"}


class FakePage:
    def __init__(self, log, fail):
        self.log = log
        self.fail = fail
        self.url = None

    async def goto(self, url, wait_until, timeout):
        self.log.append(("goto", url, wait_until, timeout))
        if self.fail:
            raise PlaywrightError("net::ERR_NAME_NOT_RESOLVED")
        self.url = REDIRECTS.get(url, url)

    async def content(self):
        return f"<html>{self.url}</html>"

    async def close(self):
        self.log.append(("page.close",))


class FakeContext:
    def __init__(self, log, failing):
        self.log = log
        self.failing = failing

    async def new_page(self):
        return FakePage(self.log, fail=bool(self.failing))

    async def close(self):
        self.log.append(("context.close",))


class FakeBrowser:
    def __init__(self, log, failing):
        self.log = log
        self.failing = failing

    async def new_context(self, user_agent):
        self.log.append(("new_context", user_agent))
        return FakeContext(self.log, self.failing)

    async def close(self):
        self.log.append(("browser.close",))


class FakeChromium:
    def __init__(self, log, failing, launch_error):
        self.log = log
        self.failing = failing
        self.launch_error = launch_error

    async def launch(self, headless):
        self.log.append(("launch", headless))
        if self.launch_error:
            raise PlaywrightError("Executable doesn't exist")
        return FakeBrowser(self.log, self.failing)


class FakePlaywright:
    def __init__(self, log, failing=False, launch_error=False):
        self.log = log
        self.chromium = FakeChromium(log, failing, launch_error)

    async def start(self):
        return self

    async def stop(self):
        self.log.append(("stop",))


@pytest.fixture(autouse=True)
def browsers_dir(tmp_path, monkeypatch):
    monkeypatch.setenv("LOCALAPPDATA", str(tmp_path))
    monkeypatch.setenv("PLAYWRIGHT_BROWSERS_PATH", str(tmp_path / "browsers"))


def install(monkeypatch, **kwargs):
    log = []
    monkeypatch.setattr(browser_fetcher, "async_playwright", lambda: FakePlaywright(log, **kwargs))
    return log


async def test_renders_page_and_releases_everything(monkeypatch):
    log = install(monkeypatch)
    cfg = CrawlConfig(request_timeout=2.0, user_agent="ua/1")

    async with BrowserFetcher(cfg) as fetcher:
        page = await fetcher.fetch("https://shop.test/")

    assert page.html == "<html>https://shop.test/</html>"
    assert page.url == "https://shop.test/"
    assert ("goto", "https://shop.test/", "domcontentloaded", 2000.0) in log
    assert ("new_context", "ua/1") in log
    assert log[-4:] == [("page.close",), ("context.close",), ("browser.close",), ("stop",)]


async def test_reports_where_navigation_landed(monkeypatch):
    install(monkeypatch)

    async with BrowserFetcher(CrawlConfig()) as fetcher:
        page = await fetcher.fetch("http://shop.test/")

    assert page.url == "https://shop.test/"
    assert page.html == "<html>https://shop.test/</html>"


async def test_navigation_error_becomes_fetch_failed(monkeypatch):
    log = install(monkeypatch, failing=True)

    async with BrowserFetcher(CrawlConfig()) as fetcher:
        with pytest.raises(FetchFailed):
            await fetcher.fetch("https://nowhere.test/")

    assert ("page.close",) in log


async def test_launch_failure_stops_playwright(monkeypatch):
    log = install(monkeypatch, launch_error=True)

    with pytest.raises(PlaywrightError):
        async with BrowserFetcher(CrawlConfig()):
            pass

    assert log == [("launch", True), ("stop",)]


def test_app_data_dir_is_created(tmp_path):
    path = browser_fetcher.app_data_dir()
    assert path == tmp_path / "product-crawler"
    assert path.is_dir()
