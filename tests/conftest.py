from __future__ import annotations

import pytest

from product_crawler.config import CrawlConfig


@pytest.fixture
def config(tmp_path) -> CrawlConfig:
    return CrawlConfig(output_path=str(tmp_path / "productUrls.json"))
