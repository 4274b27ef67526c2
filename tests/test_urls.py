from __future__ import annotations

import pytest

from product_crawler.errors import InvalidDomain, InvalidURL
from product_crawler.utils.urls import (
    host_of,
    normalize_url,
    origin_of,
    same_origin,
    validate_domain,
    validate_domains,
)


@pytest.mark.parametrize(
    "base, relative, expected",
    [
        ("https://shop.test/a/b", "c", "https://shop.test/a/c"),
        ("https://shop.test/a/", "/x", "https://shop.test/x"),
        ("https://shop.test/a/b/", "../c", "https://shop.test/a/c"),
        ("https://shop.test/", "//cdn.test/p", "https://cdn.test/p"),
        ("https://shop.test/", "http://other.test/q?x=1#f", "http://other.test/q"),
        ("https://shop.test/a", "b?page=2#top", "https://shop.test/b"),
        ("https://shop.test/a?x=1", "#top", "https://shop.test/a"),
        ("https://Shop.TEST:443/", "/X", "https://shop.test/X"),
        ("http://shop.test:8080/", "/a", "http://shop.test:8080/a"),
        ("https://shop.test", "https://shop.test", "https://shop.test/"),
        ("https://shop.test/", "  /product/1  ", "https://shop.test/product/1"),
    ],
)
def test_normalize_resolves_and_strips(base, relative, expected):
    assert normalize_url(base, relative) == expected


@pytest.mark.parametrize(
    "url",
    [
        "https://shop.test/",
        "https://shop.test/X",
        "http://shop.test:8080/a",
        "https://cdn.test/p",
        "http://[::1]:8000/x",
    ],
)
def test_normalize_is_idempotent(url):
    once = normalize_url(url, url)
    assert normalize_url(once, once) == once
    assert normalize_url("https://elsewhere.test/", once) == once


def test_normalize_keeps_query_when_asked():
    url = normalize_url("https://shop.test/", "/list?page=2#x", keep_query=True)
    assert url == "https://shop.test/list?page=2"
    assert normalize_url(url, url, keep_query=True) == url


@pytest.mark.parametrize(
    "relative",
    [
        "",
        "   ",
        "mailto:sales@shop.test",
        "javascript:void(0)",
        "tel:+15551234",
        "data:text/html,hi",
        "ht!tp://shop.test/",
        ":nothing",
        "http://[::1",
        "https://shop.test:99999/",
    ],
)
def test_normalize_rejects_uncrawlable(relative):
    with pytest.raises(InvalidURL):
        normalize_url("https://shop.test/", relative)


def test_invalid_url_is_a_value_error():
    with pytest.raises(ValueError):
        normalize_url("https://shop.test/", "mailto:x@y.test")


def test_origin_helpers():
    assert origin_of("https://shop.test:8443/a/b") == "https://shop.test:8443"
    assert host_of("https://shop.test:8443/a") == "shop.test"
    assert same_origin("https://shop.test/a", "https://shop.test/b/c")
    assert not same_origin("https://shop.test/a", "http://shop.test/a")
    assert not same_origin("https://shop.test/a", "https://www.shop.test/a")


def test_validate_domains_drops_invalid_and_duplicates():
    seeds = [
        "https://shop.test",
        "not a url",
        42,
        "mailto:x@y.test",
        "https://shop.test/",
        "HTTPS://Other.test/a?x=1#y",
    ]
    assert validate_domains(seeds) == ["https://shop.test/", "https://other.test/a"]


def test_validate_domains_empty_when_nothing_valid():
    assert validate_domains(["shop.test", "", None]) == []


def test_validate_domain_raises_invalid_domain():
    with pytest.raises(InvalidDomain):
        validate_domain("shop.test/no-scheme")
    with pytest.raises(InvalidDomain):
        validate_domain("ftp://files.shop.test/")
