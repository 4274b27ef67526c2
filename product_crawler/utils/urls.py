from __future__ import annotations

import logging
import re
from typing import Iterable, List
from urllib.parse import urljoin, urlsplit, urlunsplit

from ..errors import InvalidDomain, InvalidURL

logger = logging.getLogger(__name__)

_CRAWLABLE_SCHEMES = ("http", "https")
_DEFAULT_PORTS = {"http": 80, "https": 443}
_SCHEME_PREFIX = re.compile(r"^([^/?#]*):")
_VALID_SCHEME = re.compile(r"[A-Za-z][A-Za-z0-9+.-]*")


def normalize_url(base: str, relative: str, *, keep_query: bool = False) -> str:
    """
    Resolve ``relative`` against ``base`` and return the canonical identity key.

    The fragment is always dropped; the query string is dropped unless
    ``keep_query`` is set. Scheme and host are lower-cased and default ports
    removed, so normalizing an already-normalized URL returns it unchanged.
    Raises InvalidURL for anything that is not a crawlable http(s) URL
    (``mailto:``, ``javascript:``, empty hrefs, broken hosts...).
    """
    if not isinstance(relative, str) or not relative.strip():
        raise InvalidURL(f"empty link (base={base!r})")
    prefix = _SCHEME_PREFIX.match(relative.strip())
    if prefix and not _VALID_SCHEME.fullmatch(prefix.group(1)):
        raise InvalidURL(f"malformed scheme in {relative!r}")
    href = relative.strip().split("#", 1)[0]
    if not keep_query:
        href = href.split("?", 1)[0]

    try:
        parts = urlsplit(urljoin(base, href))
        port = parts.port
        hostname = parts.hostname
    except ValueError as exc:
        raise InvalidURL(f"cannot parse {relative!r} against {base!r}: {exc}") from exc

    scheme = parts.scheme.lower()
    if scheme not in _CRAWLABLE_SCHEMES:
        raise InvalidURL(f"unsupported scheme in {relative!r}")
    if not hostname:
        raise InvalidURL(f"missing host in {relative!r}")

    netloc = hostname
    if ":" in netloc:
        netloc = f"[{netloc}]"  # IPv6 literal
    if parts.username or parts.password:
        userinfo = parts.username or ""
        if parts.password:
            userinfo += f":{parts.password}"
        netloc = f"{userinfo}@{netloc}"
    if port is not None and port != _DEFAULT_PORTS[scheme]:
        netloc = f"{netloc}:{port}"

    query = parts.query if keep_query else ""
    return urlunsplit((scheme, netloc, parts.path or "/", query, ""))


def origin_of(url: str) -> str:
    """``scheme://host[:port]`` of a normalized URL."""
    parts = urlsplit(url)
    return f"{parts.scheme}://{parts.netloc}"


def host_of(url: str) -> str:
    return (urlsplit(url).hostname or "").lower()


def same_origin(a: str, b: str) -> bool:
    return origin_of(a) == origin_of(b)


def validate_domain(domain: object) -> str:
    """Return the normalized seed URL or raise InvalidDomain."""
    if not isinstance(domain, str):
        raise InvalidDomain(f"seed must be a string, got {type(domain).__name__}")
    try:
        parts = urlsplit(domain.strip())
    except ValueError as exc:
        raise InvalidDomain(f"cannot parse seed {domain!r}: {exc}") from exc
    if not parts.scheme or not parts.netloc:
        raise InvalidDomain(f"seed {domain!r} is not an absolute URL")
    try:
        return normalize_url(domain, domain)
    except InvalidURL as exc:
        raise InvalidDomain(str(exc)) from exc


def validate_domains(domains: Iterable[object]) -> List[str]:
    """
    Normalize seeds, dropping (and logging) invalid entries and duplicates.
    Order of first appearance is preserved.
    """
    out: List[str] = []
    for domain in domains:
        try:
            url = validate_domain(domain)
        except InvalidDomain as exc:
            logger.error("Invalid domain: %s", exc)
            continue
        if url not in out:
            out.append(url)
    return out
