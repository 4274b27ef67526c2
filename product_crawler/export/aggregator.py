from __future__ import annotations

from typing import Dict, Iterable, List, Mapping

from ..engines.base import CrawlOutcome


def finalize(
    results: Mapping[str, Iterable[str]],
    *,
    failures: int = 0,
    visited_count: int = 0,
    complete: bool = True,
) -> CrawlOutcome:
    """
    Snapshot per-page product sets into the exported ``page -> [product, ...]`` shape.
    Lists are sorted and pages without products dropped, so finalizing an
    already finalized mapping returns an equal one.
    """
    snapshot: Dict[str, List[str]] = {}
    for page in sorted(results):
        products = sorted(set(results[page]))
        if products:
            snapshot[page] = products
    return CrawlOutcome(
        results=snapshot,
        failures=failures,
        visited_count=visited_count,
        complete=complete,
    )
