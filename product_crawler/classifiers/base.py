from __future__ import annotations

from typing import Protocol


class ProductClassifier(Protocol):
    """
    Decides whether a normalized URL points at an individual product page.
    Implementations must be pure and must not raise, whatever string they get.
    """

    name: str

    def is_product(self, url: str) -> bool:
        ...
