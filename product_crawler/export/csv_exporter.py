from __future__ import annotations

import csv
import logging
from typing import Dict, List
from pathlib import Path

logger = logging.getLogger(__name__)


class CSVExporter:
    """
    Writes one ``page_url,product_url`` row per product link.
    """

    _headers = ["page_url", "product_url"]

    def export(self, data: Dict[str, List[str]], path: str) -> None:
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8", newline="") as f:
            w = csv.writer(f)
            w.writerow(self._headers)
            for page_url, products in data.items():
                for product_url in products:
                    w.writerow([page_url, product_url])
        logger.info("Results saved to %s", path)
