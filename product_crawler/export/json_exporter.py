from __future__ import annotations

import json
import logging
from typing import Dict, List
from pathlib import Path

logger = logging.getLogger(__name__)


class JSONExporter:
    def export(self, data: Dict[str, List[str]], path: str) -> None:
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        logger.info("Results saved to %s", path)
