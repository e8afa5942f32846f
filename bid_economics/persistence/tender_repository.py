"""
Tender Repository — in-memory tender records.

Tenders normally arrive from the crawler; here they are added directly
or loaded from a JSON file (a list of tender objects, camelCase or
snake_case keys).
"""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Optional, Union

from bid_economics.models.schemas import Tender

logger = logging.getLogger(__name__)


class TenderRepository:
    def __init__(self):
        self._tenders: dict[str, Tender] = {}
        self._lock = threading.Lock()

    def add(self, tender: Tender) -> Tender:
        """Insert or replace a tender by id."""
        with self._lock:
            self._tenders[tender.id] = tender
        return tender

    def get(self, tender_id: str) -> Optional[Tender]:
        with self._lock:
            return self._tenders.get(tender_id)

    def list(self) -> list[Tender]:
        with self._lock:
            return list(self._tenders.values())

    def delete(self, tender_id: str) -> bool:
        with self._lock:
            return self._tenders.pop(tender_id, None) is not None

    def load_json(self, path: Union[str, Path]) -> int:
        """Load tenders from a JSON array; returns how many were loaded."""
        records = json.loads(Path(path).read_text(encoding="utf-8"))
        for record in records:
            self.add(Tender.model_validate(record))
        logger.info(f"Loaded {len(records)} tender(s) from {path}")
        return len(records)
