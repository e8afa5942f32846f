"""
Report Repository — append-only store of cost-benefit reports.

Reports are immutable; re-analysing a tender appends a new version and
never rewrites an old one.  Deleting a tender drops all of its versions.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Optional

from bid_economics.config import Settings, get_settings
from bid_economics.models.schemas import CostBenefitReport
from bid_economics.persistence.mongo_client import MongoClient

logger = logging.getLogger(__name__)


class ReportRepository:
    """In-memory report store, versioned per tender."""

    def __init__(self):
        self._memory_store: dict[str, list[CostBenefitReport]] = {}
        self._lock = threading.Lock()

    def save(self, report: CostBenefitReport) -> int:
        """Append a report and return its version number for the tender."""
        with self._lock:
            versions = self._memory_store.setdefault(report.tender_id, [])
            versions.append(report)
            version = len(versions)
        logger.info(f"Saved report {report.report_id} as v{version} for {report.tender_id}")
        return version

    def latest(self, tender_id: str) -> Optional[CostBenefitReport]:
        with self._lock:
            versions = self._memory_store.get(tender_id, [])
            return versions[-1] if versions else None

    def history(self, tender_id: str) -> list[CostBenefitReport]:
        """All versions for a tender, newest first."""
        with self._lock:
            return list(reversed(self._memory_store.get(tender_id, [])))

    def delete_for_tender(self, tender_id: str) -> int:
        """Cascade delete; returns the number of reports removed."""
        with self._lock:
            removed = len(self._memory_store.pop(tender_id, []))
        if removed:
            logger.info(f"Deleted {removed} report(s) for {tender_id}")
        return removed

    def list_tenders(self) -> list[str]:
        with self._lock:
            return list(self._memory_store.keys())

    def get_version_count(self, tender_id: str) -> int:
        with self._lock:
            return len(self._memory_store.get(tender_id, []))


class MongoReportRepository(ReportRepository):
    """Same contract as ReportRepository, backed by a pymongo collection."""

    COLLECTION = "cost_benefit_reports"

    def __init__(self, collection: Any = None, client: Optional[MongoClient] = None):
        self._collection = collection
        self._client = client

    @property
    def collection(self) -> Any:
        if self._collection is None:
            self._client = self._client or MongoClient()
            self._collection = self._client.get_collection(self.COLLECTION)
        return self._collection

    @staticmethod
    def _to_report(doc: dict[str, Any]) -> CostBenefitReport:
        doc = {k: v for k, v in doc.items() if not k.startswith("_")}
        return CostBenefitReport.model_validate(doc)

    def save(self, report: CostBenefitReport) -> int:
        version = self.collection.count_documents({"tender_id": report.tender_id}) + 1
        doc = report.model_dump(mode="json")
        doc["_version"] = version
        self.collection.insert_one(doc)
        logger.info(f"Saved report {report.report_id} as v{version} for {report.tender_id}")
        return version

    def latest(self, tender_id: str) -> Optional[CostBenefitReport]:
        doc = self.collection.find_one({"tender_id": tender_id}, sort=[("_version", -1)])
        return self._to_report(doc) if doc else None

    def history(self, tender_id: str) -> list[CostBenefitReport]:
        cursor = self.collection.find({"tender_id": tender_id}).sort("_version", -1)
        return [self._to_report(doc) for doc in cursor]

    def delete_for_tender(self, tender_id: str) -> int:
        removed = self.collection.delete_many({"tender_id": tender_id}).deleted_count
        if removed:
            logger.info(f"Deleted {removed} report(s) for {tender_id}")
        return removed

    def list_tenders(self) -> list[str]:
        return list(self.collection.distinct("tender_id"))

    def get_version_count(self, tender_id: str) -> int:
        return self.collection.count_documents({"tender_id": tender_id})


def get_report_repository(settings: Optional[Settings] = None) -> ReportRepository:
    settings = settings or get_settings()
    if settings.persistence_backend == "mongo":
        return MongoReportRepository(client=MongoClient(settings))
    return ReportRepository()
