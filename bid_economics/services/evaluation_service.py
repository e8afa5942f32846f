"""
Evaluation Service — binds the engine to tender and report storage.

All repository and policy I/O happens here, before or after an engine
call and never inside the pipeline.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from bid_economics.config import Settings, get_settings
from bid_economics.engine.parameter_resolver import Overrides, resolve
from bid_economics.errors import BatchLimitError, TenderNotFoundError
from bid_economics.models.schemas import (
    BatchResult,
    CostBenefitReport,
    RankingEntry,
    Tender,
)
from bid_economics.orchestration.batch import analyze_batch, item_error, rank_reports, summarize
from bid_economics.orchestration.runner import BidEconomicsEngine
from bid_economics.persistence.report_repository import ReportRepository, get_report_repository
from bid_economics.persistence.tender_repository import TenderRepository
from bid_economics.rules.policy_config import PolicyStore

logger = logging.getLogger(__name__)


class EvaluationService:
    def __init__(
        self,
        settings: Optional[Settings] = None,
        tenders: Optional[TenderRepository] = None,
        reports: Optional[ReportRepository] = None,
        engine: Optional[BidEconomicsEngine] = None,
        policy_store: Optional[PolicyStore] = None,
    ):
        self.settings = settings or get_settings()
        self.tenders = tenders or TenderRepository()
        self.reports = reports or get_report_repository(self.settings)
        if engine is None:
            store = policy_store or PolicyStore(self.settings)
            engine = BidEconomicsEngine(
                policy=store.get_policy(),
                logger=logging.getLogger("bid_economics.engine"),
            )
        self.engine = engine

    # ── Tenders ──────────────────────────────────────────

    def add_tender(self, tender: Tender) -> Tender:
        return self.tenders.add(tender)

    def list_tenders(self) -> list[Tender]:
        return self.tenders.list()

    def get_tender(self, tender_id: str) -> Tender:
        tender = self.tenders.get(tender_id)
        if tender is None:
            raise TenderNotFoundError(tender_id)
        return tender

    def delete_tender(self, tender_id: str) -> int:
        """Delete a tender and every report for it; returns reports removed."""
        if not self.tenders.delete(tender_id):
            raise TenderNotFoundError(tender_id)
        removed = self.reports.delete_for_tender(tender_id)
        logger.info(f"Deleted tender {tender_id} and {removed} report(s)")
        return removed

    # ── Analysis ─────────────────────────────────────────

    def analyze(self, tender_id: str, overrides: Overrides = None) -> CostBenefitReport:
        tender = self.get_tender(tender_id)
        report = self.engine.analyze(tender, overrides)
        self.reports.save(report)
        return report

    def latest_report(self, tender_id: str) -> Optional[CostBenefitReport]:
        return self.reports.latest(tender_id)

    def report_history(self, tender_id: str) -> list[CostBenefitReport]:
        return self.reports.history(tender_id)

    def analyze_batch(self, tender_ids: Sequence[str], overrides: Overrides = None) -> BatchResult:
        """
        Analyse several stored tenders.  Unknown ids fail for that item
        only; oversized batches are refused outright.
        """
        ids = list(dict.fromkeys(tender_ids))
        if len(ids) > self.settings.batch_max_size:
            raise BatchLimitError(len(ids), self.settings.batch_max_size)

        # Bad overrides fail every item identically, so refuse them up front
        params = resolve(overrides)

        found: list[Tender] = []
        missing = {}
        for tender_id in ids:
            tender = self.tenders.get(tender_id)
            if tender is None:
                missing[tender_id] = item_error(tender_id, TenderNotFoundError(tender_id))
            else:
                found.append(tender)

        batch = analyze_batch(
            found, params, engine=self.engine, max_workers=self.settings.batch_max_workers
        )
        for result in batch.results.values():
            if isinstance(result, CostBenefitReport):
                self.reports.save(result)

        results = {
            tender_id: missing[tender_id] if tender_id in missing else batch.results[tender_id]
            for tender_id in ids
        }
        return BatchResult(results=results, summary=summarize(results))

    def compare(self, tender_ids: Sequence[str]) -> list[RankingEntry]:
        """Rank tenders, reusing each one's latest report or computing one."""
        reports = []
        for tender_id in dict.fromkeys(tender_ids):
            report = self.reports.latest(tender_id)
            if report is None:
                report = self.analyze(tender_id)
            reports.append(report)
        return rank_reports(reports)
