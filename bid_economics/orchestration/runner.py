"""
Engine runner — validates input, invokes the graph, logs the outcome.

The logger is a collaborator: pass one in to route engine output wherever
the caller wants it.  Stage functions never log; the engine logs on their
behalf through a per-tender adapter.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Union

from bid_economics.engine.parameter_resolver import Overrides, resolve, validate_tender
from bid_economics.models.schemas import CostBenefitReport, Tender
from bid_economics.orchestration.graph import build_graph
from bid_economics.rules.policy_config import EconomicsPolicy

LoggerLike = Union[logging.Logger, logging.LoggerAdapter]


class TenderLogAdapter(logging.LoggerAdapter):
    """Prefixes every record with the tender id."""

    def process(self, msg, kwargs):
        return f"[{self.extra['tender_id']}] {msg}", kwargs


class BidEconomicsEngine:
    """Runs the economics pipeline for one tender at a time."""

    def __init__(
        self,
        policy: Optional[EconomicsPolicy] = None,
        logger: Optional[LoggerLike] = None,
    ):
        self.policy = policy or EconomicsPolicy()
        self.logger = logger or logging.getLogger(__name__)
        self._graph = build_graph()

    def analyze(self, tender: Tender, overrides: Overrides = None) -> CostBenefitReport:
        """
        Produce a new report for ``tender``.

        Raises ValidationError on a bad budget or bad overrides; every
        other degenerate outcome is a warning on the report.
        """
        log = TenderLogAdapter(self.logger, {"tender_id": tender.id})

        validate_tender(tender)
        params = resolve(overrides)

        log.debug("Running economics pipeline")
        final_state: Any = self._graph.invoke({
            "tender": tender,
            "params": params,
            "policy": self.policy,
        })
        report: CostBenefitReport = (
            final_state["report"] if isinstance(final_state, dict) else final_state.report
        )

        for warning in report.warnings:
            log.warning(f"{warning.stage}: {warning.code.value} — {warning.message}")

        log.info(
            f"Analysis complete: cost={report.cost_analysis.total_cost:,.2f} "
            f"ROI={report.roi_analysis.realistic:.1f}% "
            f"adjusted={report.roi_prediction.adjusted_roi:.1f}% "
            f"confidence={report.roi_prediction.confidence_level:.2f}"
        )
        return report
