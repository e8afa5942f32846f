"""
LangGraph shared state — the single object that flows through every node.

Design rules:
  1. Each field is "owned" by one node (see comments).
  2. Nodes may READ any field but only WRITE their owned fields.
  3. Warnings are the one shared field; they accumulate through a reducer
     so the parallel cost/benefit branches never overwrite each other.
"""

from __future__ import annotations

from operator import add
from typing import Annotated, Optional

from pydantic import BaseModel, Field

from bid_economics.rules.policy_config import EconomicsPolicy

from .schemas import (
    AnalysisParameters,
    AnalysisWarning,
    BenefitAnalysis,
    CashFlowAnalysis,
    CostAnalysis,
    CostBenefitReport,
    FinancialMetrics,
    ROIAnalysis,
    ROIPrediction,
    Tender,
)


class AnalysisState(BaseModel):
    """
    The graph state for one tender analysis.

    Inputs are validated before the graph is invoked, so nodes never
    raise on bad caller data.
    """

    # ── Inputs (set by the engine) ───────────────────────
    tender: Tender
    params: AnalysisParameters
    policy: EconomicsPolicy = Field(default_factory=EconomicsPolicy)

    # ── Stage outputs (owner: node of the same name) ─────
    cost: Optional[CostAnalysis] = None
    benefit: Optional[BenefitAnalysis] = None
    cash_flow: Optional[CashFlowAnalysis] = None
    roi: Optional[ROIAnalysis] = None
    financial_metrics: Optional[FinancialMetrics] = None
    prediction: Optional[ROIPrediction] = None

    # ── Output (owner: assemble_report) ──────────────────
    report: Optional[CostBenefitReport] = None

    # ── Shared ───────────────────────────────────────────
    warnings: Annotated[list[AnalysisWarning], add] = Field(default_factory=list)
