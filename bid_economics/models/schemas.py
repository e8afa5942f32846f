"""
Data schemas for the tender economics pipeline.

Two families of models live here:
  - Boundary models (Tender, AnalysisParameters and their parts) accept
    caller input in either camelCase or snake_case.
  - Result models are frozen: a report is immutable once produced, and
    re-analysis always creates a new one.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from .enums import (
    CostDistributionType,
    Level,
    MarketMaturity,
    PaymentScheduleType,
    PurchaserTier,
    TenderStatus,
    WarningCode,
)


class BoundaryModel(BaseModel):
    """Caller-supplied input: strict about unknown keys and non-finite numbers."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        allow_inf_nan=False,
        frozen=True,
    )


class ResultModel(BaseModel):
    """Engine output: immutable once built."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


# ── Tender (external, read-only) ─────────────────────────


class Tender(BaseModel):
    """
    A published procurement opportunity.

    Budget is deliberately unconstrained here: tender records come from
    the crawler as-is, and the engine reports a bad budget as a
    ValidationError for that tender instead of refusing the record.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    id: str
    title: str = ""
    budget: Optional[float] = None
    purchaser: str = ""
    area: str = ""
    status: TenderStatus = TenderStatus.ACTIVE
    publish_time: Optional[datetime] = None
    deadline: Optional[datetime] = None
    description: str = ""


# ── Analysis parameters ──────────────────────────────────


class MarketConditions(BoundaryModel):
    economic_growth_rate: float = 0.05
    industry_growth_rate: float = 0.05
    competition_level: Level = Level.MEDIUM
    market_maturity: MarketMaturity = MarketMaturity.GROWING


class HistoricalData(BoundaryModel):
    similar_projects_roi: tuple[float, ...] = Field(default=(), alias="similarProjectsROI")
    client_satisfaction_rate: Optional[float] = Field(default=None, ge=0, le=1)
    project_success_rate: Optional[float] = Field(default=None, ge=0, le=1)


class PaymentMilestone(BoundaryModel):
    """One payment; month=None means "at project completion"."""
    name: str = "Project acceptance"
    percentage: float = Field(gt=0, le=100)
    month: Optional[int] = Field(default=None, ge=1)


def _completion_milestone() -> tuple[PaymentMilestone, ...]:
    return (PaymentMilestone(percentage=100.0),)


class PaymentSchedule(BoundaryModel):
    type: PaymentScheduleType = PaymentScheduleType.MILESTONE
    milestones: tuple[PaymentMilestone, ...] = Field(default_factory=_completion_milestone)

    @model_validator(mode="after")
    def _percentages_cover_budget(self) -> "PaymentSchedule":
        if self.type == PaymentScheduleType.MILESTONE:
            if not self.milestones:
                raise ValueError("milestone schedule needs at least one milestone")
            total = sum(m.percentage for m in self.milestones)
            if abs(total - 100.0) > 1e-6:
                raise ValueError(f"milestone percentages sum to {total}, expected 100")
        return self


class CostDistribution(BoundaryModel):
    type: CostDistributionType = CostDistributionType.FRONT_LOADED
    front_share: Optional[float] = Field(default=None, gt=0, lt=1)  # None → policy default
    monthly_percentages: tuple[float, ...] = ()  # CUSTOM only

    @model_validator(mode="after")
    def _custom_needs_percentages(self) -> "CostDistribution":
        if self.type == CostDistributionType.CUSTOM:
            if not self.monthly_percentages:
                raise ValueError("CUSTOM distribution needs monthly_percentages")
            if any(p < 0 for p in self.monthly_percentages):
                raise ValueError("monthly percentages must be non-negative")
            total = sum(self.monthly_percentages)
            if abs(total - 100.0) > 1e-6:
                raise ValueError(f"monthly percentages sum to {total}, expected 100")
        return self


class AnalysisParameters(BoundaryModel):
    """
    Complete parameter set for one analysis.

    Defaults are the documented domain defaults; which fields the caller
    actually supplied is tracked by pydantic's ``model_fields_set`` and
    feeds the prediction confidence score.
    """
    labor_rate_per_day: float = Field(default=800.0, gt=0)
    project_duration_months: int = Field(default=6, gt=0)
    team_size: int = Field(default=5, ge=1)
    technology_complexity: Level = Level.MEDIUM
    risk_level: Level = Level.MEDIUM
    discount_rate: float = Field(default=0.08, ge=0, le=1)
    market_conditions: MarketConditions = Field(default_factory=MarketConditions)
    historical_data: HistoricalData = Field(default_factory=HistoricalData)
    payment_schedule: PaymentSchedule = Field(default_factory=PaymentSchedule)
    cost_distribution: CostDistribution = Field(default_factory=CostDistribution)


# ── Cost ─────────────────────────────────────────────────


class CostBreakdown(ResultModel):
    direct_costs: float
    indirect_costs: float
    fixed_costs: float
    variable_costs: float


class PhaseCost(ResultModel):
    phase: str
    cost: float
    percentage: float


class CostAnalysis(ResultModel):
    labor_cost: float
    technology_cost: float
    management_cost: float
    risk_cost: float
    total_cost: float
    cost_breakdown: CostBreakdown
    cost_by_phase: tuple[PhaseCost, ...] = ()


# ── Benefit ──────────────────────────────────────────────


class BenefitBreakdown(ResultModel):
    immediate_revenue: float
    recurring_revenue: float
    strategic_value: float
    market_expansion: float


class BenefitAnalysis(ResultModel):
    direct_revenue: float
    future_opportunities: float
    technology_value: float
    brand_value: float
    total_benefit: float
    purchaser_tier: PurchaserTier = PurchaserTier.STANDARD
    benefit_breakdown: BenefitBreakdown


# ── ROI ──────────────────────────────────────────────────


class ScenarioCase(ResultModel):
    revenue: float
    costs: float
    roi: float
    probability: float


class ROIScenarioSet(ResultModel):
    optimistic: ScenarioCase
    neutral: ScenarioCase
    pessimistic: ScenarioCase


class SensitivityFactor(ResultModel):
    factor: str
    change: str
    roi_delta: float


class ROIAnalysis(ResultModel):
    optimistic: float
    realistic: float
    pessimistic: float
    break_even_point: Optional[int] = None  # None → never profitable within 2× duration
    scenarios: ROIScenarioSet
    sensitivity: tuple[SensitivityFactor, ...] = ()


class FinancialMetrics(ResultModel):
    profit_margin: float
    return_on_investment: float
    cost_efficiency_ratio: float
    budget_utilization_rate: float


# ── Cash flow ────────────────────────────────────────────


class MonthlyFlow(ResultModel):
    month: int
    income: float
    expense: float
    net_flow: float
    cumulative_flow: float
    milestones: tuple[str, ...] = ()


class CashFlowSummary(ResultModel):
    total_inflow: float
    total_outflow: float
    net_cash_flow: float
    average_monthly_flow: float


class CashFlowRiskFactor(ResultModel):
    factor: str
    impact: Level
    description: str
    mitigation: str


class CashFlowScenario(ResultModel):
    """The monthly series re-projected with revenue and cost scaled."""
    name: str
    probability: float
    revenue_factor: float
    cost_factor: float
    monthly_flow: tuple[MonthlyFlow, ...]
    net_present_value: float
    payback_period: int
    peak_funding: float
    assumptions: tuple[str, ...] = ()


class CashFlowScenarios(ResultModel):
    optimistic: CashFlowScenario
    neutral: CashFlowScenario
    pessimistic: CashFlowScenario


class CashFlowAnalysis(ResultModel):
    monthly_flow: tuple[MonthlyFlow, ...]
    peak_funding: float
    payback_period: int
    summary: CashFlowSummary
    net_present_value: float
    internal_rate_of_return: Optional[float] = None  # annualised %, None when undefined
    profitability_index: float
    discounted_payback_period: Optional[int] = None
    liquidity_risk: Level = Level.LOW
    cash_flow_volatility: float = 0.0  # population std-dev of net flow
    risk_factors: tuple[CashFlowRiskFactor, ...] = ()
    scenarios: Optional[CashFlowScenarios] = None


# ── Prediction ───────────────────────────────────────────


class KeyFactor(ResultModel):
    factor: str
    impact: float  # signed weight before damping
    description: str


class PredictedScenario(ResultModel):
    value: float
    probability: float


class PredictionScenarios(ResultModel):
    optimistic: PredictedScenario
    most_likely: PredictedScenario
    pessimistic: PredictedScenario


class ROIPrediction(ResultModel):
    base_roi: float = Field(alias="baseROI")
    adjustment_factor: float
    adjusted_roi: float = Field(alias="adjustedROI")
    confidence_level: float = Field(ge=0, le=1)
    scenarios: PredictionScenarios
    recommendations: tuple[str, ...] = ()
    key_factors: tuple[KeyFactor, ...] = ()


class RiskAssessment(ResultModel):
    level: Level
    factors: tuple[str, ...] = ()
    mitigation: tuple[str, ...] = ()


# ── Report ───────────────────────────────────────────────


class AnalysisWarning(ResultModel):
    """A degenerate-but-defined computation, attached to the report."""
    code: WarningCode
    stage: str
    message: str


def _report_id() -> str:
    return f"CBR-{uuid.uuid4().hex[:12].upper()}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CostBenefitReport(ResultModel):
    report_id: str = Field(default_factory=_report_id)
    tender_id: str
    tender_title: str = ""
    parameters: AnalysisParameters
    cost_analysis: CostAnalysis
    benefit_analysis: BenefitAnalysis
    roi_analysis: ROIAnalysis
    cash_flow_analysis: CashFlowAnalysis
    roi_prediction: ROIPrediction
    financial_metrics: FinancialMetrics
    risk_assessment: RiskAssessment
    warnings: tuple[AnalysisWarning, ...] = ()
    created_at: datetime = Field(default_factory=_utcnow)


# ── Batch & comparison ───────────────────────────────────


class BatchItemError(ResultModel):
    tender_id: str
    error_type: str
    field: Optional[str] = None
    message: str


class BatchSummary(ResultModel):
    success: int = 0
    failure: int = 0
    total: int = 0


class BatchResult(ResultModel):
    results: dict[str, Union[CostBenefitReport, BatchItemError]] = Field(default_factory=dict)
    summary: BatchSummary = Field(default_factory=BatchSummary)


class RankingEntry(ResultModel):
    rank: int
    tender_id: str
    title: str
    roi: float
    total_cost: float
