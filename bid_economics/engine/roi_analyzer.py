"""
ROI Analyzer — scenario ROI, break-even month and driver sensitivity.

ROI is ``(benefit - cost) / cost * 100``.  A non-positive cost makes the
ratio meaningless; every ROI is then reported as 0.0 and a
NON_POSITIVE_COST warning is raised by ``roi_warnings``.
"""

from __future__ import annotations

from typing import Optional, Sequence

from bid_economics.engine.benefit_model import compute_benefit
from bid_economics.engine.cost_model import compute_cost
from bid_economics.models.enums import WarningCode
from bid_economics.models.schemas import (
    AnalysisParameters,
    AnalysisWarning,
    BenefitAnalysis,
    CashFlowAnalysis,
    CostAnalysis,
    FinancialMetrics,
    ROIAnalysis,
    ROIScenarioSet,
    ScenarioCase,
    SensitivityFactor,
    Tender,
)
from bid_economics.rules.policy_config import EconomicsPolicy, ROIPolicy

STAGE = "roi_analyzer"


def roi_percent(benefit: float, cost: float) -> float:
    if cost <= 0:
        return 0.0
    return (benefit - cost) / cost * 100


def break_even_month(cumulative: Sequence[float], horizon: int) -> Optional[int]:
    """First month with cumulative >= 0; months past the series hold its last value."""
    if not cumulative:
        return None
    for month in range(1, horizon + 1):
        value = cumulative[month - 1] if month <= len(cumulative) else cumulative[-1]
        if value >= 0:
            return month
    return None


def compute_roi(
    cost: CostAnalysis,
    benefit: BenefitAnalysis,
    cash_flow: CashFlowAnalysis,
    params: AnalysisParameters,
    policy: ROIPolicy,
    sensitivity: Sequence[SensitivityFactor] = (),
) -> ROIAnalysis:
    b, c = benefit.total_benefit, cost.total_cost
    p_opt, p_real, p_pess = policy.scenario_probabilities

    optimistic = ScenarioCase(
        revenue=b * policy.optimistic_benefit,
        costs=c * policy.optimistic_cost,
        roi=roi_percent(b * policy.optimistic_benefit, c * policy.optimistic_cost),
        probability=p_opt,
    )
    neutral = ScenarioCase(revenue=b, costs=c, roi=roi_percent(b, c), probability=p_real)
    pessimistic = ScenarioCase(
        revenue=b * policy.pessimistic_benefit,
        costs=c * policy.pessimistic_cost,
        roi=roi_percent(b * policy.pessimistic_benefit, c * policy.pessimistic_cost),
        probability=p_pess,
    )

    horizon = params.project_duration_months * policy.break_even_horizon_multiplier
    cumulative = [m.cumulative_flow for m in cash_flow.monthly_flow]

    return ROIAnalysis(
        optimistic=optimistic.roi,
        realistic=neutral.roi,
        pessimistic=pessimistic.roi,
        break_even_point=break_even_month(cumulative, horizon),
        scenarios=ROIScenarioSet(optimistic=optimistic, neutral=neutral, pessimistic=pessimistic),
        sensitivity=tuple(sensitivity),
    )


def roi_warnings(roi: ROIAnalysis, cost: CostAnalysis) -> list[AnalysisWarning]:
    warnings = []
    if cost.total_cost <= 0:
        warnings.append(AnalysisWarning(
            code=WarningCode.NON_POSITIVE_COST,
            stage=STAGE,
            message=f"Total cost {cost.total_cost} is not positive; ROI reported as 0",
        ))
    if roi.break_even_point is None:
        warnings.append(AnalysisWarning(
            code=WarningCode.NEVER_BREAKS_EVEN,
            stage=STAGE,
            message="Cumulative cash flow never reaches zero within twice the project duration",
        ))
    return warnings


# ── Sensitivity ──────────────────────────────────────────


def _realistic_roi(tender: Tender, params: AnalysisParameters, policy: EconomicsPolicy) -> float:
    cost = compute_cost(tender, params, policy.cost)
    benefit = compute_benefit(tender, params, policy.benefit)
    return roi_percent(benefit.total_benefit, cost.total_cost)


def compute_sensitivity(
    tender: Tender,
    params: AnalysisParameters,
    policy: EconomicsPolicy,
) -> tuple[SensitivityFactor, ...]:
    """Realistic-ROI delta when one driver moves while the rest hold."""
    base = _realistic_roi(tender, params, policy)
    variants = [
        ("Budget", "+10%", tender.model_copy(update={"budget": tender.budget * 1.1}), params),
        ("Labor rate", "+10%", tender,
         params.model_copy(update={"labor_rate_per_day": params.labor_rate_per_day * 1.1})),
        ("Project duration", "+1 month", tender,
         params.model_copy(update={"project_duration_months": params.project_duration_months + 1})),
        ("Team size", "+1 person", tender,
         params.model_copy(update={"team_size": params.team_size + 1})),
    ]
    return tuple(
        SensitivityFactor(
            factor=name,
            change=change,
            roi_delta=_realistic_roi(t, p, policy) - base,
        )
        for name, change, t, p in variants
    )


# ── Financial metrics ────────────────────────────────────


def compute_financial_metrics(
    cost: CostAnalysis,
    benefit: BenefitAnalysis,
    tender: Tender,
) -> FinancialMetrics:
    revenue = benefit.direct_revenue
    total_cost = cost.total_cost
    budget = tender.budget or 0.0
    return FinancialMetrics(
        profit_margin=(revenue - total_cost) / revenue * 100 if revenue > 0 else 0.0,
        return_on_investment=roi_percent(revenue, total_cost),
        cost_efficiency_ratio=total_cost / revenue if revenue > 0 else 0.0,
        budget_utilization_rate=total_cost / budget * 100 if budget > 0 else 0.0,
    )
