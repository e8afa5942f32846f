"""
Cost Model — labor, technology, management and risk cost for a bid.

All factors come from CostPolicy; nothing here branches on an enum value.
"""

from __future__ import annotations

from bid_economics.models.schemas import (
    AnalysisParameters,
    CostAnalysis,
    CostBreakdown,
    PhaseCost,
    Tender,
)
from bid_economics.rules.policy_config import CostPolicy


def compute_cost(tender: Tender, params: AnalysisParameters, policy: CostPolicy) -> CostAnalysis:
    work_days = params.project_duration_months * policy.work_days_per_month
    person_days = work_days * params.team_size
    labor = person_days * params.labor_rate_per_day

    complexity_factor = policy.complexity_factors[params.technology_complexity]
    technology = labor * complexity_factor * policy.technology_cost_ratio

    management = (labor + technology) * policy.management_overhead_ratio

    risk_factor = policy.risk_factors[params.risk_level]
    risk = (labor + technology + management) * risk_factor

    total = labor + technology + management + risk

    breakdown = CostBreakdown(
        direct_costs=labor + technology,
        indirect_costs=management + risk,
        fixed_costs=management,
        variable_costs=labor + technology + risk,
    )
    phases = tuple(
        PhaseCost(phase=name, cost=total * share, percentage=share * 100)
        for name, share in policy.phase_shares.items()
    )

    return CostAnalysis(
        labor_cost=labor,
        technology_cost=technology,
        management_cost=management,
        risk_cost=risk,
        total_cost=total,
        cost_breakdown=breakdown,
        cost_by_phase=phases,
    )
