"""
Cash Flow Projector — month-by-month income, expense and funding need.

Expense follows the parameter set's CostDistribution, income follows its
PaymentSchedule.  Cumulative flow is a running prefix sum of net flow, so
``cumulative[i] == cumulative[i-1] + net[i]`` holds exactly.

Discounting uses the monthly rate ``discount_rate / 12`` with cash flows
at the end of months 1..n, i.e. a zero flow at t=0 ahead of month 1.
"""

from __future__ import annotations

import math
from typing import Optional, Sequence

import numpy as np
import numpy_financial as npf

from bid_economics.models.enums import (
    CostDistributionType,
    Level,
    PaymentScheduleType,
    WarningCode,
)
from bid_economics.models.schemas import (
    AnalysisParameters,
    AnalysisWarning,
    BenefitAnalysis,
    CashFlowAnalysis,
    CashFlowRiskFactor,
    CashFlowScenario,
    CashFlowScenarios,
    CashFlowSummary,
    CostAnalysis,
    MonthlyFlow,
    Tender,
)
from bid_economics.rules.policy_config import CashFlowPolicy

STAGE = "cash_flow"


# ── Distribution helpers ─────────────────────────────────


def expense_shares(params: AnalysisParameters, policy: CashFlowPolicy) -> list[float]:
    """Fraction of total cost spent in each month; sums to 1."""
    n = params.project_duration_months
    distribution = params.cost_distribution

    if distribution.type == CostDistributionType.UNIFORM:
        return [1.0 / n] * n
    if distribution.type == CostDistributionType.CUSTOM:
        return [p / 100.0 for p in distribution.monthly_percentages]

    if n == 1:
        return [1.0]
    front = distribution.front_share or policy.front_load_share
    head = math.ceil(n / 2)
    tail = n - head
    shares = [front / head] * head + [(1.0 - front) / tail] * tail
    if distribution.type == CostDistributionType.BACK_LOADED:
        shares.reverse()
    return shares


def income_schedule(params: AnalysisParameters, revenue: float) -> tuple[list[float], list[list[str]]]:
    """Income per month and the milestone labels paid in that month."""
    n = params.project_duration_months
    income = [0.0] * n
    labels: list[list[str]] = [[] for _ in range(n)]
    schedule = params.payment_schedule

    if schedule.type == PaymentScheduleType.MONTHLY:
        return [revenue / n] * n, labels

    for milestone in schedule.milestones:
        # Unset or past-the-end months are paid at completion
        month = min(milestone.month or n, n)
        income[month - 1] += revenue * milestone.percentage / 100.0
        labels[month - 1].append(milestone.name)
    return income, labels


def monthly_series(
    params: AnalysisParameters,
    total_cost: float,
    revenue: float,
    policy: CashFlowPolicy,
) -> list[MonthlyFlow]:
    expenses = [total_cost * share for share in expense_shares(params, policy)]
    income, labels = income_schedule(params, revenue)

    monthly: list[MonthlyFlow] = []
    cumulative = 0.0
    for month in range(1, params.project_duration_months + 1):
        net = income[month - 1] - expenses[month - 1]
        cumulative = cumulative + net
        monthly.append(MonthlyFlow(
            month=month,
            income=income[month - 1],
            expense=expenses[month - 1],
            net_flow=net,
            cumulative_flow=cumulative,
            milestones=tuple(labels[month - 1]),
        ))
    return monthly


def _payback(monthly: Sequence[MonthlyFlow]) -> int:
    return next((m.month for m in monthly if m.cumulative_flow >= 0), len(monthly) + 1)


# ── Discounting ──────────────────────────────────────────


def present_value(flows: Sequence[float], monthly_rate: float) -> float:
    """PV of end-of-month flows for months 1..n."""
    return float(npf.npv(monthly_rate, [0.0, *flows]))


def internal_rate_of_return(flows: Sequence[float]) -> Optional[float]:
    """Annualised IRR in percent; None without a sign change or a real root."""
    has_positive = any(cf > 0 for cf in flows)
    has_negative = any(cf < 0 for cf in flows)
    if not (has_positive and has_negative):
        return None
    try:
        monthly = npf.irr([0.0, *flows])
        if isinstance(monthly, np.ndarray):
            monthly = monthly.item()
    except (FloatingPointError, ValueError, ZeroDivisionError):
        return None
    if monthly is None or isinstance(monthly, complex) or np.isnan(monthly):
        return None
    return ((1 + float(monthly)) ** 12 - 1) * 100


def _discounted_payback(flows: Sequence[float], monthly_rate: float) -> Optional[int]:
    cumulative = 0.0
    for t, cf in enumerate(flows, start=1):
        cumulative += cf / (1 + monthly_rate) ** t
        if cumulative >= 0:
            return t
    return None


# ── Risk factors ─────────────────────────────────────────


def _liquidity_risk(peak_funding: float, revenue: float, policy: CashFlowPolicy) -> Level:
    ratio = abs(peak_funding) / revenue if revenue > 0 else 0.0
    if ratio > policy.liquidity_high_ratio:
        return Level.HIGH
    if ratio > policy.liquidity_medium_ratio:
        return Level.MEDIUM
    return Level.LOW


def cash_flow_volatility(net_flows: Sequence[float]) -> float:
    """Population standard deviation of monthly net flow."""
    return float(np.std(net_flows)) if net_flows else 0.0


def _risk_factors(
    liquidity: Level,
    income: Sequence[float],
    net_flows: Sequence[float],
    volatility: float,
    policy: CashFlowPolicy,
) -> tuple[CashFlowRiskFactor, ...]:
    factors = []
    if liquidity == Level.HIGH:
        factors.append(CashFlowRiskFactor(
            factor="Liquidity risk",
            impact=Level.HIGH,
            description="Peak funding requirement exceeds half of contract revenue",
            mitigation="Negotiate an advance payment or arrange working-capital financing",
        ))

    mean_net = float(np.mean(net_flows)) if net_flows else 0.0
    if volatility > policy.volatility_ratio * abs(mean_net):
        factors.append(CashFlowRiskFactor(
            factor="Cash flow volatility",
            impact=Level.MEDIUM,
            description="Monthly net flow swings widely around its average",
            mitigation="Set up cash-flow alerts and hold a larger cash reserve",
        ))

    total_income = sum(income)
    if total_income > 0:
        top_three = sum(sorted(income, reverse=True)[:3])
        if top_three / total_income > policy.income_concentration_limit:
            factors.append(CashFlowRiskFactor(
                factor="Income concentration",
                impact=Level.MEDIUM,
                description="More than half of income arrives in three months or fewer",
                mitigation="Propose additional payment milestones spread over delivery",
            ))
    return tuple(factors)


# ── Scenarios ────────────────────────────────────────────


def _scenario(
    name: str,
    probability: float,
    revenue_factor: float,
    cost_factor: float,
    assumptions: tuple[str, ...],
    params: AnalysisParameters,
    cost: CostAnalysis,
    revenue: float,
    policy: CashFlowPolicy,
) -> CashFlowScenario:
    monthly = monthly_series(params, cost.total_cost * cost_factor, revenue * revenue_factor, policy)
    return CashFlowScenario(
        name=name,
        probability=probability,
        revenue_factor=revenue_factor,
        cost_factor=cost_factor,
        monthly_flow=tuple(monthly),
        net_present_value=present_value([m.net_flow for m in monthly], params.discount_rate / 12),
        payback_period=_payback(monthly),
        peak_funding=min(m.cumulative_flow for m in monthly),
        assumptions=assumptions,
    )


def cash_flow_scenarios(
    params: AnalysisParameters,
    cost: CostAnalysis,
    revenue: float,
    policy: CashFlowPolicy,
) -> CashFlowScenarios:
    p_opt, p_neutral, p_pess = policy.scenario_probabilities
    return CashFlowScenarios(
        optimistic=_scenario(
            "Optimistic", p_opt, *policy.optimistic_factors,
            ("Client pays on time", "Costs held below plan"),
            params, cost, revenue, policy,
        ),
        neutral=_scenario(
            "Neutral", p_neutral, 1.0, 1.0,
            ("Payments follow the schedule", "Costs as estimated"),
            params, cost, revenue, policy,
        ),
        pessimistic=_scenario(
            "Pessimistic", p_pess, *policy.pessimistic_factors,
            ("Client payments slip", "Cost overrun"),
            params, cost, revenue, policy,
        ),
    )


# ── Projection ───────────────────────────────────────────


def project_cash_flow(
    tender: Tender,
    params: AnalysisParameters,
    cost: CostAnalysis,
    benefit: BenefitAnalysis,
    policy: CashFlowPolicy,
) -> CashFlowAnalysis:
    n = params.project_duration_months
    revenue = benefit.direct_revenue

    monthly = monthly_series(params, cost.total_cost, revenue, policy)
    income = [m.income for m in monthly]
    expenses = [m.expense for m in monthly]
    net_flows = [m.net_flow for m in monthly]

    peak_funding = min(m.cumulative_flow for m in monthly)
    monthly_rate = params.discount_rate / 12
    pv_in = present_value(income, monthly_rate)
    pv_out = present_value(expenses, monthly_rate)
    liquidity = _liquidity_risk(peak_funding, revenue, policy)
    volatility = cash_flow_volatility(net_flows)

    total_inflow = sum(income)
    total_outflow = sum(expenses)
    return CashFlowAnalysis(
        monthly_flow=tuple(monthly),
        peak_funding=peak_funding,
        payback_period=_payback(monthly),
        summary=CashFlowSummary(
            total_inflow=total_inflow,
            total_outflow=total_outflow,
            net_cash_flow=total_inflow - total_outflow,
            average_monthly_flow=(total_inflow - total_outflow) / n,
        ),
        net_present_value=pv_in - pv_out,
        internal_rate_of_return=internal_rate_of_return(net_flows),
        profitability_index=pv_in / pv_out if pv_out > 0 else 0.0,
        discounted_payback_period=_discounted_payback(net_flows, monthly_rate),
        liquidity_risk=liquidity,
        cash_flow_volatility=volatility,
        risk_factors=_risk_factors(liquidity, income, net_flows, volatility, policy),
        scenarios=cash_flow_scenarios(params, cost, revenue, policy),
    )


def cash_flow_warnings(analysis: CashFlowAnalysis) -> list[AnalysisWarning]:
    warnings = []
    n = len(analysis.monthly_flow)
    if analysis.payback_period > n:
        warnings.append(AnalysisWarning(
            code=WarningCode.NO_PAYBACK_WITHIN_HORIZON,
            stage=STAGE,
            message=f"Cumulative cash flow stays negative through month {n}",
        ))
    if analysis.internal_rate_of_return is None:
        warnings.append(AnalysisWarning(
            code=WarningCode.IRR_UNDEFINED,
            stage=STAGE,
            message="Internal rate of return is undefined for this cash-flow series",
        ))
    return warnings
