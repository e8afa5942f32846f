"""
Advisory Rules — recommendation and risk tables for a finished analysis.

Each table is an ordered list of tagged rules.  Every rule is evaluated
independently against the same read-only AdvisoryContext and every match
fires, in table order.  Adding advice means adding a row.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from bid_economics.models.enums import Level
from bid_economics.models.schemas import (
    AnalysisParameters,
    BenefitAnalysis,
    CashFlowAnalysis,
    CostAnalysis,
    RiskAssessment,
    Tender,
)
from bid_economics.rules.policy_config import AdvisoryPolicy


@dataclass(frozen=True)
class AdvisoryContext:
    tender: Tender
    params: AnalysisParameters
    cost: CostAnalysis
    benefit: BenefitAnalysis
    cash_flow: CashFlowAnalysis
    adjusted_roi: float
    confidence: float
    policy: AdvisoryPolicy

    @property
    def budget(self) -> float:
        return self.tender.budget or 0.0

    @property
    def labor_share(self) -> float:
        total = self.cost.total_cost
        return self.cost.labor_cost / total if total > 0 else 0.0

    @property
    def peak_funding_ratio(self) -> float:
        revenue = self.benefit.direct_revenue
        return abs(self.cash_flow.peak_funding) / revenue if revenue > 0 else 0.0

    @property
    def pays_back(self) -> bool:
        return self.cash_flow.payback_period <= len(self.cash_flow.monthly_flow)


Predicate = Callable[[AdvisoryContext], bool]


@dataclass(frozen=True)
class AdvisoryRule:
    key: str
    predicate: Predicate
    message: str


@dataclass(frozen=True)
class RiskRule:
    key: str
    predicate: Predicate
    factor: str
    mitigation: str


# ── Recommendation table ─────────────────────────────────

RECOMMENDATION_RULES: list[AdvisoryRule] = [
    AdvisoryRule(
        "roi_strong",
        lambda c: c.adjusted_roi > c.policy.strong_bid_roi,
        "Predicted ROI is high; strongly recommend bidding",
    ),
    AdvisoryRule(
        "roi_good",
        lambda c: c.policy.good_bid_roi < c.adjusted_roi <= c.policy.strong_bid_roi,
        "Predicted ROI is good; recommend bidding after reviewing the competition",
    ),
    AdvisoryRule(
        "roi_marginal",
        lambda c: c.policy.marginal_bid_roi < c.adjusted_roi <= c.policy.good_bid_roi,
        "Predicted ROI is moderate; bid only with a cost-optimised solution",
    ),
    AdvisoryRule(
        "roi_low",
        lambda c: c.adjusted_roi <= c.policy.marginal_bid_roi,
        "Predicted ROI is low; consider not bidding or restructuring costs",
    ),
    AdvisoryRule(
        "cost_overrun",
        lambda c: c.cost.total_cost > c.budget * c.policy.overrun_budget_ratio,
        "Estimated cost is close to the budget ceiling; there is a risk of overrun",
    ),
    AdvisoryRule(
        "high_risk",
        lambda c: c.params.risk_level == Level.HIGH,
        "Project risk is high; prepare a detailed risk-mitigation plan",
    ),
    AdvisoryRule(
        "low_confidence",
        lambda c: c.confidence < c.policy.low_confidence,
        "Prediction confidence is low; collect more market and historical data",
    ),
    AdvisoryRule(
        "high_confidence",
        lambda c: c.confidence > c.policy.high_confidence,
        "Prediction confidence is high; the estimate is a reliable basis for the decision",
    ),
    AdvisoryRule(
        "labor_heavy",
        lambda c: c.labor_share > c.policy.labor_share_limit,
        "Labor cost dominates; consider technical optimisation or outsourcing part of the work",
    ),
    AdvisoryRule(
        "no_payback",
        lambda c: not c.pays_back,
        "The project does not pay back within its duration; negotiate an advance or staged payments",
    ),
    AdvisoryRule(
        "peak_funding",
        lambda c: c.peak_funding_ratio > c.policy.peak_funding_ratio,
        "Peak funding need is a large share of revenue; secure working capital before bidding",
    ),
]


# ── Risk table ───────────────────────────────────────────

RISK_RULES: list[RiskRule] = [
    RiskRule(
        "technical_complexity",
        lambda c: c.params.technology_complexity == Level.HIGH,
        "High technical complexity creates delivery risk",
        "Staff an experienced technical team and run a technical spike early",
    ),
    RiskRule(
        "budget_overrun",
        lambda c: c.cost.total_cost > c.budget * c.policy.overrun_budget_ratio,
        "Cost is close to the budget ceiling; overrun risk",
        "Enforce strict cost control with a monitoring mechanism",
    ),
    RiskRule(
        "future_dependency",
        lambda c: c.benefit.future_opportunities
        > c.benefit.direct_revenue * c.policy.future_dependency_ratio,
        "Benefit relies heavily on future opportunities; market risk",
        "Estimate future benefit conservatively and focus on the contract's own value",
    ),
    RiskRule(
        "declared_risk",
        lambda c: c.params.risk_level == Level.HIGH,
        "Project is declared high risk",
        "Hold a management reserve and review risks at every milestone",
    ),
    RiskRule(
        "liquidity",
        lambda c: c.cash_flow.liquidity_risk == Level.HIGH,
        "Funding requirement is large relative to revenue",
        "Negotiate an advance payment or arrange working-capital financing",
    ),
]


def recommendations(context: AdvisoryContext) -> list[str]:
    return [rule.message for rule in RECOMMENDATION_RULES if rule.predicate(context)]


def fired_keys(context: AdvisoryContext) -> list[str]:
    return [rule.key for rule in RECOMMENDATION_RULES if rule.predicate(context)]


def assess_risk(context: AdvisoryContext) -> RiskAssessment:
    fired = [rule for rule in RISK_RULES if rule.predicate(context)]
    if len(fired) >= 3:
        level = Level.HIGH
    elif len(fired) == 2:
        level = Level.MEDIUM
    else:
        level = Level.LOW
    return RiskAssessment(
        level=level,
        factors=tuple(rule.factor for rule in fired),
        mitigation=tuple(rule.mitigation for rule in fired),
    )
