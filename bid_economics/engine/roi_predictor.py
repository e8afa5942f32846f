"""
ROI Predictor — adjusts the realistic ROI for market and history signals.

Each signal that fires contributes its PredictionPolicy weight.  The net
impact is damped into an adjustment factor ``1 + net * damping`` applied
to the base ROI.  Confidence grows with how much input the caller
actually supplied.
"""

from __future__ import annotations

from statistics import fmean

from bid_economics.engine.benefit_model import classify_purchaser
from bid_economics.engine.parameter_resolver import (
    historical_data_supplied,
    market_data_supplied,
    parameter_completeness,
)
from bid_economics.models.enums import Level
from bid_economics.models.schemas import (
    AnalysisParameters,
    BenefitAnalysis,
    CashFlowAnalysis,
    CostAnalysis,
    KeyFactor,
    PredictedScenario,
    PredictionScenarios,
    ROIAnalysis,
    ROIPrediction,
    Tender,
)
from bid_economics.rules.advisory_rules import AdvisoryContext, recommendations
from bid_economics.rules.policy_config import EconomicsPolicy, PredictionPolicy


def key_factors(
    tender: Tender,
    params: AnalysisParameters,
    policy: EconomicsPolicy,
) -> list[KeyFactor]:
    weights = policy.prediction
    market = params.market_conditions
    history = params.historical_data
    factors: list[KeyFactor] = []

    tier = classify_purchaser(tender.purchaser, policy.benefit)
    if tier.premium:
        factors.append(KeyFactor(
            factor="Premium purchaser",
            impact=weights.premium_tier_bonus,
            description=f"{tier.tier.value} purchasers bring follow-on work and reference value",
        ))
    if params.technology_complexity == Level.HIGH:
        factors.append(KeyFactor(
            factor="Technical complexity",
            impact=weights.high_complexity_bonus,
            description="High complexity builds reusable capability and raises the price ceiling",
        ))
    if market.industry_growth_rate >= weights.industry_growth_threshold:
        factors.append(KeyFactor(
            factor="Industry growth",
            impact=weights.industry_growth_bonus,
            description=f"Industry growing at {market.industry_growth_rate:.0%}",
        ))
    if history.similar_projects_roi:
        mean_roi = fmean(history.similar_projects_roi)
        if mean_roi > weights.historical_roi_threshold:
            factors.append(KeyFactor(
                factor="Historical performance",
                impact=weights.historical_performance_bonus,
                description=f"Similar projects averaged {mean_roi:.1f}% ROI",
            ))
    if (
        history.client_satisfaction_rate is not None
        and history.client_satisfaction_rate >= weights.satisfaction_threshold
    ):
        factors.append(KeyFactor(
            factor="Client satisfaction",
            impact=weights.satisfaction_bonus,
            description=f"Client satisfaction at {history.client_satisfaction_rate:.0%}",
        ))
    penalty = weights.competition_penalties.get(market.competition_level, 0.0)
    if penalty > 0:
        factors.append(KeyFactor(
            factor="Competition",
            impact=-penalty,
            description=f"{market.competition_level.value} competition compresses margins",
        ))
    return factors


def adjustment_factor(factors: list[KeyFactor], policy: PredictionPolicy) -> float:
    positive = sum(f.impact for f in factors if f.impact > 0)
    negative = sum(-f.impact for f in factors if f.impact < 0)
    return 1 + (positive - negative) * policy.damping


def confidence_level(tender: Tender, params: AnalysisParameters, policy: PredictionPolicy) -> float:
    score = policy.confidence_base
    if market_data_supplied(params):
        score += policy.confidence_market_data
    if historical_data_supplied(params):
        score += policy.confidence_historical_data
    score += policy.confidence_completeness * parameter_completeness(params)
    if (tender.budget or 0.0) > policy.large_project_threshold:
        score += policy.confidence_large_project
    return min(1.0, max(0.0, score))


def predict(
    roi: ROIAnalysis,
    params: AnalysisParameters,
    tender: Tender,
    cost: CostAnalysis,
    benefit: BenefitAnalysis,
    cash_flow: CashFlowAnalysis,
    policy: EconomicsPolicy,
) -> ROIPrediction:
    weights = policy.prediction
    factors = key_factors(tender, params, policy)
    factor = adjustment_factor(factors, weights)
    adjusted = roi.realistic * factor
    confidence = confidence_level(tender, params, weights)

    p_opt, p_likely, p_pess = weights.scenario_probabilities
    context = AdvisoryContext(
        tender=tender,
        params=params,
        cost=cost,
        benefit=benefit,
        cash_flow=cash_flow,
        adjusted_roi=adjusted,
        confidence=confidence,
        policy=policy.advisory,
    )

    return ROIPrediction(
        base_roi=roi.realistic,
        adjustment_factor=factor,
        adjusted_roi=adjusted,
        confidence_level=confidence,
        scenarios=PredictionScenarios(
            optimistic=PredictedScenario(value=adjusted * weights.optimistic_multiplier, probability=p_opt),
            most_likely=PredictedScenario(value=adjusted, probability=p_likely),
            pessimistic=PredictedScenario(value=adjusted * weights.pessimistic_multiplier, probability=p_pess),
        ),
        recommendations=tuple(recommendations(context)),
        key_factors=tuple(factors),
    )
