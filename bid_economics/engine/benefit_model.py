"""
Benefit Model — direct revenue plus the strategic value of winning.

The purchaser tier is a table lookup over BenefitPolicy.purchaser_tiers;
a new tier is a new row in the policy, not a new branch here.
"""

from __future__ import annotations

from bid_economics.models.schemas import (
    AnalysisParameters,
    BenefitAnalysis,
    BenefitBreakdown,
    Tender,
)
from bid_economics.rules.policy_config import BenefitPolicy, PurchaserTierRule


def classify_purchaser(purchaser: str, policy: BenefitPolicy) -> PurchaserTierRule:
    return policy.tier_for(purchaser)


def compute_benefit(
    tender: Tender,
    params: AnalysisParameters,
    policy: BenefitPolicy,
) -> BenefitAnalysis:
    revenue = float(tender.budget)
    tier = classify_purchaser(tender.purchaser, policy)
    complexity_value = policy.complexity_value_factors[params.technology_complexity]

    future = revenue * policy.future_opportunity_ratio * tier.opportunity_multiplier
    technology = revenue * policy.technology_value_ratio * complexity_value
    brand = revenue * policy.brand_value_ratio * tier.brand_multiplier

    total = revenue + future + technology + brand

    return BenefitAnalysis(
        direct_revenue=revenue,
        future_opportunities=future,
        technology_value=technology,
        brand_value=brand,
        total_benefit=total,
        purchaser_tier=tier.tier,
        benefit_breakdown=BenefitBreakdown(
            immediate_revenue=revenue,
            recurring_revenue=future * policy.recurring_share,
            strategic_value=technology + brand,
            market_expansion=future * (1 - policy.recurring_share),
        ),
    )
