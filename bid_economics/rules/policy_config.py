"""
Policy Config Store — loads/saves economic policy tables.

Every multiplier, weight and threshold the engine uses is data held in
the pydantic models below, never an inline branch.  The store is a
company-level setting: configured once by an admin and cached.  It falls
back to the documented defaults when MongoDB is not configured or holds
no document yet (first run).
"""

from __future__ import annotations

import logging
import math
from typing import Any

from pydantic import BaseModel, Field, model_validator

from bid_economics.config import Settings, get_settings
from bid_economics.models.enums import Level, PurchaserTier

logger = logging.getLogger(__name__)


# ── Config models ────────────────────────────────────────


class CostPolicy(BaseModel):
    """Cost model constants."""
    work_days_per_month: int = 22
    complexity_factors: dict[Level, float] = {
        Level.LOW: 1.0,
        Level.MEDIUM: 1.3,
        Level.HIGH: 1.6,
    }
    technology_cost_ratio: float = 0.2
    management_overhead_ratio: float = 0.3
    risk_factors: dict[Level, float] = {
        Level.LOW: 0.05,
        Level.MEDIUM: 0.10,
        Level.HIGH: 0.18,
    }
    phase_shares: dict[str, float] = {
        "Requirements analysis": 0.15,
        "System design": 0.20,
        "Implementation": 0.45,
        "Testing & acceptance": 0.15,
        "Deployment & handover": 0.05,
    }


class PurchaserTierRule(BaseModel):
    """One row of the purchaser tier table."""
    tier: PurchaserTier
    keywords: list[str] = []
    opportunity_multiplier: float = 1.0
    brand_multiplier: float = 1.0
    premium: bool = False


class BenefitPolicy(BaseModel):
    """Benefit model constants and the purchaser tier lookup table."""
    future_opportunity_ratio: float = 0.3
    technology_value_ratio: float = 0.1
    brand_value_ratio: float = 0.05
    complexity_value_factors: dict[Level, float] = {
        Level.LOW: 1.0,
        Level.MEDIUM: 1.5,
        Level.HIGH: 2.0,
    }
    # Evaluated in order; first row whose keyword occurs in the purchaser name wins.
    purchaser_tiers: list[PurchaserTierRule] = [
        PurchaserTierRule(
            tier=PurchaserTier.FINANCIAL,
            keywords=["bank", "insurance", "financial", "securities", "银行", "保险", "金融", "证券"],
            opportunity_multiplier=1.5,
            brand_multiplier=2.0,
            premium=True,
        ),
        PurchaserTierRule(
            tier=PurchaserTier.GOVERNMENT,
            keywords=["government", "ministry", "commission", "bureau", "政府", "委员会", "局"],
            opportunity_multiplier=1.5,
            brand_multiplier=1.0,
        ),
    ]
    default_tier: PurchaserTierRule = PurchaserTierRule(tier=PurchaserTier.STANDARD)
    recurring_share: float = 0.6  # of future opportunities; the rest is market expansion

    def tier_for(self, purchaser: str) -> PurchaserTierRule:
        name = (purchaser or "").lower()
        for rule in self.purchaser_tiers:
            if any(kw.lower() in name for kw in rule.keywords):
                return rule
        return self.default_tier


class ROIPolicy(BaseModel):
    """Scenario stresses applied to benefit and cost before recomputing ROI."""
    optimistic_benefit: float = 1.15
    optimistic_cost: float = 0.95
    pessimistic_benefit: float = 0.85
    pessimistic_cost: float = 1.10
    scenario_probabilities: tuple[float, float, float] = (0.2, 0.6, 0.2)
    break_even_horizon_multiplier: int = 2


class CashFlowPolicy(BaseModel):
    """Cash flow projection defaults."""
    front_load_share: float = Field(default=0.6, gt=0, lt=1)
    liquidity_high_ratio: float = 0.5
    liquidity_medium_ratio: float = 0.3
    income_concentration_limit: float = 0.5
    # Volatility factor fires when std-dev of net flow > ratio × |mean net flow|
    volatility_ratio: float = 0.5

    # Scenario re-projections: (revenue factor, cost factor)
    optimistic_factors: tuple[float, float] = (1.10, 0.95)
    pessimistic_factors: tuple[float, float] = (0.90, 1.10)
    # (optimistic, neutral, pessimistic)
    scenario_probabilities: tuple[float, float, float] = (0.2, 0.6, 0.2)

    @model_validator(mode="after")
    def _probabilities_sum_to_one(self) -> "CashFlowPolicy":
        if not math.isclose(sum(self.scenario_probabilities), 1.0, abs_tol=1e-12):
            raise ValueError("scenario probabilities must sum to 1.0")
        return self


class PredictionPolicy(BaseModel):
    """ROI predictor weights, scenario split and confidence components."""
    premium_tier_bonus: float = 0.30
    high_complexity_bonus: float = 0.40
    industry_growth_threshold: float = 0.10
    industry_growth_bonus: float = 0.20
    historical_roi_threshold: float = 40.0
    historical_performance_bonus: float = 0.25
    satisfaction_threshold: float = 0.85
    satisfaction_bonus: float = 0.20
    competition_penalties: dict[Level, float] = {
        Level.LOW: 0.0,
        Level.MEDIUM: 0.10,
        Level.HIGH: 0.20,
    }
    damping: float = 0.5

    optimistic_multiplier: float = 1.3
    pessimistic_multiplier: float = 0.7
    # (optimistic, most likely, pessimistic)
    scenario_probabilities: tuple[float, float, float] = (0.2, 0.6, 0.2)

    confidence_base: float = 0.50
    confidence_market_data: float = 0.10
    confidence_historical_data: float = 0.10
    confidence_completeness: float = 0.15
    confidence_large_project: float = 0.05
    large_project_threshold: float = 5_000_000.0

    @model_validator(mode="after")
    def _probabilities_sum_to_one(self) -> "PredictionPolicy":
        if not math.isclose(sum(self.scenario_probabilities), 1.0, abs_tol=1e-12):
            raise ValueError("scenario probabilities must sum to 1.0")
        return self


class AdvisoryPolicy(BaseModel):
    """Thresholds used by the recommendation and risk rule tables."""
    strong_bid_roi: float = 50.0
    good_bid_roi: float = 25.0
    marginal_bid_roi: float = 10.0
    overrun_budget_ratio: float = 0.9
    labor_share_limit: float = 0.7
    low_confidence: float = 0.6
    high_confidence: float = 0.8
    peak_funding_ratio: float = 0.3
    future_dependency_ratio: float = 0.5


class EconomicsPolicy(BaseModel):
    """Everything the pipeline needs besides the tender and its parameters."""
    cost: CostPolicy = Field(default_factory=CostPolicy)
    benefit: BenefitPolicy = Field(default_factory=BenefitPolicy)
    roi: ROIPolicy = Field(default_factory=ROIPolicy)
    cash_flow: CashFlowPolicy = Field(default_factory=CashFlowPolicy)
    prediction: PredictionPolicy = Field(default_factory=PredictionPolicy)
    advisory: AdvisoryPolicy = Field(default_factory=AdvisoryPolicy)


# ── Store class ──────────────────────────────────────────


class PolicyStore:
    """
    Loads the economics policy from MongoDB. Falls back to defaults on
    first run or when the backend is in-memory.  Cached after first load
    for the lifetime of the store.
    """

    _POLICY_KEY = "economics"

    def __init__(self, settings: Settings | None = None, collection: Any = None):
        self.settings = settings or get_settings()
        self._collection = collection
        self._cache: EconomicsPolicy | None = None

    def _get_collection(self):
        if self._collection is not None:
            return self._collection
        if self.settings.persistence_backend != "mongo":
            return None
        try:
            from pymongo import MongoClient
            client = MongoClient(self.settings.mongodb_uri)
            self._collection = client[self.settings.mongodb_database].policy_config
        except Exception as e:
            logger.warning(f"MongoDB not available, using default policy: {e}")
            self._collection = None
        return self._collection

    def get_policy(self) -> EconomicsPolicy:
        """Load from MongoDB or return defaults."""
        if self._cache is not None:
            return self._cache

        collection = self._get_collection()
        if collection is not None:
            try:
                doc = collection.find_one({"policy": self._POLICY_KEY})
                if doc and "config" in doc:
                    self._cache = EconomicsPolicy(**doc["config"])
                    return self._cache
            except Exception as e:
                logger.warning(f"Failed loading policy from MongoDB: {e}")

        self._cache = EconomicsPolicy()
        return self._cache

    def update_policy(self, config_dict: dict[str, Any]) -> bool:
        """Admin: validate and save/update the policy document."""
        policy = EconomicsPolicy(**config_dict)
        collection = self._get_collection()
        if collection is None:
            logger.error("Cannot update policy — MongoDB not available")
            return False

        collection.update_one(
            {"policy": self._POLICY_KEY},
            {"$set": {"policy": self._POLICY_KEY, "config": policy.model_dump(mode="json")}},
            upsert=True,
        )
        # Invalidate cache
        self._cache = None
        logger.info("Updated economics policy in MongoDB")
        return True
