"""Shared fixtures: the reference bank tender and a default engine."""

import pytest

from bid_economics.engine.parameter_resolver import resolve
from bid_economics.models.schemas import Tender
from bid_economics.orchestration.runner import BidEconomicsEngine
from bid_economics.rules.policy_config import EconomicsPolicy

REFERENCE_OVERRIDES = {
    "laborRatePerDay": 1000,
    "projectDurationMonths": 8,
    "teamSize": 6,
    "technologyComplexity": "HIGH",
    "riskLevel": "MEDIUM",
}


@pytest.fixture
def policy():
    return EconomicsPolicy()


@pytest.fixture
def bank_tender():
    return Tender(
        id="T-REF",
        title="Core banking data platform",
        budget=2_000_000,
        purchaser="City Commercial Bank",
    )


@pytest.fixture
def plain_tender():
    return Tender(id="T-PLAIN", title="Warehouse tracking", budget=1_000_000, purchaser="Eastern Logistics")


@pytest.fixture
def reference_params():
    return resolve(REFERENCE_OVERRIDES)


@pytest.fixture
def engine():
    return BidEconomicsEngine()


@pytest.fixture
def reference_overrides():
    return dict(REFERENCE_OVERRIDES)
