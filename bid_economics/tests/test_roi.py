"""
Tests: ROI analyzer, ROI predictor and advisory rule tables.

Run with:
    pytest bid_economics/tests/test_roi.py -v
"""

import pytest

from bid_economics.engine.benefit_model import compute_benefit
from bid_economics.engine.cash_flow import project_cash_flow
from bid_economics.engine.cost_model import compute_cost
from bid_economics.engine.parameter_resolver import resolve
from bid_economics.engine.roi_analyzer import (
    break_even_month,
    compute_financial_metrics,
    compute_roi,
    compute_sensitivity,
    roi_percent,
    roi_warnings,
)
from bid_economics.engine.roi_predictor import predict
from bid_economics.models.enums import Level, WarningCode
from bid_economics.models.schemas import Tender
from bid_economics.rules.advisory_rules import AdvisoryContext, assess_risk, fired_keys
from bid_economics.rules.policy_config import EconomicsPolicy, PredictionPolicy


def _stages(tender, params, policy):
    cost = compute_cost(tender, params, policy.cost)
    benefit = compute_benefit(tender, params, policy.benefit)
    cf = project_cash_flow(tender, params, cost, benefit, policy.cash_flow)
    roi = compute_roi(cost, benefit, cf, params, policy.roi)
    return cost, benefit, cf, roi


def _context(tender, params, policy, adjusted_roi=20.0, confidence=0.7):
    cost, benefit, cf, _ = _stages(tender, params, policy)
    return AdvisoryContext(
        tender=tender,
        params=params,
        cost=cost,
        benefit=benefit,
        cash_flow=cf,
        adjusted_roi=adjusted_roi,
        confidence=confidence,
        policy=policy.advisory,
    )


class TestROIAnalyzer:
    def test_realistic_formula(self, bank_tender, reference_params, policy):
        cost, benefit, _, roi = _stages(bank_tender, reference_params, policy)
        b, c = benefit.total_benefit, cost.total_cost
        assert roi.realistic == pytest.approx((b - c) / c * 100, abs=1e-9)

    def test_scenario_ordering(self, bank_tender, reference_params, policy):
        _, _, _, roi = _stages(bank_tender, reference_params, policy)
        assert roi.optimistic >= roi.realistic >= roi.pessimistic

    def test_scenario_stresses(self, bank_tender, reference_params, policy):
        cost, benefit, _, roi = _stages(bank_tender, reference_params, policy)
        b, c = benefit.total_benefit, cost.total_cost
        assert roi.optimistic == pytest.approx((b * 1.15 - c * 0.95) / (c * 0.95) * 100)
        assert roi.pessimistic == pytest.approx((b * 0.85 - c * 1.10) / (c * 1.10) * 100)
        assert roi.scenarios.neutral.probability == pytest.approx(0.6)

    def test_break_even_matches_payback(self, bank_tender, reference_params, policy):
        _, _, cf, roi = _stages(bank_tender, reference_params, policy)
        assert roi.break_even_point == 8 == cf.payback_period

    def test_never_breaks_even(self, policy):
        tender = Tender(id="T-LOSS", budget=500_000)
        cost, _, _, roi = _stages(tender, resolve(None), policy)
        assert roi.break_even_point is None
        codes = [w.code for w in roi_warnings(roi, cost)]
        assert codes == [WarningCode.NEVER_BREAKS_EVEN]

    def test_break_even_month_helper(self):
        assert break_even_month([-5.0, -1.0, 2.0], horizon=6) == 3
        assert break_even_month([-5.0, 0.0], horizon=4) == 2
        assert break_even_month([-5.0, -3.0], horizon=4) is None
        assert break_even_month([], horizon=4) is None

    def test_non_positive_cost(self, bank_tender, reference_params, policy):
        cost, benefit, cf, _ = _stages(bank_tender, reference_params, policy)
        zero = cost.model_copy(update={"total_cost": 0.0})
        roi = compute_roi(zero, benefit, cf, reference_params, policy.roi)
        assert (roi.optimistic, roi.realistic, roi.pessimistic) == (0.0, 0.0, 0.0)
        codes = [w.code for w in roi_warnings(roi, zero)]
        assert WarningCode.NON_POSITIVE_COST in codes

    def test_roi_percent(self):
        assert roi_percent(150.0, 100.0) == pytest.approx(50.0)
        assert roi_percent(150.0, 0.0) == 0.0
        assert roi_percent(150.0, -10.0) == 0.0


class TestSensitivity:
    def test_driver_directions(self, bank_tender, reference_params, policy):
        deltas = {s.factor: s.roi_delta for s in compute_sensitivity(bank_tender, reference_params, policy)}
        assert set(deltas) == {"Budget", "Labor rate", "Project duration", "Team size"}
        assert deltas["Budget"] > 0
        assert deltas["Labor rate"] < 0
        assert deltas["Project duration"] < 0
        assert deltas["Team size"] < 0

    def test_inputs_untouched(self, bank_tender, reference_params, policy):
        compute_sensitivity(bank_tender, reference_params, policy)
        assert bank_tender.budget == 2_000_000
        assert reference_params.labor_rate_per_day == 1000


class TestFinancialMetrics:
    def test_reference(self, bank_tender, reference_params, policy):
        cost, benefit, _, _ = _stages(bank_tender, reference_params, policy)
        m = compute_financial_metrics(cost, benefit, bank_tender)
        c = cost.total_cost
        assert m.profit_margin == pytest.approx((2_000_000 - c) / 2_000_000 * 100)
        assert m.return_on_investment == pytest.approx((2_000_000 - c) / c * 100)
        assert m.cost_efficiency_ratio == pytest.approx(c / 2_000_000)
        assert m.budget_utilization_rate == pytest.approx(c / 2_000_000 * 100)


class TestROIPredictor:
    def _predict(self, tender, params, policy):
        cost, benefit, cf, roi = _stages(tender, params, policy)
        return roi, predict(roi, params, tender, cost, benefit, cf, policy)

    def test_reference_adjustment(self, bank_tender, reference_params, policy):
        roi, prediction = self._predict(bank_tender, reference_params, policy)
        # premium +0.30, HIGH complexity +0.40, MEDIUM competition -0.10
        assert prediction.adjustment_factor == pytest.approx(1.3)
        assert prediction.base_roi == roi.realistic
        assert prediction.adjusted_roi == pytest.approx(roi.realistic * 1.3)
        impacts = {f.factor: f.impact for f in prediction.key_factors}
        assert impacts == {
            "Premium purchaser": pytest.approx(0.30),
            "Technical complexity": pytest.approx(0.40),
            "Competition": pytest.approx(-0.10),
        }

    def test_scenarios(self, bank_tender, reference_params, policy):
        _, prediction = self._predict(bank_tender, reference_params, policy)
        s = prediction.scenarios
        assert s.optimistic.value == pytest.approx(prediction.adjusted_roi * 1.3)
        assert s.most_likely.value == prediction.adjusted_roi
        assert s.pessimistic.value == pytest.approx(prediction.adjusted_roi * 0.7)
        assert s.optimistic.probability + s.most_likely.probability + s.pessimistic.probability == 1.0

    def test_reference_confidence(self, bank_tender, reference_params, policy):
        _, prediction = self._predict(bank_tender, reference_params, policy)
        assert prediction.confidence_level == pytest.approx(0.5 + 0.15 * 5 / 13)

    def test_all_signals_and_full_confidence(self, policy):
        tender = Tender(id="T-BIG", budget=6_000_000, purchaser="National Insurance Group")
        params = resolve({
            "laborRatePerDay": 900,
            "projectDurationMonths": 10,
            "teamSize": 8,
            "technologyComplexity": "HIGH",
            "riskLevel": "LOW",
            "discountRate": 0.06,
            "marketConditions": {
                "economicGrowthRate": 0.05,
                "industryGrowthRate": 0.12,
                "competitionLevel": "LOW",
                "marketMaturity": "GROWING",
            },
            "historicalData": {
                "similarProjectsROI": [45.0, 55.0],
                "clientSatisfactionRate": 0.9,
                "projectSuccessRate": 0.95,
            },
        })
        _, prediction = self._predict(tender, params, policy)
        assert prediction.adjustment_factor == pytest.approx(1 + (0.3 + 0.4 + 0.2 + 0.25 + 0.2) * 0.5)
        assert prediction.confidence_level == pytest.approx(0.5 + 0.1 + 0.1 + 0.15 + 0.05)

    def test_high_competition_penalty(self, plain_tender, policy):
        params = resolve({"marketConditions": {"competitionLevel": "HIGH"}})
        _, prediction = self._predict(plain_tender, params, policy)
        assert prediction.adjustment_factor == pytest.approx(1 - 0.2 * 0.5)

    def test_confidence_is_clamped(self, bank_tender, reference_params):
        policy = EconomicsPolicy(prediction=PredictionPolicy(confidence_base=0.95))
        _, prediction = self._predict(
            bank_tender,
            resolve({"marketConditions": {"competitionLevel": "LOW"}}),
            policy,
        )
        assert prediction.confidence_level == 1.0

    def test_confidence_floor_is_zero(self, bank_tender, reference_params):
        policy = EconomicsPolicy(prediction=PredictionPolicy(confidence_base=-0.5))
        _, prediction = self._predict(bank_tender, reference_params, policy)
        assert prediction.confidence_level == 0.0

    def test_success_rate_does_not_move_the_factor(self, plain_tender, policy):
        base = resolve({"historicalData": {"clientSatisfactionRate": 0.5}})
        poor = resolve({"historicalData": {"clientSatisfactionRate": 0.5, "projectSuccessRate": 0.2}})
        _, without = self._predict(plain_tender, base, policy)
        _, with_rate = self._predict(plain_tender, poor, policy)
        assert with_rate.adjustment_factor == without.adjustment_factor
        assert with_rate.key_factors == without.key_factors
        assert with_rate.confidence_level > without.confidence_level

    def test_probabilities_must_sum_to_one(self):
        with pytest.raises(ValueError):
            PredictionPolicy(scenario_probabilities=(0.3, 0.6, 0.2))

    def test_reference_recommendations(self, bank_tender, reference_params, policy):
        _, prediction = self._predict(bank_tender, reference_params, policy)
        assert prediction.recommendations[0].startswith("Predicted ROI is high")
        assert len(prediction.recommendations) == 4


class TestAdvisoryRules:
    @pytest.mark.parametrize(
        "adjusted, band",
        [(75.0, "roi_strong"), (50.0, "roi_good"), (30.0, "roi_good"),
         (15.0, "roi_marginal"), (10.0, "roi_low"), (-5.0, "roi_low")],
    )
    def test_roi_bands(self, bank_tender, reference_params, policy, adjusted, band):
        keys = fired_keys(_context(bank_tender, reference_params, policy, adjusted_roi=adjusted))
        bands = [k for k in keys if k.startswith("roi_")]
        assert bands == [band]

    def test_reference_rules_fire_in_table_order(self, bank_tender, reference_params, policy):
        context = _context(bank_tender, reference_params, policy, adjusted_roi=98.0, confidence=0.55)
        assert fired_keys(context) == ["roi_strong", "cost_overrun", "low_confidence", "peak_funding"]

    def test_confidence_advisories(self, bank_tender, reference_params, policy):
        middle = fired_keys(_context(bank_tender, reference_params, policy, confidence=0.7))
        high = fired_keys(_context(bank_tender, reference_params, policy, confidence=0.85))
        assert "low_confidence" not in middle and "high_confidence" not in middle
        assert "high_confidence" in high

    def test_high_risk_and_no_payback(self, policy):
        tender = Tender(id="T-LOSS", budget=500_000)
        params = resolve({"riskLevel": "HIGH"})
        keys = fired_keys(_context(tender, params, policy))
        assert "high_risk" in keys
        assert "no_payback" in keys

    def test_labor_heavy(self, plain_tender, policy):
        params = resolve({"technologyComplexity": "LOW", "riskLevel": "LOW"})
        policy = policy.model_copy(update={
            "cost": policy.cost.model_copy(update={"management_overhead_ratio": 0.05}),
        })
        keys = fired_keys(_context(plain_tender, params, policy))
        assert "labor_heavy" in keys


class TestRiskAssessment:
    def test_reference_is_high(self, bank_tender, reference_params, policy):
        risk = assess_risk(_context(bank_tender, reference_params, policy))
        assert risk.level == Level.HIGH
        assert len(risk.factors) == 3
        assert len(risk.mitigation) == 3

    def test_two_factors_is_medium(self, plain_tender, policy):
        risk = assess_risk(_context(plain_tender, resolve(None), policy))
        assert risk.level == Level.MEDIUM
        assert len(risk.factors) == 2

    def test_comfortable_budget_is_low(self, policy):
        tender = Tender(id="T-EASY", budget=5_000_000, purchaser="Eastern Logistics")
        risk = assess_risk(_context(tender, resolve(None), policy))
        assert risk.level == Level.LOW
        assert risk.factors == ()
