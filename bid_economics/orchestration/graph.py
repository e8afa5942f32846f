"""
LangGraph State Machine — the per-tender economics pipeline.

    START ─┬─ cost_model ────┬─ cash_flow → roi_analyzer → roi_predictor → assemble_report → END
           └─ benefit_model ─┘

Cost and benefit fan out from START and fan back in at cash_flow, which
waits for both.  Every node is a thin wrapper over a pure stage function
and returns only the fields it owns; LangGraph merges them.
"""

from __future__ import annotations

from typing import Any

from langgraph.graph import StateGraph, START, END

from bid_economics.engine.benefit_model import compute_benefit
from bid_economics.engine.cash_flow import cash_flow_warnings, project_cash_flow
from bid_economics.engine.cost_model import compute_cost
from bid_economics.engine.roi_analyzer import (
    compute_financial_metrics,
    compute_roi,
    compute_sensitivity,
    roi_warnings,
)
from bid_economics.engine.roi_predictor import predict
from bid_economics.models.schemas import CostBenefitReport
from bid_economics.models.state import AnalysisState
from bid_economics.rules.advisory_rules import AdvisoryContext, assess_risk


# ── Nodes ────────────────────────────────────────────────


def cost_model(state: AnalysisState) -> dict[str, Any]:
    return {"cost": compute_cost(state.tender, state.params, state.policy.cost)}


def benefit_model(state: AnalysisState) -> dict[str, Any]:
    return {"benefit": compute_benefit(state.tender, state.params, state.policy.benefit)}


def cash_flow(state: AnalysisState) -> dict[str, Any]:
    analysis = project_cash_flow(
        state.tender, state.params, state.cost, state.benefit, state.policy.cash_flow
    )
    return {"cash_flow": analysis, "warnings": cash_flow_warnings(analysis)}


def roi_analyzer(state: AnalysisState) -> dict[str, Any]:
    sensitivity = compute_sensitivity(state.tender, state.params, state.policy)
    roi = compute_roi(
        state.cost, state.benefit, state.cash_flow, state.params, state.policy.roi,
        sensitivity=sensitivity,
    )
    return {
        "roi": roi,
        "financial_metrics": compute_financial_metrics(state.cost, state.benefit, state.tender),
        "warnings": roi_warnings(roi, state.cost),
    }


def roi_predictor(state: AnalysisState) -> dict[str, Any]:
    prediction = predict(
        state.roi, state.params, state.tender, state.cost, state.benefit,
        state.cash_flow, state.policy,
    )
    return {"prediction": prediction}


def assemble_report(state: AnalysisState) -> dict[str, Any]:
    context = AdvisoryContext(
        tender=state.tender,
        params=state.params,
        cost=state.cost,
        benefit=state.benefit,
        cash_flow=state.cash_flow,
        adjusted_roi=state.prediction.adjusted_roi,
        confidence=state.prediction.confidence_level,
        policy=state.policy.advisory,
    )
    report = CostBenefitReport(
        tender_id=state.tender.id,
        tender_title=state.tender.title,
        parameters=state.params,
        cost_analysis=state.cost,
        benefit_analysis=state.benefit,
        roi_analysis=state.roi,
        cash_flow_analysis=state.cash_flow,
        roi_prediction=state.prediction,
        financial_metrics=state.financial_metrics,
        risk_assessment=assess_risk(context),
        warnings=tuple(state.warnings),
    )
    return {"report": report}


# ── Build the graph ──────────────────────────────────────


def build_graph():
    """
    Construct and compile the economics state machine.
    Returns a compiled graph ready to invoke.
    """
    graph = StateGraph(AnalysisState)

    # ── Add nodes ────────────────────────────────────────
    graph.add_node("cost_model", cost_model)
    graph.add_node("benefit_model", benefit_model)
    graph.add_node("cash_flow", cash_flow)
    graph.add_node("roi_analyzer", roi_analyzer)
    graph.add_node("roi_predictor", roi_predictor)
    graph.add_node("assemble_report", assemble_report)

    # ── Add edges ────────────────────────────────────────

    # Fan-out: cost and benefit share no state
    graph.add_edge(START, "cost_model")
    graph.add_edge(START, "benefit_model")

    # Fan-in: cash flow waits for both
    graph.add_edge(["cost_model", "benefit_model"], "cash_flow")

    graph.add_edge("cash_flow", "roi_analyzer")
    graph.add_edge("roi_analyzer", "roi_predictor")
    graph.add_edge("roi_predictor", "assemble_report")
    graph.add_edge("assemble_report", END)

    return graph.compile()
