"""
API routes — thin HTTP layer that delegates to the EvaluationService.

Routes:
  GET    /health                                  → API health check
  POST   /api/tenders                             → Register a tender
  GET    /api/tenders                             → List tenders
  DELETE /api/tenders/{tender_id}                 → Delete a tender and its reports
  POST   /api/cost-benefit/analyze/{tender_id}    → Run a new analysis
  GET    /api/cost-benefit/result/{tender_id}     → Latest report
  GET    /api/cost-benefit/history/{tender_id}    → All reports, newest first
  POST   /api/cost-benefit/batch-analyze          → Analyse several tenders
  POST   /api/cost-benefit/compare                → Rank tenders by ROI
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from bid_economics.models.schemas import (
    BatchResult,
    CostBenefitReport,
    RankingEntry,
    Tender,
)
from bid_economics.services.evaluation_service import EvaluationService

logger = logging.getLogger(__name__)

# ── Routers ──────────────────────────────────────────────
health_router = APIRouter()
tender_router = APIRouter()
cost_benefit_router = APIRouter()


def get_service(request: Request) -> EvaluationService:
    return request.app.state.service


# ── Request / response schemas ───────────────────────────


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AnalyzeRequest(_CamelModel):
    custom_parameters: Optional[dict[str, Any]] = None


class BatchAnalyzeRequest(_CamelModel):
    tender_ids: list[str] = Field(min_length=1)
    custom_parameters: Optional[dict[str, Any]] = None


class CompareRequest(_CamelModel):
    tender_ids: list[str] = Field(min_length=1)


class DeleteResponse(_CamelModel):
    tender_id: str
    reports_removed: int


# ── Health ───────────────────────────────────────────────


@health_router.get("/health")
def health_check():
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


# ── Tenders ──────────────────────────────────────────────


@tender_router.post("", response_model=Tender, status_code=201)
def create_tender(tender: Tender, service: EvaluationService = Depends(get_service)):
    return service.add_tender(tender)


@tender_router.get("", response_model=list[Tender])
def list_tenders(service: EvaluationService = Depends(get_service)):
    return service.list_tenders()


@tender_router.delete("/{tender_id}", response_model=DeleteResponse)
def delete_tender(tender_id: str, service: EvaluationService = Depends(get_service)):
    removed = service.delete_tender(tender_id)
    return DeleteResponse(tender_id=tender_id, reports_removed=removed)


# ── Cost-benefit analysis ────────────────────────────────


@cost_benefit_router.post("/analyze/{tender_id}", response_model=CostBenefitReport)
def analyze_tender(
    tender_id: str,
    body: Optional[AnalyzeRequest] = None,
    service: EvaluationService = Depends(get_service),
):
    overrides = body.custom_parameters if body else None
    return service.analyze(tender_id, overrides)


@cost_benefit_router.get("/result/{tender_id}", response_model=CostBenefitReport)
def get_result(tender_id: str, service: EvaluationService = Depends(get_service)):
    report = service.latest_report(tender_id)
    if report is None:
        raise HTTPException(status_code=404, detail=f"No analysis found for tender {tender_id}")
    return report


@cost_benefit_router.get("/history/{tender_id}", response_model=list[CostBenefitReport])
def get_history(tender_id: str, service: EvaluationService = Depends(get_service)):
    return service.report_history(tender_id)


@cost_benefit_router.post("/batch-analyze", response_model=BatchResult)
def batch_analyze(body: BatchAnalyzeRequest, service: EvaluationService = Depends(get_service)):
    return service.analyze_batch(body.tender_ids, body.custom_parameters)


@cost_benefit_router.post("/compare", response_model=list[RankingEntry])
def compare_tenders(body: CompareRequest, service: EvaluationService = Depends(get_service)):
    return service.compare(body.tender_ids)
