"""
FastAPI application factory and API package.

Run with:
    uvicorn bid_economics.api:app --reload --port 8000

Or via main.py:
    python -m bid_economics --serve
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from bid_economics.api.routes import cost_benefit_router, health_router, tender_router
from bid_economics.config import get_settings
from bid_economics.errors import BatchLimitError, TenderNotFoundError, ValidationError
from bid_economics.services.evaluation_service import EvaluationService

logger = logging.getLogger(__name__)


def create_app(service: Optional[EvaluationService] = None) -> FastAPI:
    """Application factory — create and configure the FastAPI instance."""
    settings = get_settings()

    application = FastAPI(
        title="Bid Economics API",
        description="Cost-benefit, cash-flow and ROI prediction for public tenders",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )
    application.state.service = service or EvaluationService(settings)

    # CORS: allow the dashboard (adjust origins in production)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Error mapping ────────────────────────────────────

    @application.exception_handler(ValidationError)
    async def validation_error(request: Request, exc: ValidationError):
        return JSONResponse(status_code=422, content=exc.to_dict())

    @application.exception_handler(TenderNotFoundError)
    async def tender_not_found(request: Request, exc: TenderNotFoundError):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @application.exception_handler(BatchLimitError)
    async def batch_too_large(request: Request, exc: BatchLimitError):
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    # Register route groups
    application.include_router(health_router, tags=["Health"])
    application.include_router(tender_router, prefix="/api/tenders", tags=["Tenders"])
    application.include_router(
        cost_benefit_router, prefix="/api/cost-benefit", tags=["Cost-Benefit"]
    )

    logger.info(f"Created {settings.app_name} API")
    return application


# Module-level instance for `uvicorn bid_economics.api:app`
app = create_app()
