"""
Bid Economics Engine — Main Entry Point

Analyse tenders directly (CLI):
    python -m bid_economics                  # bundled sample tenders
    python -m bid_economics tenders.json     # your own tender list

Run as an API server:
    python -m bid_economics --serve
    # or: uvicorn bid_economics.api:app --reload --port 8000

Or import and run programmatically:
    from bid_economics.main import run
    result = run("path/to/tenders.json")
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime, timezone
from pathlib import Path

from bid_economics.config import get_settings
from bid_economics.models.schemas import BatchResult, BatchItemError
from bid_economics.services.evaluation_service import EvaluationService
from bid_economics.utils.logger import setup_logging

SAMPLE_TENDERS = Path(__file__).resolve().parent / "data" / "sample_tenders.json"


def run(file_path: str = "") -> BatchResult:
    """Analyse every tender in the file, rank the successes, return the batch."""
    settings = get_settings()
    setup_logging(settings.log_level)
    logger = logging.getLogger(__name__)

    logger.info("=" * 60)
    logger.info("  BID ECONOMICS ENGINE")
    logger.info(f"  Backend: {settings.persistence_backend} | Started: {datetime.now(timezone.utc).isoformat()}")
    logger.info("=" * 60)

    service = EvaluationService(settings)
    service.tenders.load_json(file_path or SAMPLE_TENDERS)
    tender_ids = [t.id for t in service.list_tenders()][: settings.batch_max_size]

    result = service.analyze_batch(tender_ids)
    _print_summary(service, result)
    return result


def _print_summary(service: EvaluationService, result: BatchResult) -> None:
    """Print a human-readable summary of the batch."""
    logger = logging.getLogger(__name__)

    logger.info("")
    logger.info("-" * 60)
    logger.info("  BATCH RESULT SUMMARY")
    logger.info("-" * 60)
    logger.info(f"  Analysed:       {result.summary.total}")
    logger.info(f"  Succeeded:      {result.summary.success}")
    logger.info(f"  Failed:         {result.summary.failure}")

    for tender_id, item in result.results.items():
        if isinstance(item, BatchItemError):
            logger.info(f"    {tender_id} | {item.error_type} | {item.field or '-'} | {item.message}")

    successes = [tid for tid, item in result.results.items() if not isinstance(item, BatchItemError)]
    if successes:
        logger.info("-" * 60)
        logger.info("  RANKING (realistic ROI)")
        for entry in service.compare(successes):
            logger.info(
                f"    #{entry.rank} {entry.tender_id} | {entry.title} | "
                f"ROI {entry.roi:.1f}% | cost {entry.total_cost:,.2f}"
            )

        for tender_id in successes:
            report = result.results[tender_id]
            prediction = report.roi_prediction
            logger.info("")
            logger.info(f"  {tender_id}: adjusted ROI {prediction.adjusted_roi:.1f}% "
                        f"(confidence {prediction.confidence_level:.0%}, "
                        f"risk {report.risk_assessment.level.value})")
            for line in prediction.recommendations:
                logger.info(f"    - {line}")

    logger.info("-" * 60)
    logger.info("")


def serve(host: str = "", port: int = 0) -> None:
    """Start the FastAPI server."""
    import uvicorn

    settings = get_settings()
    setup_logging(settings.log_level)
    logger = logging.getLogger(__name__)
    host = host or settings.api_host
    port = port or settings.api_port
    logger.info(f"Starting API server on {host}:{port}")
    uvicorn.run("bid_economics.api:app", host=host, port=port, reload=settings.debug)


if __name__ == "__main__":
    if "--serve" in sys.argv:
        serve()
    else:
        file_arg = sys.argv[1] if len(sys.argv) > 1 else ""
        run(file_arg)
