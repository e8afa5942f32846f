"""
Batch & comparison — fan tenders out over a thread pool and rank results.

Each tender runs in isolation: a failure becomes a BatchItemError for that
tender only.  Results are gathered from the futures after all of them
finish and merged in input order, so there is no shared accumulator.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Optional, Sequence, Union

from bid_economics.engine.parameter_resolver import Overrides
from bid_economics.errors import EngineError
from bid_economics.models.schemas import (
    BatchItemError,
    BatchResult,
    BatchSummary,
    CostBenefitReport,
    RankingEntry,
    Tender,
)
from bid_economics.orchestration.runner import BidEconomicsEngine

logger = logging.getLogger(__name__)

ItemResult = Union[CostBenefitReport, BatchItemError]


def item_error(tender_id: str, exc: Exception) -> BatchItemError:
    return BatchItemError(
        tender_id=tender_id,
        error_type=type(exc).__name__,
        field=getattr(exc, "field", None),
        message=getattr(exc, "message", None) or str(exc),
    )


def _analyze_one(engine: BidEconomicsEngine, tender: Tender, overrides: Overrides) -> ItemResult:
    try:
        return engine.analyze(tender, overrides)
    except EngineError as e:
        logger.warning(f"Tender {tender.id} failed: {e}")
        return item_error(tender.id, e)
    except Exception as e:
        logger.exception(f"Tender {tender.id} failed unexpectedly")
        return item_error(tender.id, e)


def summarize(results: dict[str, ItemResult]) -> BatchSummary:
    success = sum(1 for r in results.values() if isinstance(r, CostBenefitReport))
    return BatchSummary(success=success, failure=len(results) - success, total=len(results))


def analyze_batch(
    tenders: Sequence[Tender],
    overrides: Overrides = None,
    *,
    engine: Optional[BidEconomicsEngine] = None,
    max_workers: int = 4,
) -> BatchResult:
    """Analyse every tender independently; repeated ids are analysed once."""
    engine = engine or BidEconomicsEngine()

    unique: dict[str, Tender] = {}
    for tender in tenders:
        unique.setdefault(tender.id, tender)
    if not unique:
        return BatchResult()

    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(unique)))) as pool:
        futures = {
            tender_id: pool.submit(_analyze_one, engine, tender, overrides)
            for tender_id, tender in unique.items()
        }
        wait(futures.values())

    results = {tender_id: future.result() for tender_id, future in futures.items()}
    summary = summarize(results)
    logger.info(
        f"Batch complete: {summary.success} succeeded, {summary.failure} failed "
        f"of {summary.total}"
    )
    return BatchResult(results=results, summary=summary)


# ── Comparison ───────────────────────────────────────────


def rank_reports(reports: Sequence[CostBenefitReport]) -> list[RankingEntry]:
    """Realistic ROI descending, then lower total cost, then tender id."""
    ordered = sorted(
        reports,
        key=lambda r: (-r.roi_analysis.realistic, r.cost_analysis.total_cost, r.tender_id),
    )
    return [
        RankingEntry(
            rank=i,
            tender_id=r.tender_id,
            title=r.tender_title,
            roi=r.roi_analysis.realistic,
            total_cost=r.cost_analysis.total_cost,
        )
        for i, r in enumerate(ordered, start=1)
    ]


def compare(
    items: Sequence[Union[CostBenefitReport, Tender]],
    overrides: Overrides = None,
    *,
    engine: Optional[BidEconomicsEngine] = None,
) -> list[RankingEntry]:
    """
    Rank tenders by expected return.  Reports are used as-is; bare
    tenders are analysed on demand.  A tender that cannot be analysed
    raises instead of silently dropping out of the ranking.
    """
    reports: list[CostBenefitReport] = []
    for item in items:
        if isinstance(item, CostBenefitReport):
            reports.append(item)
        else:
            engine = engine or BidEconomicsEngine()
            reports.append(engine.analyze(item, overrides))
    return rank_reports(reports)
