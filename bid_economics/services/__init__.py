"""Services — EvaluationService."""

from bid_economics.services.evaluation_service import EvaluationService

__all__ = ["EvaluationService"]
