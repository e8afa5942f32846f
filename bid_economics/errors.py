"""
Typed errors raised by the economics engine.

ValidationError is the only error a caller should expect from a single
analysis. Degenerate-but-defined results are not errors; they are
reported as AnalysisWarning entries on the report (see models.schemas).
"""

from __future__ import annotations


class EngineError(Exception):
    """Base class for every error the engine raises."""


class ValidationError(EngineError):
    """A parameter or tender field is malformed or out of range."""

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")

    def to_dict(self) -> dict[str, str]:
        return {"field": self.field, "message": self.message}


class TenderNotFoundError(EngineError):
    """The tender repository has no record for the requested id."""

    def __init__(self, tender_id: str):
        self.tender_id = tender_id
        super().__init__(f"Tender {tender_id} not found")


class BatchLimitError(EngineError):
    """A batch request names more tenders than the configured maximum."""

    def __init__(self, size: int, limit: int):
        self.size = size
        self.limit = limit
        super().__init__(f"Batch of {size} tenders exceeds the limit of {limit}")
