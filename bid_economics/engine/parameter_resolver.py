"""
Parameter Resolver — merges caller overrides onto domain defaults.

Pure: no I/O, no logging.  The first invalid field is reported as a
ValidationError carrying its dotted camelCase path, e.g.
``marketConditions.competitionLevel``.
"""

from __future__ import annotations

import math
from typing import Any, Mapping, Optional, Union

import pydantic
from pydantic.alias_generators import to_camel

from bid_economics.errors import ValidationError
from bid_economics.models.enums import CostDistributionType
from bid_economics.models.schemas import AnalysisParameters, Tender

Overrides = Union[Mapping[str, Any], AnalysisParameters, None]

_TOP_LEVEL_LEAVES = (
    "labor_rate_per_day",
    "project_duration_months",
    "team_size",
    "technology_complexity",
    "risk_level",
    "discount_rate",
)
_MARKET_LEAVES = (
    "economic_growth_rate",
    "industry_growth_rate",
    "competition_level",
    "market_maturity",
)
_HISTORICAL_LEAVES = (
    "similar_projects_roi",
    "client_satisfaction_rate",
    "project_success_rate",
)
OPTIONAL_LEAF_COUNT = len(_TOP_LEVEL_LEAVES) + len(_MARKET_LEAVES) + len(_HISTORICAL_LEAVES)


def _field_path(loc: tuple) -> str:
    parts = []
    for part in loc:
        if isinstance(part, str) and "_" in part:
            part = "similarProjectsROI" if part == "similar_projects_roi" else to_camel(part)
        parts.append(str(part))
    return ".".join(parts) or "parameters"


def resolve(overrides: Overrides = None) -> AnalysisParameters:
    """Return a complete, validated parameter set."""
    if overrides is None:
        params = AnalysisParameters()
    elif isinstance(overrides, AnalysisParameters):
        params = overrides
    elif isinstance(overrides, Mapping):
        try:
            params = AnalysisParameters.model_validate(dict(overrides))
        except pydantic.ValidationError as e:
            first = e.errors()[0]
            raise ValidationError(_field_path(tuple(first["loc"])), first["msg"]) from e
    else:
        raise ValidationError(
            "parameters", f"expected a mapping of overrides, got {type(overrides).__name__}"
        )

    distribution = params.cost_distribution
    if distribution.type == CostDistributionType.CUSTOM:
        if len(distribution.monthly_percentages) != params.project_duration_months:
            raise ValidationError(
                "costDistribution.monthlyPercentages",
                f"expected {params.project_duration_months} monthly percentages, "
                f"got {len(distribution.monthly_percentages)}",
            )
    return params


def parameter_completeness(params: AnalysisParameters) -> float:
    """Fraction of the optional leaf fields the caller actually supplied."""
    supplied = sum(1 for name in _TOP_LEVEL_LEAVES if name in params.model_fields_set)
    if "market_conditions" in params.model_fields_set:
        supplied += sum(
            1 for name in _MARKET_LEAVES if name in params.market_conditions.model_fields_set
        )
    if "historical_data" in params.model_fields_set:
        supplied += sum(
            1 for name in _HISTORICAL_LEAVES if name in params.historical_data.model_fields_set
        )
    return supplied / OPTIONAL_LEAF_COUNT


def market_data_supplied(params: AnalysisParameters) -> bool:
    return (
        "market_conditions" in params.model_fields_set
        and bool(params.market_conditions.model_fields_set)
    )


def historical_data_supplied(params: AnalysisParameters) -> bool:
    return (
        "historical_data" in params.model_fields_set
        and bool(params.historical_data.model_fields_set)
    )


def validate_tender(tender: Tender) -> float:
    """Check the tender can be analysed; returns its budget."""
    budget: Optional[float] = tender.budget
    if budget is None:
        raise ValidationError("budget", "tender has no budget")
    if not math.isfinite(budget):
        raise ValidationError("budget", f"budget must be finite, got {budget}")
    if budget <= 0:
        raise ValidationError("budget", f"budget must be positive, got {budget}")
    return budget
