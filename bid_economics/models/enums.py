from enum import Enum


class TenderStatus(str, Enum):
    ACTIVE = "ACTIVE"
    CLOSED = "CLOSED"
    AWARDED = "AWARDED"


class Level(str, Enum):
    """Three-step scale shared by complexity, risk and competition."""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


# Distinct names at the call sites, same value set.
TechnologyComplexity = Level
RiskLevel = Level
CompetitionLevel = Level


class MarketMaturity(str, Enum):
    EMERGING = "EMERGING"
    GROWING = "GROWING"
    MATURE = "MATURE"
    DECLINING = "DECLINING"


class PurchaserTier(str, Enum):
    FINANCIAL = "FINANCIAL"
    GOVERNMENT = "GOVERNMENT"
    STANDARD = "STANDARD"


class PaymentScheduleType(str, Enum):
    MILESTONE = "MILESTONE"
    MONTHLY = "MONTHLY"


class CostDistributionType(str, Enum):
    FRONT_LOADED = "FRONT_LOADED"
    BACK_LOADED = "BACK_LOADED"
    UNIFORM = "UNIFORM"
    CUSTOM = "CUSTOM"


class WarningCode(str, Enum):
    NON_POSITIVE_COST = "NON_POSITIVE_COST"
    NEVER_BREAKS_EVEN = "NEVER_BREAKS_EVEN"
    NO_PAYBACK_WITHIN_HORIZON = "NO_PAYBACK_WITHIN_HORIZON"
    IRR_UNDEFINED = "IRR_UNDEFINED"
