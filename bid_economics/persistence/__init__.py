"""Persistence — MongoClient, ReportRepository, TenderRepository."""

from bid_economics.persistence.mongo_client import MongoClient
from bid_economics.persistence.report_repository import (
    MongoReportRepository,
    ReportRepository,
    get_report_repository,
)
from bid_economics.persistence.tender_repository import TenderRepository

__all__ = [
    "MongoClient",
    "MongoReportRepository",
    "ReportRepository",
    "TenderRepository",
    "get_report_repository",
]
