"""Bid economics and ROI prediction for public tenders."""

__version__ = "0.1.0"
