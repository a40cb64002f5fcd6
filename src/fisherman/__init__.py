"""Fisherman: explainable phishing risk scoring for URLs and page content."""

__version__ = "1.0.0"
