"""Deduplicated, resumable downloader for book NFT cover images."""

from cover_collector.__version__ import __version__
from cover_collector.exceptions import (
    ConfigError,
    CoverCollectorError,
    FetchError,
    InvalidPolicyError,
    ParseError,
)
from cover_collector.models import AssetDetails, AssetOutcome, AssetRecord, RunSummary
from cover_collector.orchestrator import CoverFetchOrchestrator

__all__ = [
    "__version__",
    "CoverCollectorError",
    "ConfigError",
    "FetchError",
    "InvalidPolicyError",
    "ParseError",
    "AssetRecord",
    "AssetDetails",
    "AssetOutcome",
    "RunSummary",
    "CoverFetchOrchestrator",
]
