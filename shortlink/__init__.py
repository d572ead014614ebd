"""Core business logic for the shortlink service."""

from .shortcode import ShortCodeGenerator
from .expiry import ExpiryPolicy
from .clicks import ClickAccountant
from .cleanup import CleanupSweeper, ExpirySweepTask
from .stats import StatsAggregator
from .service import ShortenerService, build_service

__all__ = [
    "ShortCodeGenerator",
    "ExpiryPolicy",
    "ClickAccountant",
    "CleanupSweeper",
    "ExpirySweepTask",
    "StatsAggregator",
    "ShortenerService",
    "build_service",
]
