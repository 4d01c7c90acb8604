"""Matching engine and strategies."""

from .engine import ReconciliationEngine
from .matcher import ReconciliationMatcher, compute_window, filter_credits
from .strategies import (
    MatchingStrategy,
    FirstEligibleStrategy,
    ClosestDateStrategy,
    build_strategy,
)

__all__ = [
    "ReconciliationEngine",
    "ReconciliationMatcher",
    "compute_window",
    "filter_credits",
    "MatchingStrategy",
    "FirstEligibleStrategy",
    "ClosestDateStrategy",
    "build_strategy",
]
