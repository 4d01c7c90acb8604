"""Data models for reconciliation."""

from .transaction import (
    BankTransaction,
    RecordedPayment,
    MatchedPair,
    ReconciliationWindow,
    ReconciliationResult,
    ReconciliationSummary,
    MATCH_TYPE_EXACT,
)

__all__ = [
    "BankTransaction",
    "RecordedPayment",
    "MatchedPair",
    "ReconciliationWindow",
    "ReconciliationResult",
    "ReconciliationSummary",
    "MATCH_TYPE_EXACT",
]
