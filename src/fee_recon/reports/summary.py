"""Totals and counts derived from a reconciliation result."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from ..models.transaction import ReconciliationResult, ReconciliationSummary


def total_matched(result: ReconciliationResult) -> Decimal:
    """Sum of statement amounts over matched pairs."""
    return result.total_matched


def total_unmatched_bank(result: ReconciliationResult) -> Decimal:
    """Sum of statement amounts with no recorded payment."""
    return result.total_unmatched_bank


def total_unmatched_recorded(result: ReconciliationResult) -> Decimal:
    """Sum of recorded payments not seen on the statement."""
    return result.total_unmatched_recorded


def summarize(
    result: ReconciliationResult,
    statement_filename: str = "",
    payments_source: str = "",
    processing_time: float = 0.0,
    tie_break: str = "first_eligible",
    config_file_used: Optional[str] = None,
) -> ReconciliationSummary:
    """
    Build the summary for a reconciliation result.

    Args:
        result: Reconciliation result
        statement_filename: Name of the uploaded statement
        payments_source: Description of where payments came from
        processing_time: Time taken in seconds
        tie_break: Tie-break policy the matcher used
        config_file_used: Path of the loaded configuration file, if any

    Returns:
        Reconciliation summary object
    """
    matched_count = len(result.matched)
    window = result.window

    return ReconciliationSummary(
        statement_filename=statement_filename,
        payments_source=payments_source,
        reconciliation_date=datetime.now(),
        window_start=window.start if window else None,
        window_end=window.end if window else None,
        total_credits=matched_count + len(result.unmatched_bank),
        total_recorded_payments=matched_count + len(result.unmatched_recorded),
        excluded_debits=result.excluded_debits,
        matched_count=matched_count,
        unmatched_bank_count=len(result.unmatched_bank),
        unmatched_recorded_count=len(result.unmatched_recorded),
        total_matched=total_matched(result),
        total_unmatched_bank=total_unmatched_bank(result),
        total_unmatched_recorded=total_unmatched_recorded(result),
        tie_break=tie_break,
        processing_time_seconds=processing_time,
        config_file_used=config_file_used,
    )
