"""
Greedy matcher pairing statement credits with recorded payments.
Pure and synchronous: no I/O happens here.
"""

from datetime import timedelta
from typing import Iterable, Optional, Sequence
import logging

from ..models.transaction import (
    BankTransaction,
    RecordedPayment,
    MatchedPair,
    ReconciliationWindow,
    ReconciliationResult,
)
from .strategies import MatchingStrategy, FirstEligibleStrategy

logger = logging.getLogger(__name__)


def filter_credits(transactions: Iterable[BankTransaction]) -> list[BankTransaction]:
    """Keep only entries with a positive amount, in input order."""
    return [txn for txn in transactions if txn.is_credit]


def compute_window(
    credits: Sequence[BankTransaction], buffer_days: int = 1
) -> Optional[ReconciliationWindow]:
    """
    Date range for the recorded-payment fetch.

    Returns None when there are no credits.
    """
    if not credits:
        return None
    dates = [txn.date for txn in credits]
    return ReconciliationWindow(
        start=min(dates),
        end=max(dates) + timedelta(days=buffer_days),
    )


class ReconciliationMatcher:
    """Pairs statement credits with recorded payments in a single pass."""

    def __init__(self, strategy: Optional[MatchingStrategy] = None):
        self.strategy = strategy or FirstEligibleStrategy()

    def match(
        self,
        transactions: Sequence[BankTransaction],
        payments: Sequence[RecordedPayment],
        window: Optional[ReconciliationWindow] = None,
    ) -> ReconciliationResult:
        """
        Match statement credits against recorded payments.

        Each credit consumes at most one payment, chosen by the strategy from
        the payments not yet consumed. Debits are dropped before matching.

        Args:
            transactions: Statement entries in upload order
            payments: Recorded payments in source order
            window: Fetch window, attached to the result as-is

        Returns:
            Result with every credit and every payment in exactly one partition
        """
        credits = filter_credits(transactions)
        excluded = len(transactions) - len(credits)

        if not credits:
            return ReconciliationResult(excluded_debits=excluded)

        working = list(payments)
        matched: list[MatchedPair] = []
        unmatched_bank: list[BankTransaction] = []

        for bank_txn in credits:
            index = self.strategy.find_match(bank_txn, working)
            if index is None:
                unmatched_bank.append(bank_txn)
                continue

            payment = working.pop(index)
            matched.append(MatchedPair(bank_transaction=bank_txn, recorded_payment=payment))
            logger.debug(
                f"Row {bank_txn.source_row_index} matched payment {payment.id} "
                f"({bank_txn.amount}, {bank_txn.date} vs {payment.payment_day})"
            )

        return ReconciliationResult(
            matched=matched,
            unmatched_bank=unmatched_bank,
            unmatched_recorded=working,
            window=window,
            excluded_debits=excluded,
        )
