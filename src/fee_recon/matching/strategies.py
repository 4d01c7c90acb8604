"""
Tie-break strategies for the reconciliation matcher.

A candidate is eligible when its amount equals the statement amount exactly
and its date lies within the date tolerance. When several recorded payments
are eligible for the same statement credit, the strategy decides which one
is consumed.
"""

from abc import ABC, abstractmethod
from typing import Optional

from ..models.transaction import BankTransaction, RecordedPayment
from ..config import MatchingConfig, TIE_BREAK_CLOSEST_DATE, TIE_BREAK_FIRST_ELIGIBLE
from ..utils.exceptions import ConfigurationError


class MatchingStrategy(ABC):
    """Abstract base class for tie-break strategies."""

    name: str = ""

    def __init__(self, date_tolerance_days: int = 2):
        """
        Initialize with date tolerance.

        Args:
            date_tolerance_days: Maximum days difference allowed (inclusive)
        """
        self.date_tolerance_days = date_tolerance_days

    def date_delta(self, bank_txn: BankTransaction, payment: RecordedPayment) -> int:
        """Absolute calendar-day difference between the two records."""
        return abs((bank_txn.date - payment.payment_day).days)

    def is_eligible(self, bank_txn: BankTransaction, payment: RecordedPayment) -> bool:
        """Exact amount equality and date within tolerance."""
        return (
            payment.amount_paid == bank_txn.amount
            and self.date_delta(bank_txn, payment) <= self.date_tolerance_days
        )

    @abstractmethod
    def find_match(
        self,
        bank_txn: BankTransaction,
        candidates: list[RecordedPayment],
    ) -> Optional[int]:
        """
        Pick the recorded payment that settles a statement credit.

        Args:
            bank_txn: Statement credit to match
            candidates: Working list of still-unmatched payments

        Returns:
            Index into ``candidates`` of the chosen payment, or None
        """
        pass


class FirstEligibleStrategy(MatchingStrategy):
    """
    First eligible payment in working-list order wins.

    The working list keeps the order the payment source returned, so among
    ties this is effectively source order.
    """

    name = TIE_BREAK_FIRST_ELIGIBLE

    def find_match(
        self,
        bank_txn: BankTransaction,
        candidates: list[RecordedPayment],
    ) -> Optional[int]:
        for index, payment in enumerate(candidates):
            if self.is_eligible(bank_txn, payment):
                return index
        return None


class ClosestDateStrategy(MatchingStrategy):
    """
    Eligible payment with the smallest date difference wins.

    Equal differences fall back to working-list order.
    """

    name = TIE_BREAK_CLOSEST_DATE

    def find_match(
        self,
        bank_txn: BankTransaction,
        candidates: list[RecordedPayment],
    ) -> Optional[int]:
        best_index: Optional[int] = None
        best_delta = 0

        for index, payment in enumerate(candidates):
            if not self.is_eligible(bank_txn, payment):
                continue
            delta = self.date_delta(bank_txn, payment)
            if best_index is None or delta < best_delta:
                best_index = index
                best_delta = delta
                if delta == 0:
                    break

        return best_index


STRATEGIES: dict[str, type[MatchingStrategy]] = {
    FirstEligibleStrategy.name: FirstEligibleStrategy,
    ClosestDateStrategy.name: ClosestDateStrategy,
}


def build_strategy(config: MatchingConfig) -> MatchingStrategy:
    """Create the configured tie-break strategy."""
    try:
        strategy_cls = STRATEGIES[config.tie_break]
    except KeyError:
        raise ConfigurationError(
            f"Unknown tie-break policy '{config.tie_break}'. "
            f"Choose one of: {', '.join(STRATEGIES)}"
        ) from None
    return strategy_cls(date_tolerance_days=config.date_tolerance_days)
