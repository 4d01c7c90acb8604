"""Data models for statement transactions, recorded payments and results."""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional


MATCH_TYPE_EXACT = "Exact"


@dataclass(frozen=True)
class BankTransaction:
    """
    A single entry read from an uploaded bank statement.

    Positive amounts are credits (money received), non-positive amounts
    are debits and never take part in reconciliation.
    """

    # Calendar date used for matching
    date: date

    description: str

    # Signed amount as it appears on the statement
    amount: Decimal

    # 1-based spreadsheet row (header is row 1)
    source_row_index: int

    # Full timestamp as read, kept for display
    posted_at: Optional[datetime] = None

    @property
    def is_credit(self) -> bool:
        """Check if this entry represents money received."""
        return self.amount > 0


@dataclass(frozen=True)
class RecordedPayment:
    """A fee payment recorded in the school's payment ledger."""

    id: str
    student_name: str
    amount_paid: Decimal
    payment_date: datetime
    payment_method: str

    invoice_id: Optional[str] = None
    student_id: Optional[str] = None
    notes: Optional[str] = None

    @property
    def payment_day(self) -> date:
        """Calendar date of the payment."""
        return self.payment_date.date()


@dataclass(frozen=True)
class MatchedPair:
    """A statement credit paired with the recorded payment it settles."""

    bank_transaction: BankTransaction
    recorded_payment: RecordedPayment
    match_type: str = MATCH_TYPE_EXACT

    @property
    def date_variance_days(self) -> int:
        """Absolute day difference between statement and ledger dates."""
        return abs(
            (self.bank_transaction.date - self.recorded_payment.payment_day).days
        )


@dataclass(frozen=True)
class ReconciliationWindow:
    """Inclusive date range used to bound the recorded-payment fetch."""

    start: date
    end: date

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end


@dataclass
class ReconciliationResult:
    """
    Outcome of one reconciliation run.

    Every fetched payment ends up in exactly one of ``matched`` or
    ``unmatched_recorded``; every credit in exactly one of ``matched``
    or ``unmatched_bank``.
    """

    matched: list[MatchedPair] = field(default_factory=list)
    unmatched_bank: list[BankTransaction] = field(default_factory=list)
    unmatched_recorded: list[RecordedPayment] = field(default_factory=list)

    # Window the payments were fetched for (None for a no-op run)
    window: Optional[ReconciliationWindow] = None

    # Number of statement entries dropped as debits
    excluded_debits: int = 0

    @property
    def is_empty(self) -> bool:
        """True when there was nothing to reconcile."""
        return not (self.matched or self.unmatched_bank or self.unmatched_recorded)

    @property
    def total_matched(self) -> Decimal:
        return sum((p.bank_transaction.amount for p in self.matched), Decimal("0"))

    @property
    def total_unmatched_bank(self) -> Decimal:
        return sum((t.amount for t in self.unmatched_bank), Decimal("0"))

    @property
    def total_unmatched_recorded(self) -> Decimal:
        return sum((p.amount_paid for p in self.unmatched_recorded), Decimal("0"))


@dataclass
class ReconciliationSummary:
    """Summary of the reconciliation process."""

    # Source information
    statement_filename: str
    payments_source: str
    reconciliation_date: datetime
    window_start: Optional[date]
    window_end: Optional[date]

    # Transaction counts
    total_credits: int
    total_recorded_payments: int
    excluded_debits: int

    # Match results
    matched_count: int
    unmatched_bank_count: int
    unmatched_recorded_count: int

    # Amount totals
    total_matched: Decimal
    total_unmatched_bank: Decimal
    total_unmatched_recorded: Decimal

    # Processing metadata
    tie_break: str = "first_eligible"
    processing_time_seconds: float = 0.0
    config_file_used: Optional[str] = None

    @property
    def match_rate_bank(self) -> float:
        """Percentage of statement credits matched."""
        if self.total_credits == 0:
            return 0.0
        return (self.matched_count / self.total_credits) * 100

    @property
    def match_rate_recorded(self) -> float:
        """Percentage of recorded payments matched."""
        if self.total_recorded_payments == 0:
            return 0.0
        return (self.matched_count / self.total_recorded_payments) * 100

    @property
    def total_credit_amount(self) -> Decimal:
        """Sum of all statement credits taken into the run."""
        return self.total_matched + self.total_unmatched_bank
