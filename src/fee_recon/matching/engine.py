"""
Reconciliation engine.
Runs one reconciliation: credit filter, fetch window, payment fetch, match.
"""

from concurrent.futures import ThreadPoolExecutor, TimeoutError as FetchTimeout
from datetime import datetime
from typing import Optional, Sequence
import logging

from ..models.transaction import (
    BankTransaction,
    RecordedPayment,
    ReconciliationWindow,
    ReconciliationResult,
    ReconciliationSummary,
)
from ..config import ReconConfig
from ..repository.payment_repository import PaymentRepository
from ..reports.summary import summarize
from ..utils.exceptions import FetchError
from .matcher import ReconciliationMatcher, compute_window, filter_credits
from .strategies import build_strategy

logger = logging.getLogger(__name__)


class ReconciliationEngine:
    """
    Orchestrates a reconciliation run against a payment repository.

    Fetch failures are terminal for the run: nothing is matched against a
    partial payment set.
    """

    def __init__(
        self,
        config: ReconConfig,
        repository: PaymentRepository,
        matcher: Optional[ReconciliationMatcher] = None,
    ):
        """
        Initialize the reconciliation engine.

        Args:
            config: Application configuration
            repository: Source of recorded payments
            matcher: Matcher to use; built from the configuration when omitted
        """
        self.config = config
        self.repository = repository
        self.matcher = matcher or ReconciliationMatcher(build_strategy(config.matching))

    def reconcile(self, transactions: Sequence[BankTransaction]) -> ReconciliationResult:
        """
        Reconcile statement transactions against recorded payments.

        Args:
            transactions: Parsed statement entries in upload order

        Returns:
            Reconciliation result; empty when the statement holds no credits

        Raises:
            FetchError: If recorded payments cannot be fetched
        """
        start_time = datetime.now()
        credits = filter_credits(transactions)
        excluded = len(transactions) - len(credits)

        if excluded:
            logger.info(f"Excluded {excluded} debit entries from reconciliation")

        window = compute_window(credits, self.config.matching.window_buffer_days)
        if window is None:
            logger.info("No credit transactions found - nothing to reconcile")
            return ReconciliationResult(excluded_debits=excluded)

        logger.info(
            f"Starting reconciliation: {len(credits)} credits, "
            f"window {window.start} to {window.end}"
        )

        payments = self.fetch_payments(window)
        result = self.matcher.match(transactions, payments, window=window)

        elapsed = (datetime.now() - start_time).total_seconds()
        logger.info(
            f"Reconciliation complete in {elapsed:.2f}s: {len(result.matched)} matched, "
            f"{len(result.unmatched_bank)} unmatched bank, "
            f"{len(result.unmatched_recorded)} unmatched recorded"
        )

        return result

    def fetch_payments(self, window: ReconciliationWindow) -> list[RecordedPayment]:
        """
        Fetch recorded payments for the window, bounded by the fetch timeout.

        Raises:
            FetchError: On timeout or any failure of the repository
        """
        timeout = self.config.payments.fetch_timeout_seconds
        executor = ThreadPoolExecutor(max_workers=1)
        future = executor.submit(self.repository.find_by_date_range, window.start, window.end)

        try:
            payments = future.result(timeout=timeout)
        except FetchTimeout as e:
            logger.error(f"Payment fetch timed out after {timeout}s")
            raise FetchError(
                f"Timed out after {timeout}s fetching payments from "
                f"{self.repository.source_name}"
            ) from e
        except FetchError:
            raise
        except Exception as e:
            logger.error(f"Payment fetch failed: {e}")
            raise FetchError(
                f"Could not fetch payment records from {self.repository.source_name}: {e}"
            ) from e
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        logger.info(f"Fetched {len(payments)} recorded payments for {window.start} to {window.end}")
        return list(payments)

    def generate_summary(
        self,
        result: ReconciliationResult,
        statement_filename: str,
        processing_time: float,
    ) -> ReconciliationSummary:
        """
        Generate a summary of the reconciliation results.

        Args:
            result: Result of :meth:`reconcile`
            statement_filename: Name of the uploaded statement
            processing_time: Time taken in seconds

        Returns:
            Reconciliation summary object
        """
        return summarize(
            result,
            statement_filename=statement_filename,
            payments_source=self.repository.source_name,
            processing_time=processing_time,
            tie_break=self.matcher.strategy.name,
            config_file_used=self.config.config_file_path,
        )
