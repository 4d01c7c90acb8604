"""Shared fixtures and helpers for the fee_recon test suite."""

import logging
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path

import pandas as pd
import pytest

from fee_recon.config import ReconConfig
from fee_recon.models.transaction import BankTransaction, RecordedPayment
from fee_recon.repository.payment_repository import InMemoryPaymentRepository


def make_txn(amount, day: date, row: int = 2, description: str = "") -> BankTransaction:
    """Helper to create a BankTransaction with defaults."""
    return BankTransaction(
        date=day,
        description=description,
        amount=Decimal(str(amount)),
        source_row_index=row,
        posted_at=datetime.combine(day, datetime.min.time()),
    )


def make_payment(
    amount,
    day: date,
    payment_id: str = "PAY-1",
    student_name: str = "Ada Obi",
    method: str = "Bank Transfer",
) -> RecordedPayment:
    """Helper to create a RecordedPayment with defaults."""
    return RecordedPayment(
        id=payment_id,
        student_name=student_name,
        amount_paid=Decimal(str(amount)),
        payment_date=datetime(day.year, day.month, day.day, 10, 30),
        payment_method=method,
    )


def write_statement(path: Path, rows: list[dict]) -> Path:
    """Write statement rows to .xlsx or .csv depending on the suffix."""
    df = pd.DataFrame(rows)
    if path.suffix == ".csv":
        df.to_csv(path, index=False)
    else:
        df.to_excel(path, index=False)
    return path


@pytest.fixture(autouse=True)
def _reset_package_logger():
    """Drop handlers set up by CLI runs so they don't outlive the test."""
    yield
    logger = logging.getLogger("fee_recon")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


@pytest.fixture
def config() -> ReconConfig:
    return ReconConfig()


@pytest.fixture
def jan_payments() -> list[RecordedPayment]:
    """Ledger with two January payments."""
    return [
        make_payment(5000, date(2024, 1, 11), payment_id="PAY-1", student_name="Ada Obi"),
        make_payment(3000, date(2024, 1, 20), payment_id="PAY-2", student_name="Tunde Bello"),
    ]


@pytest.fixture
def repository(jan_payments) -> InMemoryPaymentRepository:
    return InMemoryPaymentRepository(jan_payments)


@pytest.fixture
def payments_csv(tmp_path: Path) -> Path:
    """Ledger export in the original document field names."""
    path = tmp_path / "payments.csv"
    pd.DataFrame(
        [
            {
                "id": "PAY-1",
                "studentName": "Ada Obi",
                "amountPaid": "5000",
                "paymentDate": "2024-01-11T10:30:00",
                "paymentMethod": "Bank Transfer",
                "invoiceId": "INV-001",
            },
            {
                "id": "PAY-2",
                "studentName": "Tunde Bello",
                "amountPaid": "3000",
                "paymentDate": "2024-01-20T09:00:00",
                "paymentMethod": "POS",
                "invoiceId": "INV-002",
            },
        ]
    ).to_csv(path, index=False)
    return path
