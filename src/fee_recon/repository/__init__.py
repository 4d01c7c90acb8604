"""Recorded-payment sources."""

from .payment_repository import (
    PaymentRepository,
    InMemoryPaymentRepository,
    FilePaymentRepository,
    PaymentRecord,
    validate_payment,
)

__all__ = [
    "PaymentRepository",
    "InMemoryPaymentRepository",
    "FilePaymentRepository",
    "PaymentRecord",
    "validate_payment",
]
