"""
Recorded-payment sources.

The payment ledger lives outside this package; the engine only needs a
query by date range. Loosely typed ledger records are validated into
RecordedPayment objects once, here.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timezone, tzinfo
from decimal import Decimal
from pathlib import Path
from typing import Any, Iterable, Optional
import json
import logging

import pandas as pd
from pydantic import BaseModel, ValidationError, field_validator

from ..models.transaction import RecordedPayment, ReconciliationWindow
from ..config import PaymentsConfig
from ..utils.exceptions import FetchError

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("id", "student_name", "amount_paid", "payment_date", "payment_method")


class PaymentRecord(BaseModel):
    """Validated shape of a ledger payment record."""

    id: str
    student_name: str
    amount_paid: Decimal
    payment_date: datetime
    payment_method: str
    invoice_id: Optional[str] = None
    student_id: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("id", "student_name", "payment_method", mode="before")
    @classmethod
    def _require_text(cls, value: Any) -> str:
        if value is None or (isinstance(value, float) and pd.isna(value)):
            raise ValueError("value is required")
        text = str(value).strip()
        if not text:
            raise ValueError("value is required")
        return text

    @field_validator("invoice_id", "student_id", "notes", mode="before")
    @classmethod
    def _optional_text(cls, value: Any) -> Optional[str]:
        if value is None or (isinstance(value, float) and pd.isna(value)):
            return None
        text = str(value).strip()
        return text or None

    @field_validator("amount_paid", mode="before")
    @classmethod
    def _parse_amount(cls, value: Any) -> Any:
        if isinstance(value, (Decimal, bool)) or value is None:
            return value
        if isinstance(value, str):
            return value.replace(",", "").strip()
        # floats and numpy scalars go through their shortest repr
        return Decimal(str(value))

    @field_validator("payment_date", mode="before")
    @classmethod
    def _parse_timestamp(cls, value: Any) -> Any:
        if isinstance(value, pd.Timestamp):
            return value.to_pydatetime()
        if isinstance(value, date) and not isinstance(value, datetime):
            return datetime.combine(value, datetime.min.time())
        # Firestore-style {"seconds": ..., "nanoseconds": ...}
        if isinstance(value, dict) and "seconds" in value:
            return datetime.fromtimestamp(int(value["seconds"]), tz=timezone.utc)
        if isinstance(value, str):
            try:
                return datetime.fromisoformat(value.strip())
            except ValueError:
                return value
        return value

    def to_payment(self, zone: tzinfo) -> RecordedPayment:
        """
        Convert to a RecordedPayment with a naive local timestamp.

        Aware timestamps are shifted into ``zone`` first, so a payment
        picked as midnight local time keeps its calendar day.
        """
        payment_date = self.payment_date
        if payment_date.tzinfo is not None:
            payment_date = payment_date.astimezone(zone).replace(tzinfo=None)
        return RecordedPayment(
            id=self.id,
            student_name=self.student_name,
            amount_paid=self.amount_paid,
            payment_date=payment_date,
            payment_method=self.payment_method,
            invoice_id=self.invoice_id,
            student_id=self.student_id,
            notes=self.notes,
        )


def validate_payment(
    record: dict[str, Any], zone: Optional[tzinfo] = None
) -> RecordedPayment:
    """
    Validate a raw ledger record into a RecordedPayment.

    Args:
        record: Ledger fields keyed by RecordedPayment attribute name
        zone: Local zone for aware timestamps; the default ledger zone when None

    Raises:
        FetchError: If the record is missing fields or holds invalid values
    """
    try:
        payment = PaymentRecord(**record)
    except ValidationError as e:
        raise FetchError(
            f"Invalid payment record {record.get('id', '<no id>')!r}: {e}"
        ) from e
    return payment.to_payment(zone or PaymentsConfig().tzinfo())


class PaymentRepository(ABC):
    """Query interface onto the recorded-payment ledger."""

    @abstractmethod
    def find_by_date_range(self, start: date, end: date) -> list[RecordedPayment]:
        """
        Return payments whose calendar date lies within [start, end].

        Args:
            start: First day of the range (inclusive)
            end: Last day of the range (inclusive)

        Returns:
            Payments in ledger order
        """
        pass

    @property
    def source_name(self) -> str:
        return type(self).__name__


class InMemoryPaymentRepository(PaymentRepository):
    """Payments held in a list; used for embedding and tests."""

    def __init__(self, payments: Iterable[RecordedPayment] = ()):
        self.payments = list(payments)

    def find_by_date_range(self, start: date, end: date) -> list[RecordedPayment]:
        window = ReconciliationWindow(start, end)
        return [p for p in self.payments if window.contains(p.payment_day)]

    @property
    def source_name(self) -> str:
        return "in-memory"


class FilePaymentRepository(PaymentRepository):
    """
    Payments loaded from a ledger export (CSV, JSON or XLSX).

    The file is read and validated on the first query and cached for the
    lifetime of the repository.
    """

    def __init__(self, file_path: Path, config: Optional[PaymentsConfig] = None):
        self.file_path = file_path
        self.config = config or PaymentsConfig()
        self._payments: Optional[list[RecordedPayment]] = None

    @property
    def source_name(self) -> str:
        return self.file_path.name

    def find_by_date_range(self, start: date, end: date) -> list[RecordedPayment]:
        payments = self.load()
        window = ReconciliationWindow(start, end)
        found = [p for p in payments if window.contains(p.payment_day)]
        logger.debug(
            f"{len(found)} of {len(payments)} ledger payments fall within {start} to {end}"
        )
        return found

    def load(self) -> list[RecordedPayment]:
        """Read and validate every payment in the ledger file."""
        if self._payments is None:
            df = self._read_frame()
            self._payments = self._process_dataframe(df)
            logger.info(f"Loaded {len(self._payments)} recorded payments from {self.file_path}")
        return self._payments

    def _file_format(self) -> str:
        if self.config.file_format:
            return self.config.file_format.lower()
        suffix = self.file_path.suffix.lower()
        if suffix in (".xlsx", ".xlsm", ".xls"):
            return "xlsx"
        return suffix.lstrip(".")

    def _read_frame(self) -> pd.DataFrame:
        if not self.file_path.exists():
            raise FetchError(f"Payment ledger not found: {self.file_path}")

        file_format = self._file_format()
        try:
            if file_format == "csv":
                return pd.read_csv(self.file_path, encoding=self.config.encoding, dtype=str)
            if file_format == "xlsx":
                return pd.read_excel(self.file_path)
            if file_format == "json":
                with open(self.file_path, "r", encoding=self.config.encoding) as f:
                    records = json.load(f)
                return pd.DataFrame.from_records(self._json_records(records))
        except FetchError:
            raise
        except Exception as e:
            logger.error(f"Failed to read payment ledger: {e}")
            raise FetchError(f"Could not read payment ledger {self.file_path}: {e}") from e

        raise FetchError(f"Unsupported payment ledger format: '{file_format}'")

    def _json_records(self, data: Any) -> list[dict[str, Any]]:
        """Payment records from a JSON ledger: a list, or an object with a ``payments`` list."""
        if isinstance(data, dict):
            if not isinstance(data.get("payments"), list):
                raise FetchError(
                    f"Payment ledger {self.file_path.name} has no 'payments' list"
                )
            data = data["payments"]
        if not isinstance(data, list) or not all(isinstance(r, dict) for r in data):
            raise FetchError(
                f"Payment ledger {self.file_path.name} must hold a list of payment records"
            )
        return data

    def _process_dataframe(self, df: pd.DataFrame) -> list[RecordedPayment]:
        mappings = self.config.column_mappings
        zone = self.config.tzinfo()
        missing = [
            mappings.get(name, name)
            for name in REQUIRED_FIELDS
            if mappings.get(name, name) not in df.columns
        ]
        if missing and not df.empty:
            raise FetchError(
                f"Payment ledger {self.file_path.name} is missing column(s): {', '.join(missing)}"
            )

        payments: list[RecordedPayment] = []
        for _, row in df.iterrows():
            record = {
                field_name: row.get(column)
                for field_name, column in mappings.items()
                if column in df.columns
            }
            if self.config.date_format and isinstance(record.get("payment_date"), str):
                try:
                    record["payment_date"] = datetime.strptime(
                        record["payment_date"], self.config.date_format
                    )
                except ValueError as e:
                    raise FetchError(
                        f"Invalid payment date {record['payment_date']!r} "
                        f"for payment {record.get('id')!r}"
                    ) from e
            payments.append(validate_payment(record, zone))

        return payments
