"""
CSV and JSON serialization of reconciliation results.
"""

from dataclasses import asdict
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Any
import json
import logging

import pandas as pd

from ..models.transaction import (
    BankTransaction,
    RecordedPayment,
    ReconciliationResult,
    ReconciliationSummary,
)
from ..utils.exceptions import ReportGenerationError

logger = logging.getLogger(__name__)

CSV_COLUMNS = [
    "category",
    "bank_row",
    "bank_date",
    "bank_description",
    "bank_amount",
    "payment_id",
    "payment_date",
    "student_name",
    "amount_paid",
    "payment_method",
    "match_type",
]


def _bank_fields(txn: BankTransaction) -> dict[str, Any]:
    return {
        "bank_row": txn.source_row_index,
        "bank_date": txn.date.isoformat(),
        "bank_description": txn.description,
        "bank_amount": str(txn.amount),
    }


def _payment_fields(payment: RecordedPayment) -> dict[str, Any]:
    return {
        "payment_id": payment.id,
        "payment_date": payment.payment_date.isoformat(),
        "student_name": payment.student_name,
        "amount_paid": str(payment.amount_paid),
        "payment_method": payment.payment_method,
    }


def result_to_frame(result: ReconciliationResult) -> pd.DataFrame:
    """Flatten a result into one row per matched pair or unmatched record."""
    rows: list[dict[str, Any]] = []

    for pair in result.matched:
        rows.append(
            {
                "category": "matched",
                **_bank_fields(pair.bank_transaction),
                **_payment_fields(pair.recorded_payment),
                "match_type": pair.match_type,
            }
        )
    for txn in result.unmatched_bank:
        rows.append({"category": "unmatched_bank", **_bank_fields(txn)})
    for payment in result.unmatched_recorded:
        rows.append({"category": "unmatched_recorded", **_payment_fields(payment)})

    return pd.DataFrame(rows, columns=CSV_COLUMNS)


def export_csv(result: ReconciliationResult, output_path: Path) -> Path:
    """Write the flattened result to a CSV file."""
    logger.info(f"Writing CSV export: {output_path}")
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        result_to_frame(result).to_csv(output_path, index=False)
    except OSError as e:
        raise ReportGenerationError(f"Could not write CSV export {output_path}: {e}") from e
    return output_path


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def result_to_dict(
    result: ReconciliationResult, summary: ReconciliationSummary
) -> dict[str, Any]:
    """Nested representation of a result and its summary."""
    summary_data = asdict(summary)
    summary_data["match_rate_bank"] = round(summary.match_rate_bank, 2)
    summary_data["match_rate_recorded"] = round(summary.match_rate_recorded, 2)

    return {
        "summary": summary_data,
        "matched": [
            {
                "bank_transaction": asdict(pair.bank_transaction),
                "recorded_payment": asdict(pair.recorded_payment),
                "match_type": pair.match_type,
                "date_variance_days": pair.date_variance_days,
            }
            for pair in result.matched
        ],
        "unmatched_bank": [asdict(txn) for txn in result.unmatched_bank],
        "unmatched_recorded": [asdict(p) for p in result.unmatched_recorded],
    }


def export_json(
    result: ReconciliationResult,
    summary: ReconciliationSummary,
    output_path: Path,
) -> Path:
    """Write the result and summary to a JSON file."""
    logger.info(f"Writing JSON export: {output_path}")
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(result_to_dict(result, summary), f, indent=2, default=_json_default)
    except OSError as e:
        raise ReportGenerationError(f"Could not write JSON export {output_path}: {e}") from e
    return output_path
