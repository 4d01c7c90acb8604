"""
Bank statement spreadsheet parser.
Reads uploaded Excel or CSV statements into bank transaction models.
"""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from io import BytesIO
from pathlib import Path
from typing import Any, Optional, Union
import logging
import re

import pandas as pd

from ..models.transaction import BankTransaction
from ..config import ReconConfig
from ..utils.exceptions import ParseError

logger = logging.getLogger(__name__)

EXCEL_SUFFIXES = {".xlsx", ".xlsm", ".xls"}
CSV_SUFFIXES = {".csv", ".txt"}

# Header row is row 1 in the spreadsheet, so data starts on row 2
FIRST_DATA_ROW = 2

_AMOUNT_NOISE = re.compile(r"[^0-9.\-]")
# Scientific notation such as 1.5E+3, as written by spreadsheet exports
_EXPONENT = re.compile(r"\d[eE][+\-]?\d")


class StatementParser:
    """
    Parser for uploaded bank statements.

    Only the date, description and amount columns are used; any other
    column in the upload is ignored.
    """

    def __init__(self, config: ReconConfig):
        """
        Initialize the parser with configuration.

        Args:
            config: Application configuration object
        """
        self.config = config
        self.statement_config = config.input.statement
        self.column_mappings = self.statement_config.column_mappings

    def parse_file(self, file_path: Path) -> list[BankTransaction]:
        """
        Parse a statement file from disk.

        Args:
            file_path: Path to an .xlsx or .csv statement

        Returns:
            Transactions in file order

        Raises:
            ParseError: If the file cannot be read, lacks the date or amount
                column, or holds no valid rows
        """
        logger.info(f"Parsing bank statement: {file_path}")
        file_format = self._detect_format(file_path.suffix)
        df = self._read_frame(file_path, file_format)
        return self._parse_frame(df)

    def parse_bytes(
        self,
        data: bytes,
        filename: Optional[str] = None,
        file_format: Optional[str] = None,
    ) -> list[BankTransaction]:
        """
        Parse raw uploaded bytes.

        The format is taken from ``file_format``, then the filename suffix,
        and finally sniffed from the content (xlsx files are zip archives).
        """
        if not data:
            raise ParseError("Uploaded statement is empty")

        if file_format is None:
            if filename:
                file_format = self._detect_format(Path(filename).suffix)
            else:
                file_format = "excel" if data[:2] == b"PK" else "csv"

        logger.info(f"Parsing uploaded bank statement ({filename or 'unnamed'}, {file_format})")
        df = self._read_frame(BytesIO(data), file_format)
        return self._parse_frame(df)

    def _detect_format(self, suffix: str) -> str:
        suffix = suffix.lower()
        if suffix in EXCEL_SUFFIXES:
            return "excel"
        if suffix in CSV_SUFFIXES:
            return "csv"
        raise ParseError(f"Unsupported statement file type: '{suffix or '(none)'}'")

    def _read_frame(self, source: Union[Path, BytesIO], file_format: str) -> pd.DataFrame:
        """Load the first worksheet (or the CSV body) into a DataFrame."""
        try:
            if file_format == "excel":
                return pd.read_excel(source, sheet_name=self.statement_config.sheet_name)
            if file_format == "csv":
                return pd.read_csv(
                    source,
                    encoding=self.statement_config.encoding,
                    delimiter=self.statement_config.delimiter,
                    dtype=str,
                )
        except Exception as e:
            logger.error(f"Failed to read bank statement: {e}")
            raise ParseError(f"Could not read the uploaded statement: {e}") from e

        raise ParseError(f"Unsupported statement format: {file_format}")

    def _parse_frame(self, df: pd.DataFrame) -> list[BankTransaction]:
        columns = self._resolve_columns(df)
        transactions = self._process_dataframe(df, columns)

        if not transactions:
            raise ParseError(
                "No valid transactions found in the file. Ensure "
                f"'{self.column_mappings.get('date', 'Date')}' and "
                f"'{self.column_mappings.get('amount', 'Amount')}' columns exist "
                "and are populated."
            )

        logger.info(f"Extracted {len(transactions)} transactions from statement")
        return transactions

    def _resolve_columns(self, df: pd.DataFrame) -> dict[str, Optional[Any]]:
        """
        Map logical fields to the actual DataFrame columns.

        Header matching ignores case and surrounding whitespace.
        """
        available = {str(col).strip().lower(): col for col in df.columns}

        resolved: dict[str, Optional[Any]] = {}
        for field_name, default in (
            ("date", "Date"),
            ("description", "Description"),
            ("amount", "Amount"),
        ):
            wanted = self.column_mappings.get(field_name, default)
            resolved[field_name] = available.get(str(wanted).strip().lower())

        missing = [
            self.column_mappings.get(name, name.title())
            for name in ("date", "amount")
            if resolved[name] is None
        ]
        if missing:
            raise ParseError(
                f"Statement is missing required column(s): {', '.join(missing)}. "
                f"Found: {', '.join(str(c) for c in df.columns) or 'none'}"
            )

        return resolved

    def _process_dataframe(
        self, df: pd.DataFrame, columns: dict[str, Optional[Any]]
    ) -> list[BankTransaction]:
        transactions: list[BankTransaction] = []

        for position, (_, row) in enumerate(df.iterrows()):
            row_number = position + FIRST_DATA_ROW
            txn = self._normalize_row(row, row_number, columns)
            if txn:
                transactions.append(txn)

        return transactions

    def _normalize_row(
        self,
        row: pd.Series,
        row_number: int,
        columns: dict[str, Optional[Any]],
    ) -> Optional[BankTransaction]:
        """
        Convert a DataFrame row to a BankTransaction.

        Returns None for rows that should be skipped.
        """
        raw_date = row.get(columns["date"])
        raw_amount = row.get(columns["amount"])

        if _is_blank(raw_date) or _is_blank(raw_amount):
            logger.debug(f"Row {row_number}: empty date or amount, skipping")
            return None

        posted_at = self._parse_date(raw_date)
        if posted_at is None:
            logger.warning(f"Skipping row {row_number} due to invalid date format: {raw_date!r}")
            return None

        amount = self._parse_amount(raw_amount)
        if amount is None:
            logger.warning(f"Skipping row {row_number} due to invalid amount: {raw_amount!r}")
            return None

        description = ""
        if columns["description"] is not None:
            raw_description = row.get(columns["description"])
            if not _is_blank(raw_description):
                description = str(raw_description).strip()

        return BankTransaction(
            date=posted_at.date(),
            description=description,
            amount=amount,
            source_row_index=row_number,
            posted_at=posted_at,
        )

    def _parse_date(self, value: Any) -> Optional[datetime]:
        """
        Parse a statement date, keeping the time of day if present.

        Args:
            value: Cell value (datetime from Excel, or text)

        Returns:
            Naive datetime or None
        """
        if isinstance(value, pd.Timestamp):
            return value.to_pydatetime().replace(tzinfo=None)
        if isinstance(value, datetime):
            return value.replace(tzinfo=None)
        if isinstance(value, date):
            return datetime.combine(value, datetime.min.time())

        text = str(value).strip()
        date_format = self.statement_config.date_format
        if date_format:
            try:
                return datetime.strptime(text, date_format)
            except ValueError:
                return None

        try:
            parsed = pd.to_datetime(text, dayfirst=self.statement_config.dayfirst)
        except (ValueError, TypeError, OverflowError):
            return None
        if pd.isna(parsed):
            return None
        return parsed.to_pydatetime().replace(tzinfo=None)

    def _parse_amount(self, value: Any) -> Optional[Decimal]:
        """
        Parse a statement amount.

        Accepts numbers and text with currency codes or symbols, thousands
        separators, and accounting parentheses for negatives.
        """
        if isinstance(value, Decimal):
            return value
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return Decimal(str(value))

        text = str(value).strip()
        try:
            amount = Decimal(text)
        except InvalidOperation:
            pass
        else:
            return amount if amount.is_finite() else None
        if _EXPONENT.search(text):
            return None

        negative = text.startswith("(") and text.endswith(")")
        cleaned = _AMOUNT_NOISE.sub("", text)
        if not cleaned or cleaned in {"-", ".", "-."}:
            return None

        try:
            amount = Decimal(cleaned)
        except InvalidOperation:
            return None

        return -abs(amount) if negative else amount


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False
