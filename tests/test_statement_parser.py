"""Tests for fee_recon.parsers.statement_parser."""

import logging
from datetime import date, datetime
from decimal import Decimal
from io import BytesIO

import pandas as pd
import pytest

from fee_recon.config import ReconConfig
from fee_recon.parsers.statement_parser import StatementParser
from fee_recon.utils.exceptions import ParseError
from tests.conftest import write_statement


@pytest.fixture
def parser(config):
    return StatementParser(config)


class TestParseExcel:
    def test_reads_rows_in_order(self, parser, tmp_path):
        path = write_statement(
            tmp_path / "statement.xlsx",
            [
                {"Date": datetime(2024, 1, 10), "Description": "TRF ADA OBI", "Amount": 5000},
                {"Date": datetime(2024, 1, 12), "Description": "POS TUNDE", "Amount": 3000.5},
            ],
        )

        txns = parser.parse_file(path)

        assert [t.source_row_index for t in txns] == [2, 3]
        assert txns[0].date == date(2024, 1, 10)
        assert txns[0].description == "TRF ADA OBI"
        assert txns[0].amount == Decimal("5000")
        assert txns[1].amount == Decimal("3000.5")

    def test_extra_columns_ignored(self, parser, tmp_path):
        path = write_statement(
            tmp_path / "statement.xlsx",
            [{"Date": datetime(2024, 1, 10), "Amount": 100, "Balance": 900, "Channel": "NIP"}],
        )
        txns = parser.parse_file(path)
        assert len(txns) == 1
        assert txns[0].description == ""

    def test_keeps_time_of_day_for_display(self, parser, tmp_path):
        path = write_statement(
            tmp_path / "statement.xlsx",
            [{"Date": datetime(2024, 1, 10, 14, 30), "Amount": 100}],
        )
        txn = parser.parse_file(path)[0]
        assert txn.date == date(2024, 1, 10)
        assert txn.posted_at == datetime(2024, 1, 10, 14, 30)

    def test_corrupt_workbook(self, parser, tmp_path):
        path = tmp_path / "statement.xlsx"
        path.write_bytes(b"this is not a workbook")
        with pytest.raises(ParseError, match="Could not read"):
            parser.parse_file(path)


class TestParseCsv:
    def test_header_match_ignores_case_and_spaces(self, parser, tmp_path):
        path = tmp_path / "statement.csv"
        path.write_text(" date ,DESCRIPTION,AMOUNT\n2024-01-10,Fees,2500\n")
        txns = parser.parse_file(path)
        assert txns[0].amount == Decimal("2500")
        assert txns[0].description == "Fees"

    def test_missing_amount_column(self, parser, tmp_path):
        path = tmp_path / "statement.csv"
        path.write_text("Date,Description,Value\n2024-01-10,Fees,2500\n")
        with pytest.raises(ParseError, match="missing required column.*Amount"):
            parser.parse_file(path)

    def test_missing_date_column(self, parser, tmp_path):
        path = tmp_path / "statement.csv"
        path.write_text("Posted,Amount\n2024-01-10,2500\n")
        with pytest.raises(ParseError, match="Date"):
            parser.parse_file(path)

    def test_no_valid_rows(self, parser, tmp_path):
        path = tmp_path / "statement.csv"
        path.write_text("Date,Description,Amount\n,Opening balance,\n")
        with pytest.raises(ParseError, match="No valid transactions"):
            parser.parse_file(path)

    def test_blank_and_invalid_rows_skipped(self, parser, tmp_path, caplog):
        path = tmp_path / "statement.csv"
        path.write_text(
            "Date,Description,Amount\n"
            "2024-01-10,Good,100\n"
            ",No date,200\n"
            "not-a-date,Bad date,300\n"
            "2024-01-11,Bad amount,abc\n"
            "2024-01-12,Also good,400\n"
        )

        with caplog.at_level(logging.WARNING, logger="fee_recon"):
            txns = parser.parse_file(path)

        assert [t.source_row_index for t in txns] == [2, 6]
        assert "row 4" in caplog.text
        assert "row 5" in caplog.text

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ('"5,000.00"', Decimal("5000.00")),
            ("NGN 1500", Decimal("1500")),
            ("₦2500.50", Decimal("2500.50")),
            ("-200", Decimal("-200")),
            ("(75.25)", Decimal("-75.25")),
            ("1.5E+3", Decimal("1500")),
            ("2.5e2", Decimal("250")),
        ],
    )
    def test_amount_formats(self, parser, tmp_path, raw, expected):
        path = tmp_path / "statement.csv"
        path.write_text(f"Date,Amount\n2024-01-10,{raw}\n", encoding="utf-8")
        assert parser.parse_file(path)[0].amount == expected

    def test_exponent_with_currency_noise_is_skipped(self, parser, tmp_path, caplog):
        path = tmp_path / "statement.csv"
        path.write_text("Date,Amount\n2024-01-10,NGN 1.5E+3\n2024-01-11,200\n")

        with caplog.at_level(logging.WARNING, logger="fee_recon"):
            txns = parser.parse_file(path)

        assert [t.amount for t in txns] == [Decimal("200")]
        assert "row 2" in caplog.text

    def test_configured_date_format(self, tmp_path):
        config = ReconConfig()
        config.input.statement.date_format = "%d/%m/%Y"
        path = tmp_path / "statement.csv"
        path.write_text("Date,Amount\n10/01/2024,100\n")
        assert StatementParser(config).parse_file(path)[0].date == date(2024, 1, 10)

    def test_custom_column_mappings(self, tmp_path):
        config = ReconConfig()
        config.input.statement.column_mappings = {
            "date": "Value Date",
            "description": "Narration",
            "amount": "Credit",
        }
        path = tmp_path / "statement.csv"
        path.write_text("Value Date,Narration,Credit\n2024-01-10,School fees,900\n")
        txn = StatementParser(config).parse_file(path)[0]
        assert txn.description == "School fees"
        assert txn.amount == Decimal("900")

    def test_unsupported_suffix(self, parser, tmp_path):
        path = tmp_path / "statement.pdf"
        path.write_bytes(b"%PDF")
        with pytest.raises(ParseError, match="Unsupported"):
            parser.parse_file(path)


class TestParseBytes:
    def test_csv_bytes_sniffed(self, parser):
        txns = parser.parse_bytes(b"Date,Description,Amount\n2024-01-10,Fees,100\n")
        assert txns[0].amount == Decimal("100")

    def test_xlsx_bytes_sniffed(self, parser):
        buffer = BytesIO()
        pd.DataFrame([{"Date": datetime(2024, 1, 10), "Amount": 100}]).to_excel(
            buffer, index=False
        )
        txns = parser.parse_bytes(buffer.getvalue())
        assert txns[0].date == date(2024, 1, 10)

    def test_filename_decides_format(self, parser):
        txns = parser.parse_bytes(b"Date,Amount\n2024-01-10,100\n", filename="upload.csv")
        assert len(txns) == 1

    def test_empty_upload(self, parser):
        with pytest.raises(ParseError, match="empty"):
            parser.parse_bytes(b"")
