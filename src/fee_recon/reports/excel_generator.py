"""
Excel report generator for reconciliation results.
Creates multi-sheet workbooks with formatted output.
"""

from datetime import datetime
from pathlib import Path
from typing import Any, Optional
import logging

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill, Border, Side
from openpyxl.worksheet.worksheet import Worksheet

from ..models.transaction import ReconciliationResult, ReconciliationSummary
from ..config import ReconConfig, SheetConfig
from ..utils.exceptions import ReportGenerationError

logger = logging.getLogger(__name__)

# Style definitions
HEADER_FILL = PatternFill(start_color="4472C4", end_color="4472C4", fill_type="solid")
HEADER_FONT = Font(color="FFFFFF", bold=True)
MATCH_FILL = PatternFill(start_color="C6EFCE", end_color="C6EFCE", fill_type="solid")
UNMATCHED_FILL = PatternFill(start_color="FFC7CE", end_color="FFC7CE", fill_type="solid")
THIN_BORDER = Border(
    left=Side(style="thin"),
    right=Side(style="thin"),
    top=Side(style="thin"),
    bottom=Side(style="thin"),
)
AMOUNT_FORMAT = "#,##0.00"


class ExcelReportGenerator:
    """Generates Excel reconciliation reports with one sheet per category."""

    def __init__(self, config: ReconConfig):
        """
        Initialize the report generator.

        Args:
            config: Application configuration
        """
        self.config = config
        self.sheet_config = config.output.sheets
        self.currency = config.output.currency

    def generate_report(
        self,
        summary: ReconciliationSummary,
        result: ReconciliationResult,
        output_path: Path,
    ) -> Path:
        """
        Generate the complete reconciliation report.

        Args:
            summary: Reconciliation summary
            result: Reconciliation result
            output_path: Path for output file

        Returns:
            Path to generated report

        Raises:
            ReportGenerationError: If the workbook cannot be written
        """
        names = sheet_names(self.config)
        if not names:
            raise ReportGenerationError("All report sheets are disabled in the configuration")
        if len(set(names)) != len(names):
            raise ReportGenerationError(f"Report sheet names must be unique: {names}")

        logger.info(f"Generating Excel report: {output_path} (sheets: {', '.join(names)})")

        wb = Workbook()
        if wb.active:
            wb.remove(wb.active)

        try:
            if self.sheet_config.summary.enabled:
                self._create_summary_sheet(wb, summary)
            if self.sheet_config.matched.enabled:
                self._create_matched_sheet(wb, result)
            if self.sheet_config.unmatched_bank.enabled:
                self._create_unmatched_bank_sheet(wb, result)
            if self.sheet_config.unmatched_recorded.enabled:
                self._create_unmatched_recorded_sheet(wb, result)
            if self.sheet_config.audit_trail.enabled:
                self._create_audit_trail_sheet(wb, summary, result)
        except ValueError as e:
            # openpyxl rejects invalid worksheet titles
            raise ReportGenerationError(f"Could not build report sheets: {e}") from e

        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            wb.save(output_path)
        except OSError as e:
            logger.error(f"Failed to save report: {e}")
            raise ReportGenerationError(f"Could not write report {output_path}: {e}") from e

        logger.info(f"Report saved: {output_path}")
        return output_path

    def _create_summary_sheet(self, wb: Workbook, summary: ReconciliationSummary) -> None:
        """Create the summary sheet with key metrics."""
        ws = wb.create_sheet(self.sheet_config.summary.name)

        ws["A1"] = "Fee Payment Reconciliation Summary"
        ws["A1"].font = Font(size=16, bold=True)
        ws.merge_cells("A1:D1")

        window = "-"
        if summary.window_start and summary.window_end:
            window = f"{summary.window_start} to {summary.window_end}"

        sections: list[tuple[str, list[tuple[str, Any]]]] = [
            (
                "Source Information",
                [
                    ("Bank Statement:", summary.statement_filename),
                    ("Payment Records:", summary.payments_source),
                    (
                        "Reconciliation Date:",
                        summary.reconciliation_date.strftime("%Y-%m-%d %H:%M:%S"),
                    ),
                    ("Payment Window:", window),
                ],
            ),
            (
                "Transaction Counts",
                [
                    ("Statement Credits:", summary.total_credits),
                    ("Debits Excluded:", summary.excluded_debits),
                    ("Recorded Payments:", summary.total_recorded_payments),
                    ("Matched:", summary.matched_count),
                    ("Unmatched from Bank:", summary.unmatched_bank_count),
                    ("Unmatched from Portal:", summary.unmatched_recorded_count),
                ],
            ),
            (
                "Match Rates",
                [
                    ("Bank Match Rate:", f"{summary.match_rate_bank:.1f}%"),
                    ("Portal Match Rate:", f"{summary.match_rate_recorded:.1f}%"),
                ],
            ),
            (
                "Amount Totals",
                [
                    ("Total Matched:", self._money(summary.total_matched)),
                    ("Total Unmatched from Bank:", self._money(summary.total_unmatched_bank)),
                    (
                        "Total Unmatched from Portal:",
                        self._money(summary.total_unmatched_recorded),
                    ),
                ],
            ),
        ]

        row = 3
        for title, entries in sections:
            ws[f"A{row}"] = title
            ws[f"A{row}"].font = Font(bold=True)
            row += 1
            for label, value in entries:
                ws[f"A{row}"] = label
                ws[f"B{row}"] = value
                row += 1
            row += 1

        ws.column_dimensions["A"].width = 30
        ws.column_dimensions["B"].width = 40

    def _create_matched_sheet(self, wb: Workbook, result: ReconciliationResult) -> None:
        ws = wb.create_sheet(self.sheet_config.matched.name)
        self._write_headers(
            ws,
            [
                "Bank Date",
                "Bank Row",
                "Bank Description",
                "Bank Amount",
                "Portal Date",
                "Payment ID",
                "Student Name",
                "Amount Paid",
                "Method",
                "Match Type",
                "Date Variance (Days)",
            ],
        )

        for row_num, pair in enumerate(result.matched, start=2):
            bank_txn = pair.bank_transaction
            payment = pair.recorded_payment
            self._write_row(
                ws,
                row_num,
                [
                    bank_txn.date,
                    bank_txn.source_row_index,
                    bank_txn.description,
                    float(bank_txn.amount),
                    payment.payment_date,
                    payment.id,
                    payment.student_name,
                    float(payment.amount_paid),
                    payment.payment_method,
                    pair.match_type,
                    pair.date_variance_days,
                ],
                fill=MATCH_FILL,
                amount_columns=(4, 8),
            )

        self._auto_fit_columns(ws)

    def _create_unmatched_bank_sheet(self, wb: Workbook, result: ReconciliationResult) -> None:
        ws = wb.create_sheet(self.sheet_config.unmatched_bank.name)
        self._write_headers(ws, ["Bank Date", "Row", "Description", "Amount"])

        for row_num, txn in enumerate(result.unmatched_bank, start=2):
            self._write_row(
                ws,
                row_num,
                [txn.posted_at or txn.date, txn.source_row_index, txn.description, float(txn.amount)],
                fill=UNMATCHED_FILL,
                amount_columns=(4,),
            )

        self._auto_fit_columns(ws)

    def _create_unmatched_recorded_sheet(
        self, wb: Workbook, result: ReconciliationResult
    ) -> None:
        ws = wb.create_sheet(self.sheet_config.unmatched_recorded.name)
        self._write_headers(
            ws,
            ["Portal Date", "Payment ID", "Student Name", "Amount", "Method", "Invoice ID"],
        )

        for row_num, payment in enumerate(result.unmatched_recorded, start=2):
            self._write_row(
                ws,
                row_num,
                [
                    payment.payment_date,
                    payment.id,
                    payment.student_name,
                    float(payment.amount_paid),
                    payment.payment_method,
                    payment.invoice_id or "",
                ],
                fill=UNMATCHED_FILL,
                amount_columns=(4,),
            )

        self._auto_fit_columns(ws)

    def _create_audit_trail_sheet(
        self,
        wb: Workbook,
        summary: ReconciliationSummary,
        result: ReconciliationResult,
    ) -> None:
        """Create the audit trail sheet."""
        ws = wb.create_sheet(self.sheet_config.audit_trail.name)

        ws["A1"] = "Reconciliation Audit Trail"
        ws["A1"].font = Font(size=14, bold=True)

        audit_info = [
            ("Generated At:", datetime.now().strftime("%Y-%m-%d %H:%M:%S")),
            ("Config File:", summary.config_file_used or "Default"),
            ("Tie-break Policy:", summary.tie_break),
            ("Date Tolerance (Days):", self.config.matching.date_tolerance_days),
            ("Processing Time:", f"{summary.processing_time_seconds:.2f} seconds"),
        ]

        row = 3
        for label, value in audit_info:
            ws[f"A{row}"] = label
            ws[f"B{row}"] = value
            row += 1

        row += 1
        ws[f"A{row}"] = "Match Log"
        ws[f"A{row}"].font = Font(bold=True)
        row += 1

        self._write_headers(ws, ["Bank Row", "Payment ID", "Amount", "Match Type"], row=row)
        row += 1

        for pair in result.matched:
            for col, value in enumerate(
                [
                    pair.bank_transaction.source_row_index,
                    pair.recorded_payment.id,
                    self._money(pair.bank_transaction.amount),
                    pair.match_type,
                ],
                start=1,
            ):
                ws.cell(row=row, column=col, value=value)
            row += 1

        self._auto_fit_columns(ws)

    def _money(self, amount) -> str:
        return f"{self.currency} {amount:,.2f}"

    def _write_headers(self, ws: Worksheet, headers: list[str], row: int = 1) -> None:
        for col, header in enumerate(headers, start=1):
            cell = ws.cell(row=row, column=col, value=header)
            cell.fill = HEADER_FILL
            cell.font = HEADER_FONT
            cell.border = THIN_BORDER

    def _write_row(
        self,
        ws: Worksheet,
        row_num: int,
        values: list[Any],
        fill: Optional[PatternFill] = None,
        amount_columns: tuple[int, ...] = (),
    ) -> None:
        for col, value in enumerate(values, start=1):
            cell = ws.cell(row=row_num, column=col, value=value)
            cell.border = THIN_BORDER
            if fill is not None:
                cell.fill = fill
            if col in amount_columns:
                cell.number_format = AMOUNT_FORMAT

    def _auto_fit_columns(self, ws: Worksheet) -> None:
        """Auto-fit column widths based on content."""
        for column_cells in ws.columns:
            max_length = 0
            column = column_cells[0].column_letter

            for cell in column_cells:
                if cell.value is not None:
                    max_length = max(max_length, len(str(cell.value)))

            ws.column_dimensions[column].width = min(max_length + 2, 50)


def sheet_names(config: ReconConfig) -> list[str]:
    """Names of the sheets a report will contain, in order."""
    sheets = config.output.sheets
    ordered: list[SheetConfig] = [
        sheets.summary,
        sheets.matched,
        sheets.unmatched_bank,
        sheets.unmatched_recorded,
        sheets.audit_trail,
    ]
    return [s.name for s in ordered if s.enabled]
