"""Report generation and summary computation."""

from .summary import summarize, total_matched, total_unmatched_bank, total_unmatched_recorded
from .excel_generator import ExcelReportGenerator
from .exporters import export_csv, export_json, result_to_dict, result_to_frame

__all__ = [
    "summarize",
    "total_matched",
    "total_unmatched_bank",
    "total_unmatched_recorded",
    "ExcelReportGenerator",
    "export_csv",
    "export_json",
    "result_to_dict",
    "result_to_frame",
]
