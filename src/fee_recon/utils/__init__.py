"""Utility modules."""

from .exceptions import (
    ReconciliationError,
    ParseError,
    FetchError,
    ConfigurationError,
    ReportGenerationError,
)
from .logging_config import setup_logging

__all__ = [
    "ReconciliationError",
    "ParseError",
    "FetchError",
    "ConfigurationError",
    "ReportGenerationError",
    "setup_logging",
]
