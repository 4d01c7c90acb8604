"""Custom exceptions for the reconciliation application."""


class ReconciliationError(Exception):
    """Base exception for reconciliation errors."""

    pass


class ParseError(ReconciliationError):
    """Uploaded bank statement is malformed or holds no usable rows."""

    pass


class FetchError(ReconciliationError):
    """Recorded payments could not be fetched from the payment source."""

    pass


class ConfigurationError(ReconciliationError):
    """Error in configuration."""

    pass


class ReportGenerationError(ReconciliationError):
    """Error writing a reconciliation report."""

    pass
