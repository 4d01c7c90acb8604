"""Parsers for uploaded bank statements."""

from .statement_parser import StatementParser

__all__ = ["StatementParser"]
