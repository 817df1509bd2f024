"""Spreadsheet import / export of user and customer accounts into PostgreSQL."""

__version__ = "0.1.0"
