"""Domain models for the spreadsheet account importer.

This package contains the domain model classes used throughout the application:
configuration, rule tables, rows, records and import results.
"""

from .config_models import AppConfig, DatabaseConfig, EntityOverride, ImportSettings
from .error_record import ErrorRecord
from .import_result import CommitPolicy, ImportResult, ImportStatus
from .records import ENTITIES, CustomerRecord, EntitySpec, UserRecord, get_entity
from .row_data import RowData
from .rule_table import ColumnRule, RuleTable, RuleTag
from .validation_report import ErrorType, FieldError, RowOutcome, ValidationReport

__all__ = [
    # Configuration models
    "AppConfig",
    "DatabaseConfig",
    "EntityOverride",
    "ImportSettings",
    # Rules / rows
    "ColumnRule",
    "RuleTable",
    "RuleTag",
    "RowData",
    # Records
    "ENTITIES",
    "CustomerRecord",
    "EntitySpec",
    "UserRecord",
    "get_entity",
    # Results
    "CommitPolicy",
    "ErrorRecord",
    "ErrorType",
    "FieldError",
    "ImportResult",
    "ImportStatus",
    "RowOutcome",
    "ValidationReport",
]
