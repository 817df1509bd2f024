from __future__ import annotations

from dataclasses import dataclass, field

from .rule_table import RuleTable

"""Config dataclasses for the spreadsheet importer.

These are produced by account_import.config.loader after schema validation and
carry typed values only (no raw YAML dicts).
"""


@dataclass(frozen=True)
class DatabaseConfig:
    """Database connection configuration.

    Used as fallback when environment variables are not set.
    Environment variables take precedence over these values.
    """
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None
    pool_min: int = 1
    pool_max: int = 10  # 同時接続上限 (行タスクはこれを超えると待機)


@dataclass(frozen=True)
class ImportSettings:
    commit_policy: str = "buffer_then_commit"  # buffer_then_commit | per_row
    max_workers: int | None = None  # None = one worker per data row
    page_size: int = 1000  # execute_values page_size
    bcrypt_rounds: int = 12


@dataclass(frozen=True)
class EntityOverride:
    """Per-entity overrides of the built-in table name / rule table."""
    table: str | None = None
    rules: RuleTable | None = None


@dataclass(frozen=True)
class AppConfig:
    """Root configuration object."""
    database: DatabaseConfig
    settings: ImportSettings = field(default_factory=ImportSettings)
    entities: dict[str, EntityOverride] = field(default_factory=dict)
