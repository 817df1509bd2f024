from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from account_import.models.config_models import (
    AppConfig,
    DatabaseConfig,
    EntityOverride,
    ImportSettings,
)
from account_import.models.records import ENTITIES
from account_import.models.rule_table import RuleTable

"""Config loader.

Responsibilities:
- Load YAML config (default config/import.yml)
- Validate against the bundled JSON schema (config_schema.json)
- Apply defaults
- Check entity overrides against the record types they build
"""

SCHEMA_PATH = Path(__file__).parent / "config_schema.json"
DEFAULT_CONFIG_PATH = Path("config/import.yml")


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against JSON schema.

    Raises:
        ConfigError: schema file missing / not valid JSON, or the config data
            fails schema validation (missing keys, wrong types, extra keys).
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def _entity_overrides(raw: dict[str, Any]) -> dict[str, EntityOverride]:
    overrides: dict[str, EntityOverride] = {}
    for name, entity_raw in raw.items():
        rules = None
        if entity_raw.get("columns"):
            try:
                rules = RuleTable.from_columns(entity_raw["columns"])
                ENTITIES[name].check_rules(rules)
            except ValueError as e:
                raise ConfigError(f"entity '{name}': {e}") from e
        overrides[name] = EntityOverride(table=entity_raw.get("table"), rules=rules)
    return overrides


def load_config(path: Path) -> AppConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e

    _validate_config_schema(data)

    db_raw = data.get("database") or {}
    db = DatabaseConfig(
        host=db_raw.get("host"),
        port=db_raw.get("port"),
        user=db_raw.get("user"),
        password=db_raw.get("password"),
        database=db_raw.get("database"),
        dsn=db_raw.get("dsn"),
        pool_min=db_raw.get("pool_min", 1),
        pool_max=db_raw.get("pool_max", 10),
    )
    if db.pool_min > db.pool_max:
        raise ConfigError(f"database.pool_min ({db.pool_min}) exceeds pool_max ({db.pool_max})")

    imp_raw = data.get("import") or {}
    settings = ImportSettings(
        commit_policy=imp_raw.get("commit_policy", "buffer_then_commit"),
        max_workers=imp_raw.get("max_workers"),
        page_size=imp_raw.get("page_size", 1000),
        bcrypt_rounds=imp_raw.get("bcrypt_rounds", 12),
    )

    return AppConfig(
        database=db,
        settings=settings,
        entities=_entity_overrides(data.get("entities") or {}),
    )
