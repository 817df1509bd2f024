from __future__ import annotations

import dataclasses
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from .config_models import EntityOverride
from .row_data import RowData
from .rule_table import RuleTable

"""Imported record types and the entity registry.

An EntitySpec ties together everything the importer needs to know about one
kind of record: target table, record dataclass, column rule table, which fields
are stored hashed, and how the record is laid out when exported.
"""

__all__ = [
    "UserRecord",
    "CustomerRecord",
    "EntitySpec",
    "ENTITIES",
    "get_entity",
]


@dataclass(frozen=True)
class UserRecord:
    username: str
    email: str
    password: str  # bcrypt hash, never the plaintext
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def as_row(self) -> dict[str, Any]:
        return dataclasses.asdict(self)


@dataclass(frozen=True)
class CustomerRecord:
    username: str
    email: str
    phone: str
    address: str
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def as_row(self) -> dict[str, Any]:
        return dataclasses.asdict(self)


_TIMESTAMP_FIELDS = ("created_at", "updated_at")


@dataclass(frozen=True)
class EntitySpec:
    """Import/export definition of one entity (users, customers)."""
    name: str
    table: str
    record_type: type
    rules: RuleTable
    hashed_fields: frozenset[str] = frozenset()
    export_sheet: str = "Sheet1"
    export_prefix: str = "export"
    export_columns: tuple[tuple[str, str], ...] = ()  # (header, column)

    def check_rules(self, rules: RuleTable | None = None) -> None:
        """Verify a rule table can build this entity's record.

        Raises:
            ValueError: a rule field is not a record field, or a record field
                without default is not covered by any column.
        """
        rules = rules if rules is not None else self.rules
        record_fields = {f.name: f for f in dataclasses.fields(self.record_type)}
        unknown = [f for f in rules.fields if f not in record_fields or f in _TIMESTAMP_FIELDS]
        if unknown:
            raise ValueError(f"{self.name}: unknown fields {sorted(unknown)}")
        missing = [
            name
            for name, f in record_fields.items()
            if f.default is dataclasses.MISSING and name not in rules.fields
        ]
        if missing:
            raise ValueError(f"{self.name}: no column for fields {sorted(missing)}")

    def with_overrides(self, table: str | None = None, rules: RuleTable | None = None) -> EntitySpec:
        if rules is not None:
            self.check_rules(rules)
        return dataclasses.replace(
            self,
            table=table or self.table,
            rules=rules if rules is not None else self.rules,
        )

    def materialize(
        self,
        row: RowData,
        password_hasher: Callable[[str], str],
        now: datetime,
    ) -> Any:
        """Map a validated row positionally into the record type."""
        values: dict[str, Any] = {}
        for col in self.rules:
            value = row.cell(col.index)
            if col.field in self.hashed_fields:
                value = password_hasher(value)
            values[col.field] = value
        values["created_at"] = now
        values["updated_at"] = now
        return self.record_type(**values)


ENTITIES: dict[str, EntitySpec] = {
    "users": EntitySpec(
        name="users",
        table="users",
        record_type=UserRecord,
        rules=RuleTable.from_specs({
            0: "username,required",
            1: "email,required,unique",
            2: "password,required",
        }),
        hashed_fields=frozenset({"password"}),
        export_sheet="Users",
        export_prefix="user",
        export_columns=(
            ("ID", "id"),
            ("Username", "username"),
            ("Email", "email"),
            ("CreatedAt", "created_at"),
            ("UpdatedAt", "updated_at"),
        ),
    ),
    "customers": EntitySpec(
        name="customers",
        table="customers",
        record_type=CustomerRecord,
        rules=RuleTable.from_specs({
            0: "username,required",
            1: "email,required,unique",
            2: "phone,required",
            3: "address,required",
        }),
        export_sheet="Customer",
        export_prefix="customer",
        export_columns=(
            ("ID", "id"),
            ("Username", "username"),
            ("Email", "email"),
            ("Phone", "phone"),
            ("Address", "address"),
            ("CreatedAt", "created_at"),
        ),
    ),
}


def get_entity(name: str, override: EntityOverride | None = None) -> EntitySpec:
    """Look up an entity and apply config overrides (table / rules).

    Raises:
        KeyError: unknown entity name
        ValueError: override rules do not fit the record type
    """
    spec = ENTITIES[name]
    if override is not None:
        spec = spec.with_overrides(table=override.table, rules=override.rules)
    return spec
