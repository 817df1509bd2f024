from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum

"""Column rule table for spreadsheet validation.

A RuleTable maps a column index to the record field it fills and the ordered
list of rule tags applied to its cell. The table is fixed when an import is
configured and is only read while rows are being processed.

Rules can be written in the compact "field,tag,tag" form, e.g.::

    RuleTable.from_specs({0: "username,required", 1: "email,required,unique"})
"""

__all__ = [
    "RuleTag",
    "ColumnRule",
    "RuleTable",
]


class RuleTag(Enum):
    """Validation tag attached to a column.

    - REQUIRED: the trimmed cell must not be empty
    - UNIQUE: the value must not repeat within the file nor exist in the store
    """
    REQUIRED = "required"
    UNIQUE = "unique"


@dataclass(frozen=True)
class ColumnRule:
    index: int  # 0-based column index in the sheet
    field: str  # record field / table column name
    rules: tuple[RuleTag, ...] = ()

    @property
    def is_unique(self) -> bool:
        return RuleTag.UNIQUE in self.rules

    @property
    def is_required(self) -> bool:
        return RuleTag.REQUIRED in self.rules

    @staticmethod
    def parse(index: int, spec: str) -> ColumnRule:
        """Parse the compact "field,tag,tag" notation."""
        parts = [p.strip() for p in spec.split(",")]
        field = parts[0]
        if not field:
            raise ValueError(f"column {index}: empty field name in rule '{spec}'")
        try:
            tags = tuple(RuleTag(p) for p in parts[1:] if p)
        except ValueError as e:
            raise ValueError(f"column {index}: unknown rule in '{spec}'") from e
        return ColumnRule(index=index, field=field, rules=tags)


class RuleTable:
    """Ordered, read-only collection of ColumnRule keyed by column index."""

    def __init__(self, columns: Iterable[ColumnRule]) -> None:
        ordered = sorted(columns, key=lambda c: c.index)
        seen_fields: set[str] = set()
        seen_indexes: set[int] = set()
        for col in ordered:
            if col.index < 0:
                raise ValueError(f"negative column index for field '{col.field}'")
            if col.index in seen_indexes:
                raise ValueError(f"column {col.index} defined more than once")
            if col.field in seen_fields:
                raise ValueError(f"field '{col.field}' mapped to more than one column")
            seen_indexes.add(col.index)
            seen_fields.add(col.field)
        self._columns: tuple[ColumnRule, ...] = tuple(ordered)

    @classmethod
    def from_specs(cls, specs: Mapping[int, str]) -> RuleTable:
        return cls(ColumnRule.parse(i, s) for i, s in specs.items())

    @classmethod
    def from_columns(cls, columns: Sequence[Mapping[str, object]]) -> RuleTable:
        """Build from the config form: list position is the column index."""
        rules: list[ColumnRule] = []
        for index, raw in enumerate(columns):
            tags = tuple(RuleTag(str(t)) for t in (raw.get("rules") or []))  # type: ignore[union-attr]
            rules.append(ColumnRule(index=index, field=str(raw["field"]), rules=tags))
        return cls(rules)

    def __iter__(self) -> Iterator[ColumnRule]:
        return iter(self._columns)

    def __len__(self) -> int:
        return len(self._columns)

    @property
    def fields(self) -> list[str]:
        return [c.field for c in self._columns]

    @property
    def unique_fields(self) -> list[str]:
        return [c.field for c in self._columns if c.is_unique]

    def unique_columns(self) -> list[ColumnRule]:
        return [c for c in self._columns if c.is_unique]

    def __repr__(self) -> str:  # pragma: no cover
        body = ", ".join(
            f"{c.index}:{','.join([c.field, *(t.value for t in c.rules)])}" for c in self._columns
        )
        return f"RuleTable({body})"
