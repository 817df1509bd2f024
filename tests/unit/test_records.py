from __future__ import annotations

from datetime import UTC, datetime

import pytest

from account_import.models.config_models import EntityOverride
from account_import.models.records import ENTITIES, CustomerRecord, UserRecord, get_entity
from account_import.models.row_data import RowData
from account_import.models.rule_table import RuleTable

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


def test_user_materialize_hashes_password():
    users = ENTITIES["users"]
    rec = users.materialize(RowData(2, ("alice", "a@x", "pw")), lambda p: f"h({p})", NOW)
    assert rec == UserRecord("alice", "a@x", "h(pw)", NOW, NOW)
    assert rec.as_row()["password"] == "h(pw)"


def test_customer_materialize_is_positional():
    customers = ENTITIES["customers"]
    rec = customers.materialize(RowData(2, ("bob", "b@x", "0812", "Jakarta")), str.upper, NOW)
    assert isinstance(rec, CustomerRecord)
    assert (rec.phone, rec.address) == ("0812", "Jakarta")
    assert rec.created_at == NOW


def test_default_rules_match_known_tables():
    assert ENTITIES["users"].rules.unique_fields == ["email"]
    assert ENTITIES["customers"].rules.fields == ["username", "email", "phone", "address"]


def test_get_entity_applies_override():
    rules = RuleTable.from_specs({0: "email,required,unique", 1: "username,required", 2: "password"})
    spec = get_entity("users", EntityOverride(table="app_users", rules=rules))
    assert spec.table == "app_users"
    assert spec.rules.fields == ["email", "username", "password"]
    # registry untouched
    assert ENTITIES["users"].table == "users"


def test_override_rules_must_cover_record_fields():
    rules = RuleTable.from_specs({0: "username,required", 1: "email,unique"})
    with pytest.raises(ValueError, match="no column for fields"):
        get_entity("users", EntityOverride(rules=rules))


def test_override_rules_reject_unknown_field():
    rules = RuleTable.from_specs({0: "username", 1: "email", 2: "password", 3: "nickname"})
    with pytest.raises(ValueError, match="unknown fields"):
        ENTITIES["users"].check_rules(rules)


def test_unknown_entity():
    with pytest.raises(KeyError):
        get_entity("orders")
