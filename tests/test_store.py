"""
Tests for the in-memory row store: row states, change tracking, schema
changes, key lookups and diagnostics dumps.
"""

import json
import uuid
from decimal import Decimal

import pytest

from rowmodel import (
    NULL,
    ColumnNotFoundError,
    RowDeletedError,
    RowState,
    RowStore,
    TableNotFoundError,
)


@pytest.fixture
def store():
    return RowStore("Test")


@pytest.fixture
def people(store):
    return store.add_table("People", [("pk", int), ("name", str)])


class TestRowStates:
    """Row change tracking"""

    def test_new_row_is_detached_until_added(self, people):
        row = people.new_row()
        assert row.state == RowState.DETACHED
        assert len(people) == 0

        people.add_row(row)
        assert row.state == RowState.ADDED
        assert len(people) == 1

    def test_accept_changes_marks_rows_unchanged(self, store, people):
        row = people.add_row(pk=1, name="Ann")
        assert store.has_changes()

        store.accept_changes()
        assert row.state == RowState.UNCHANGED
        assert not store.has_changes()

    def test_write_marks_row_modified(self, store, people):
        row = people.add_row(pk=1, name="Ann")
        store.accept_changes()

        assert row.set_value("name", "Bob") is True
        assert row.state == RowState.MODIFIED
        assert store.has_changes()

    def test_writing_equal_value_keeps_row_unchanged(self, store, people):
        row = people.add_row(pk=1, name="Ann")
        store.accept_changes()

        assert row.set_value("name", "Ann") is False
        assert row.state == RowState.UNCHANGED

    def test_forced_write_marks_row_modified(self, store, people):
        row = people.add_row(pk=1, name="Ann")
        store.accept_changes()

        assert row.set_value("name", "Ann", force=True) is True
        assert row.state == RowState.MODIFIED

    def test_deleting_added_row_detaches_it(self, people):
        row = people.add_row(pk=1, name="Ann")
        row.delete()

        assert len(people) == 0
        assert not row.is_live
        with pytest.raises(RowDeletedError):
            row["name"]

    def test_deleting_unchanged_row_defers_removal(self, store, people):
        row = people.add_row(pk=1, name="Ann")
        store.accept_changes()

        row.delete()
        assert row.state == RowState.DELETED
        assert len(people) == 1
        assert people.live_rows() == []
        with pytest.raises(RowDeletedError):
            row["name"] = "Bob"

        store.accept_changes()
        assert len(people) == 0

    def test_reject_changes_restores_original_values(self, store, people):
        row = people.add_row(pk=1, name="Ann")
        store.accept_changes()
        row["name"] = "Bob"
        added = people.add_row(pk=2, name="Cid")

        store.reject_changes()

        assert row["name"] == "Ann"
        assert row.state == RowState.UNCHANGED
        assert not added.is_live
        assert people.live_rows() == [row]

    def test_reject_changes_restores_deleted_rows(self, store, people):
        row = people.add_row(pk=1, name="Ann")
        store.accept_changes()
        row.delete()

        store.reject_changes()
        assert row.state == RowState.UNCHANGED
        assert people.find("pk", 1) is row


class TestSchema:
    """Columns and null cells"""

    def test_missing_column_raises(self, people):
        row = people.add_row(pk=1, name="Ann")
        with pytest.raises(ColumnNotFoundError) as exc_info:
            row["age"]
        assert exc_info.value.field_name == "age"
        assert exc_info.value.table_name == "People"
        assert isinstance(exc_info.value, KeyError)

    def test_add_column_keeps_existing_data(self, people):
        row = people.add_row(pk=1, name="Ann")
        people.add_column("age", int)

        assert row["name"] == "Ann"
        assert row["age"] is None
        assert people.get_column("age").data_type is int

    def test_add_existing_column_is_a_no_op(self, people):
        column = people.add_column("name", int)
        assert column.data_type is str

    def test_column_added_while_row_is_detached(self, people):
        row = people.new_row()
        people.add_column("age", int)
        row["age"] = 30
        people.add_row(row)
        assert row["age"] == 30

    def test_null_marker(self):
        assert not NULL
        assert repr(NULL) == "NULL"


class TestLookups:
    """Key index and predicate search"""

    def test_find_matches_exact_values_only(self, people):
        people.add_row(pk=1, name="Ann")
        second = people.add_row(pk=2, name="Bob")

        assert people.find("pk", 2) is second
        assert people.find("pk", "2") is None
        assert people.find("pk", 3) is None

    @pytest.mark.parametrize("key", [True, 1.0, Decimal(1)])
    def test_find_does_not_match_equal_values_of_other_types(self, people, key):
        people.add_row(pk=1, name="Ann")

        assert people.find("pk", key) is None
        assert people.find_all("pk", key) == []

    def test_find_works_for_uuid_and_string_keys(self, store):
        table = store.add_table("Things", [("key", uuid.UUID), ("code", str)])
        key = uuid.uuid4()
        row = table.add_row(key=key, code="it's")

        assert table.find("key", key) is row
        assert table.find("key", uuid.UUID(str(key))) is row
        assert table.find("code", "it's") is row

    def test_duplicate_keys_resolve_to_first_row_in_table_order(self, people):
        first = people.add_row(pk=5, name="Ann")
        second = people.add_row(pk=5, name="Bob")
        assert people.find("pk", 5) is first

        first["pk"] = 6
        assert people.find("pk", 5) is second
        assert people.find("pk", 6) is first

    def test_index_follows_rows_added_after_lookup(self, people):
        assert people.find("pk", 1) is None
        row = people.add_row(pk=1, name="Ann")
        assert people.find("pk", 1) is row

    def test_find_skips_deleted_rows(self, store, people):
        row = people.add_row(pk=1, name="Ann")
        store.accept_changes()
        assert people.find("pk", 1) is row

        row.delete()
        assert people.find("pk", 1) is None

    def test_find_on_missing_column_raises(self, people):
        with pytest.raises(ColumnNotFoundError):
            people.find("age", 1)

    def test_select_filters_and_sorts(self, people):
        people.add_row(pk=1, name="Cid")
        people.add_row(pk=2, name="Ann")
        people.add_row(pk=3, name="Bob")

        rows = people.select(lambda row: row["pk"] > 1, sort_key=lambda row: row["name"])
        assert [row["name"] for row in rows] == ["Ann", "Bob"]


class TestRowStore:
    """Tables, copies and dumps"""

    def test_missing_table_raises(self, store):
        with pytest.raises(TableNotFoundError):
            store["Nothing"]

    def test_add_table_twice_raises(self, store, people):
        with pytest.raises(ValueError):
            store.add_table("People")

    def test_ensure_table_returns_existing_table(self, store, people):
        assert store.ensure_table("People", [("age", int)]) is people
        assert people.has_column("age")
        assert "People" in store

    def test_copy_is_independent(self, store, people):
        row = people.add_row(pk=1, name="Ann")
        store.accept_changes()
        row["name"] = "Bob"

        clone = store.copy()
        cloned_row = clone["People"].find("pk", 1)
        assert cloned_row["name"] == "Bob"
        assert cloned_row.state == RowState.MODIFIED

        cloned_row["name"] = "Cid"
        assert row["name"] == "Bob"

        clone.reject_changes()
        assert cloned_row["name"] == "Ann"

    def test_dump_is_structured_json(self, store, people):
        key = uuid.uuid4()
        prices = store.add_table("Prices", [("key", uuid.UUID), ("amount", Decimal)])
        prices.add_row(key=key, amount=Decimal("9.99"))
        people.add_row(pk=1, name="Ann")

        data = json.loads(store.dump())

        assert data["name"] == "Test"
        tables = {table["name"]: table for table in data["tables"]}
        assert tables["People"]["columns"][1] == {"name": "name", "data_type": "str", "max_length": -1}
        assert tables["Prices"]["rows"][0] == {
            "state": "added",
            "values": {"key": str(key), "amount": "9.99"},
        }
