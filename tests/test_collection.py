"""
Tests for sub-item collections, using the invoice line items sample.
"""

import uuid
from decimal import Decimal

import pytest

from rowmodel import (
    CollectionSettings,
    ConfigurationError,
    EventType,
    IndexOutOfBoundsError,
    RowState,
    SubItemCollection,
    UnsupportedKeyTypeError,
)

from sample_entities import Invoice, LineItemCollection


def add_line(invoice, description, price, quantity=1):
    item = invoice.line_items.add()
    item.write_field("Text", description)
    item.write_field("price", price)
    item.write_field("quantity", quantity)
    return item


class TestAdd:
    """Adding items"""

    def test_new_item_is_linked_to_parent(self, invoice):
        item = invoice.line_items.add()

        assert isinstance(item.pk, uuid.UUID)
        assert item.read_field("fk_invoice") == invoice.pk
        assert item.item_state == RowState.ADDED
        assert item.table_name == "LineItems"
        assert item.parent_entity is invoice
        assert len(invoice.line_items) == 1

    def test_new_row_hooks_run_before_add(self, invoice):
        item = invoice.line_items.add()

        assert item.read_field("quantity") == 1
        assert invoice.new_records == ["Invoices", "LineItems"]

    def test_add_notifies_entity_and_collection(self, invoice):
        entity_events, list_events = [], []
        invoice.events.subscribe(entity_events.append, EventType.DATA_UPDATED)
        invoice.line_items.events.subscribe(list_events.append)

        item = invoice.line_items.add()

        assert [e.table_name for e in entity_events] == ["LineItems"]
        assert len(list_events) == 1
        assert list_events[0].event_type == EventType.LIST_CHANGED
        assert list_events[0].row is item.current_row

    def test_add_marks_entity_dirty(self, invoice):
        invoice.accept_changes()
        invoice.line_items.add()
        assert invoice.is_dirty

    def test_rows_of_other_parents_are_not_items(self, invoice):
        add_line(invoice, "Paper", Decimal("3.50"))
        invoice.line_items.table.add_row(pk_line_item=uuid.uuid4(), fk_invoice=uuid.uuid4())

        assert len(invoice.line_items) == 1
        assert len(invoice.line_items.table) == 2


class TestAccess:
    """Indexing and key lookup"""

    def test_index_out_of_bounds(self, invoice):
        invoice.line_items.add()
        with pytest.raises(IndexOutOfBoundsError):
            invoice.line_items[1]
        with pytest.raises(IndexOutOfBoundsError):
            invoice.line_items[-1]

    def test_items_wrapping_the_same_row_are_equal(self, invoice):
        item = invoice.line_items.add()

        assert invoice.line_items[0] == item
        assert invoice.line_items[0] is not item
        assert hash(invoice.line_items[0]) == hash(item)
        assert str(item) == item.id

    def test_index_of_and_contains(self, invoice):
        first = add_line(invoice, "Paper", Decimal("3.50"))
        second = add_line(invoice, "Ink", Decimal("12.00"))

        assert first.index_in_collection == 0
        assert invoice.line_items.index_of(second) == 1
        assert second in invoice.line_items
        assert invoice.line_items.index_of("Ink") == -1

        second.remove()
        assert second not in invoice.line_items

    def test_get_item_by_key(self, invoice):
        item = invoice.line_items.add()

        assert invoice.line_items.get_item_by_key(item.pk) == item
        assert invoice.line_items.get_item_by_key(str(item.pk)) == item
        with pytest.raises(IndexOutOfBoundsError):
            invoice.line_items.get_item_by_key(uuid.uuid4())

    def test_key_of_wrong_type_is_rejected(self, invoice):
        invoice.line_items.add()
        with pytest.raises(UnsupportedKeyTypeError):
            invoice.line_items.get_item_by_key(5)
        with pytest.raises(UnsupportedKeyTypeError):
            invoice.line_items.remove_by_key(5)


class TestFieldAccess:
    """Item reads and writes"""

    def test_field_map_applies_to_item_fields(self, invoice):
        item = add_line(invoice, "Paper", 3.5)

        assert item.current_row["description"] == "Paper"
        assert item.read_field("Text") == "Paper"
        assert item.read_field("price", Decimal) == Decimal("3.5")

    def test_item_write_notifies(self, invoice):
        item = invoice.line_items.add()
        list_events = []
        invoice.line_items.events.subscribe(list_events.append)

        assert item.write_field("quantity", 3) is True
        assert item.write_field("quantity", 3) is False

        assert len(list_events) == 1
        assert list_events[0].field_name == "quantity"

    def test_item_null_checks_and_columns(self, invoice):
        item = invoice.line_items.add()

        assert item.is_field_null("Text")
        assert item.check_column("discount", data_type=Decimal) is True
        assert invoice.line_items.table.get_column("discount").data_type is Decimal


class TestRemove:
    """Removing items"""

    def test_remove_by_index(self, invoice):
        add_line(invoice, "Paper", Decimal("3.50"))
        add_line(invoice, "Ink", Decimal("12.00"))

        assert invoice.line_items.remove(0) is True
        assert [item.read_field("Text") for item in invoice.line_items] == ["Ink"]

    def test_remove_by_key(self, invoice):
        item = invoice.line_items.add()

        assert invoice.line_items.remove_by_key(uuid.uuid4()) is False
        assert invoice.line_items.remove_by_key(item.pk) is True
        assert len(invoice.line_items) == 0

    def test_removed_saved_row_stays_deleted_until_accepted(self, invoice):
        item = invoice.line_items.add()
        invoice.accept_changes()

        item.remove()
        assert len(invoice.line_items) == 0
        assert item.item_state == RowState.DELETED
        assert invoice.is_dirty

        invoice.reject_changes()
        assert len(invoice.line_items) == 1

    def test_remove_notifies(self, invoice):
        item = invoice.line_items.add()
        list_events = []
        invoice.line_items.events.subscribe(list_events.append)

        item.remove()
        assert len(list_events) == 1
        assert list_events[0].row is item.current_row

    def test_clear(self, invoice):
        for _ in range(3):
            invoice.line_items.add()

        invoice.line_items.clear()
        assert len(invoice.line_items) == 0


class TestFilterAndSort:
    """Filters and sort expressions"""

    @pytest.fixture
    def lines(self, invoice):
        add_line(invoice, "Paper", Decimal("3.50"), 10)
        add_line(invoice, "Ink", Decimal("12.00"), 2)
        add_line(invoice, "Stapler", Decimal("8.00"), 1)
        return invoice.line_items

    def test_filter(self, lines):
        lines.filter = lambda row: row["quantity"] > 1
        assert [item.read_field("Text") for item in lines] == ["Paper", "Ink"]

        lines.clear_filter()
        assert len(lines) == 3

    def test_master_filter_combines_with_filter(self, lines):
        lines.filter_master = lambda row: row["price"] < 10
        lines.filter = lambda row: row["quantity"] == 1

        assert [item.read_field("Text") for item in lines] == ["Stapler"]

        lines.clear_filter()
        assert len(lines) == 2

    def test_sort_by_exposed_field_name(self, lines):
        lines.sort_by = "Text DESC"
        assert [item.read_field("Text") for item in lines] == ["Stapler", "Paper", "Ink"]

    def test_master_sort_comes_first(self, lines):
        lines.add().write_field("quantity", 2)
        lines.sort_by_master = "quantity"
        lines.sort_by = "price DESC"

        assert lines.complete_sort_expression == "quantity, price DESC"
        quantities = [item.read_field("quantity") for item in lines]
        assert quantities == [1, 2, 2, 10]
        # nulls sort first, so last when descending
        assert lines[1].read_field("Text") == "Ink"
        assert lines[2].is_field_null("price")

    def test_invalid_sort_expression(self, lines):
        with pytest.raises(ValueError):
            lines.sort_by = "price SIDEWAYS"
        assert lines.sort_by == ""


class TestConfiguration:
    """Collection settings"""

    def test_settings_default_from_parent(self, invoice):
        settings = invoice.line_items.settings

        assert settings.parent_table_name == "Invoices"
        assert settings.parent_table_primary_key_field == "pk_invoice"
        assert settings.primary_key_type == invoice.primary_key_type
        assert LineItemCollection.settings.parent_table_name == ""

    def test_missing_table_name(self, invoice):
        with pytest.raises(ConfigurationError):
            SubItemCollection(invoice)

    def test_missing_primary_key(self, invoice):
        with pytest.raises(ConfigurationError):
            SubItemCollection(invoice, CollectionSettings(table_name="Notes"))

    def test_collection_without_foreign_key_sees_every_row(self, invoice):
        notes = SubItemCollection(invoice, CollectionSettings(table_name="Notes", primary_key_field="pk_note"))
        notes.add()
        notes.add()

        assert len(notes) == 2
        assert not notes.table.has_column("fk_invoice")

    def test_collections_reattach_after_load(self, invoice):
        invoice.line_items.add()
        clone = Invoice(store=invoice.store.copy())

        assert len(clone.line_items) == 1
