"""
Sample business entities used across the test suite.
"""

from datetime import date
from decimal import Decimal
from enum import Enum

from rowmodel import (
    BusinessEntity,
    CollectionSettings,
    Field,
    KeyType,
    OptionalField,
    SubItemCollection,
    XLinkCollection,
    XLinkItem,
    XLinkSettings,
)


class AddressFormat(Enum):
    CITY_STATE_ZIP = 0
    ZIP_CITY = 1
    CITY_ZIP = 2


class Payment(BusinessEntity):
    master_table = "Payments"
    primary_key_field = "pk_payment"

    amount = Field("amount", Decimal)
    reference = Field("reference", str)
    received_on = Field("received_on", date)
    legacy_code = Field("legacy_code", str, read_only=True)


class Country(BusinessEntity):
    master_table = "Countries"
    primary_key_field = "pk_country"

    name = Field("name", str)
    address_format = OptionalField("iaddrformat", AddressFormat, default=AddressFormat.CITY_STATE_ZIP)


class Customer(BusinessEntity):
    master_table = "Customer"
    primary_key_field = "pk_customer"

    first_name = Field("FirstName", str)

    def configure(self):
        self.set_table_map("Customer", "tblCustomers")
        self.set_field_map("FirstName", "cFirstName")


class LineItemCollection(SubItemCollection):
    settings = CollectionSettings(
        table_name="LineItems",
        primary_key_field="pk_line_item",
        foreign_key_field="fk_invoice",
    )

    def reset_table(self):
        super().reset_table()
        self.table.add_column(("quantity", int))
        self.table.add_column(("description", str))
        self.table.add_column(("price", Decimal))

    def add_new_row_information(self, row):
        row["quantity"] = 1


class Invoice(BusinessEntity):
    master_table = "Invoices"
    primary_key_field = "pk_invoice"

    number = Field("number", str)

    def configure(self):
        self.new_records = []
        self.set_field_map("Text", "description", "LineItems")

    def populate_new_record(self, row, table_name):
        self.new_records.append(table_name)

    def load_sub_item_collections(self):
        self.line_items = LineItemCollection(self)


class NameCategoryXLinkCollection(XLinkCollection):
    settings = XLinkSettings(
        table_name="NameCategoryAssignment",
        primary_key_field="pk_assignment",
        foreign_key_field="fk_name",
        target_table_name="NameCategories",
        target_foreign_key_field="fk_category",
        target_primary_key_field="pk_category",
        target_text_field="category",
    )


class GuardedCategoryItem(XLinkItem):
    def can_remove_target_record(self):
        return False


class GuardedCategoryCollection(NameCategoryXLinkCollection):
    item_class = GuardedCategoryItem


class AutoCategoryCollection(NameCategoryXLinkCollection):
    def configure(self):
        self.settings.auto_add_target = True


class NameTagCollection(XLinkCollection):
    """Targets are attached by hand; the link table has no target key column."""
    settings = XLinkSettings(
        table_name="NameTags",
        primary_key_field="pk_name_tag",
        foreign_key_field="fk_name",
        target_table_name="NameCategories",
        target_primary_key_field="pk_category",
        target_text_field="category",
    )


class Name(BusinessEntity):
    master_table = "Names"
    primary_key_field = "pk_name"
    primary_key_type = KeyType.INTEGER

    first_name = Field("first_name", str)
    last_name = Field("last_name", str)

    def load_sub_item_collections(self):
        self.categories = NameCategoryXLinkCollection(self)


def seed_categories(name: Name) -> None:
    """Target rows {1: "Visa", 2: "MasterCard"}, already accepted."""
    targets = name.categories.target_table
    targets.add_row(pk_category=1, category="Visa")
    targets.add_row(pk_category=2, category="MasterCard")
    targets.accept_changes()
