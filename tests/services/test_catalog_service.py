"""
Tests for CatalogService.

Verifies:
- Items are created with caller-chosen or generated ids
- SKUs are unique per tenant, not globally
- Items are invisible across tenants
- Updates change only the supplied fields
- Invalid fields are rejected
- Unique constraint violations at flush map to catalog errors
"""

from datetime import timedelta

import pytest
from sqlalchemy.exc import IntegrityError

from inventauri.exceptions import (
    DuplicateSkuError,
    InvalidItemError,
    InvalidTenantError,
    ItemNotFoundError,
)
from inventauri.services import CatalogService

TENANT_A = "tenant-a"
TENANT_B = "tenant-b"


class TestCreateItem:
    def test_create_with_all_fields(self, catalog_service, deterministic_clock):
        item = catalog_service.create_item(
            TENANT_A,
            "Oat milk",
            item_id="sku-oat",
            sku="OAT-1",
            category="Dairy alternatives",
            unit="l",
            price_cents=329,
        )

        assert item.id == "sku-oat"
        assert item.tenant_id == TENANT_A
        assert item.name == "Oat milk"
        assert item.sku == "OAT-1"
        assert item.category == "Dairy alternatives"
        assert item.unit == "l"
        assert item.price_cents == 329
        assert item.is_active is True
        assert item.created_at == deterministic_clock.now_utc()

    def test_generated_id(self, catalog_service):
        item = catalog_service.create_item(TENANT_A, "Croissant")

        assert item.id
        assert item.price_cents == 0
        assert item.sku is None

    def test_duplicate_sku_within_tenant(self, catalog_service):
        catalog_service.create_item(TENANT_A, "Beans", sku="ESP-1")

        with pytest.raises(DuplicateSkuError) as exc_info:
            catalog_service.create_item(TENANT_A, "Other beans", sku="ESP-1")
        assert exc_info.value.sku == "ESP-1"

    def test_same_sku_in_two_tenants(self, catalog_service):
        a = catalog_service.create_item(TENANT_A, "Beans", sku="ESP-1")
        b = catalog_service.create_item(TENANT_B, "Beans", sku="ESP-1")

        assert a.id != b.id

    def test_duplicate_id_rejected(self, catalog_service):
        catalog_service.create_item(TENANT_A, "Beans", item_id="sku-1")

        with pytest.raises(InvalidItemError) as exc_info:
            catalog_service.create_item(TENANT_B, "Tea", item_id="sku-1")
        assert exc_info.value.field == "id"

    def test_sku_inserted_concurrently_is_duplicate_sku(
        self, catalog_service, seeded_items, monkeypatch
    ):
        """The unique constraint still reports DuplicateSkuError when the pre-check misses."""
        monkeypatch.setattr(CatalogService, "_sku_taken", lambda self, tenant_id, sku: False)

        with pytest.raises(DuplicateSkuError) as exc_info:
            catalog_service.create_item(TENANT_A, "Other beans", sku="ESP-1")
        assert exc_info.value.tenant_id == TENANT_A
        assert isinstance(exc_info.value.__cause__, IntegrityError)

    def test_id_inserted_concurrently_is_invalid_item(
        self, catalog_service, seeded_items, monkeypatch
    ):
        monkeypatch.setattr(CatalogService, "_id_taken", lambda self, item_id: False)

        with pytest.raises(InvalidItemError) as exc_info:
            catalog_service.create_item(TENANT_A, "Copy", item_id="sku-1")
        assert exc_info.value.field == "id"
        assert isinstance(exc_info.value.__cause__, IntegrityError)

    @pytest.mark.parametrize("price", [2**63 - 1, 0])
    def test_price_at_bigint_bounds(self, catalog_service, price):
        assert catalog_service.create_item(TENANT_A, "Gold", price_cents=price).price_cents == price

    @pytest.mark.parametrize(
        "kwargs, field",
        [
            ({"name": "ok", "price_cents": 2**63}, "price_cents"),
            ({"name": "ok", "price_cents": 10**30}, "price_cents"),
            ({"name": ""}, "name"),
            ({"name": None}, "name"),
            ({"name": "n" * 256}, "name"),
            ({"name": "ok", "price_cents": -1}, "price_cents"),
            ({"name": "ok", "price_cents": 1.5}, "price_cents"),
            ({"name": "ok", "price_cents": True}, "price_cents"),
            ({"name": "ok", "unit": "u" * 21}, "unit"),
            ({"name": "ok", "sku": 12}, "sku"),
            ({"name": "ok", "item_id": "  "}, "id"),
        ],
    )
    def test_invalid_fields(self, catalog_service, kwargs, field):
        name = kwargs.pop("name")
        with pytest.raises(InvalidItemError) as exc_info:
            catalog_service.create_item(TENANT_A, name, **kwargs)
        assert exc_info.value.field == field

    def test_invalid_tenant(self, catalog_service):
        with pytest.raises(InvalidTenantError):
            catalog_service.create_item("", "Beans")


class TestGetAndList:
    def test_get_item(self, catalog_service):
        created = catalog_service.create_item(TENANT_A, "Beans", item_id="sku-1")

        assert catalog_service.get_item(TENANT_A, "sku-1") == created

    def test_get_unknown(self, catalog_service):
        with pytest.raises(ItemNotFoundError):
            catalog_service.get_item(TENANT_A, "nope")

    def test_get_foreign_item(self, catalog_service):
        catalog_service.create_item(TENANT_B, "Tea", item_id="b-1")

        with pytest.raises(ItemNotFoundError):
            catalog_service.get_item(TENANT_A, "b-1")

    def test_list_is_tenant_scoped_newest_first(self, catalog_service, deterministic_clock):
        catalog_service.create_item(TENANT_A, "First", item_id="a-1")
        deterministic_clock.advance(60)
        catalog_service.create_item(TENANT_A, "Second", item_id="a-2")
        catalog_service.create_item(TENANT_B, "Other", item_id="b-1")

        items = catalog_service.list_items(TENANT_A)

        assert [i.id for i in items] == ["a-2", "a-1"]

    def test_list_active_only(self, catalog_service):
        catalog_service.create_item(TENANT_A, "Live", item_id="a-1")
        catalog_service.create_item(TENANT_A, "Retired", item_id="a-2", is_active=False)

        assert [i.id for i in catalog_service.list_items(TENANT_A, active_only=True)] == ["a-1"]
        assert len(catalog_service.list_items(TENANT_A)) == 2


class TestUpdateItem:
    def test_update_supplied_fields_only(self, catalog_service, deterministic_clock):
        catalog_service.create_item(
            TENANT_A, "Beans", item_id="sku-1", category="Coffee", unit="kg", price_cents=1200
        )
        deterministic_clock.advance(timedelta(minutes=5).seconds)

        updated = catalog_service.update_item(TENANT_A, "sku-1", price_cents=1350)

        assert updated.price_cents == 1350
        assert updated.name == "Beans"
        assert updated.category == "Coffee"
        assert updated.unit == "kg"
        assert updated.updated_at == deterministic_clock.now_utc()
        assert updated.updated_at > updated.created_at

    def test_deactivate_and_rename(self, catalog_service):
        catalog_service.create_item(TENANT_A, "Beans", item_id="sku-1")

        updated = catalog_service.update_item(
            TENANT_A, "sku-1", name="House beans", is_active=False
        )

        assert updated.name == "House beans"
        assert updated.is_active is False

    def test_update_foreign_item(self, catalog_service):
        catalog_service.create_item(TENANT_B, "Tea", item_id="b-1")

        with pytest.raises(ItemNotFoundError):
            catalog_service.update_item(TENANT_A, "b-1", name="Stolen")

    def test_invalid_price(self, catalog_service):
        catalog_service.create_item(TENANT_A, "Beans", item_id="sku-1")

        with pytest.raises(InvalidItemError):
            catalog_service.update_item(TENANT_A, "sku-1", price_cents=-5)

    def test_blank_name_rejected(self, catalog_service):
        catalog_service.create_item(TENANT_A, "Beans", item_id="sku-1")

        with pytest.raises(InvalidItemError):
            catalog_service.update_item(TENANT_A, "sku-1", name=" ")
