"""
CatalogService -- tenant-scoped management of sellable items.

Responsibility:
    Create, update, fetch and list catalog items.  The sale recorder never
    reads the catalog; it relies on the (tenant_id, item_id) foreign key,
    so this service is the only writer of rows that sales may reference.

Architecture position:
    Services -- flush-only (see BaseService).

Invariants enforced:
    - An item is only ever visible to the tenant that owns it.
    - sku is unique per tenant (checked here, backed by uq_item_tenant_sku).
    - price_cents is a non-negative integer number of minor units that fits
      a signed BIGINT.

Failure modes:
    - InvalidItemError for malformed fields.
    - DuplicateSkuError when the sku is already used within the tenant, also
      when a concurrent insert takes it between the check and the flush.
    - ItemNotFoundError for unknown ids or items of another tenant.
"""

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from inventauri.db.errors import is_unique_violation, translate_storage_error
from inventauri.domain.quantities import MAX_MINOR_UNITS
from inventauri.domain.sale_request import MAX_ID_LENGTH, require_tenant_id
from inventauri.domain.time import ensure_utc
from inventauri.exceptions import (
    DuplicateSkuError,
    InvalidItemError,
    ItemNotFoundError,
)
from inventauri.logging_config import get_logger
from inventauri.models.item import Item
from inventauri.services.base import BaseService

logger = get_logger("services.catalog")

_MAX_NAME_LENGTH = 255
_MAX_SKU_LENGTH = 100
_MAX_CATEGORY_LENGTH = 100
_MAX_UNIT_LENGTH = 20


@dataclass(frozen=True)
class ItemInfo:
    """Immutable DTO for catalog items."""

    id: str
    tenant_id: str
    name: str
    sku: str | None
    category: str | None
    unit: str | None
    price_cents: int
    is_active: bool
    created_at: datetime
    updated_at: datetime


def _check_text(
    value: object, field: str, max_length: int, *, required: bool = False
) -> str | None:
    if value is None:
        if required:
            raise InvalidItemError(f"{field} is required", field=field, value=value)
        return None
    if not isinstance(value, str) or len(value) > max_length:
        raise InvalidItemError(f"invalid {field}", field=field, value=value)
    if required and not value.strip():
        raise InvalidItemError(f"{field} is required", field=field, value=value)
    return value


def _check_price(value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidItemError("invalid price", field="price_cents", value=value)
    if value < 0 or value > MAX_MINOR_UNITS:
        raise InvalidItemError("invalid price", field="price_cents", value=value)
    return value


class CatalogService(BaseService):
    """
    Service for managing catalog items.

    All public methods take the tenant id explicitly and return ItemInfo
    DTOs, not ORM entities.
    """

    def _to_dto(self, item: Item) -> ItemInfo:
        return ItemInfo(
            id=item.id,
            tenant_id=item.tenant_id,
            name=item.name,
            sku=item.sku,
            category=item.category,
            unit=item.unit,
            price_cents=item.price_cents,
            is_active=item.is_active,
            created_at=ensure_utc(item.created_at),
            updated_at=ensure_utc(item.updated_at),
        )

    def _get(self, tenant_id: str, item_id: str) -> Item:
        """Get an item of ``tenant_id``, raising if missing or foreign."""
        item = self.session.get(Item, item_id)
        if item is None or item.tenant_id != tenant_id:
            raise ItemNotFoundError(tenant_id, item_id)
        return item

    def _id_taken(self, item_id: str) -> bool:
        return self.session.get(Item, item_id) is not None

    def _sku_taken(self, tenant_id: str, sku: str) -> bool:
        stmt = select(Item.id).where(Item.tenant_id == tenant_id, Item.sku == sku)
        return self.session.execute(stmt).first() is not None

    def get_item(self, tenant_id: str, item_id: str) -> ItemInfo:
        """
        Get an item by id.

        Raises:
            ItemNotFoundError: If the item doesn't exist for this tenant.
        """
        return self._to_dto(self._get(tenant_id, item_id))

    def list_items(self, tenant_id: str, active_only: bool = False) -> list[ItemInfo]:
        """List the tenant's items, newest first."""
        stmt = select(Item).where(Item.tenant_id == tenant_id)
        if active_only:
            stmt = stmt.where(Item.is_active.is_(True))
        stmt = stmt.order_by(Item.created_at.desc(), Item.id)
        return [self._to_dto(i) for i in self.session.execute(stmt).scalars().all()]

    def create_item(
        self,
        tenant_id: str,
        name: str,
        *,
        item_id: str | None = None,
        sku: str | None = None,
        category: str | None = None,
        unit: str | None = None,
        price_cents: int = 0,
        is_active: bool = True,
    ) -> ItemInfo:
        """
        Create a catalog item.

        Args:
            tenant_id: Owning tenant.
            name: Display name (required).
            item_id: Caller-chosen identifier (e.g. "sku-1"); generated if None.
            sku: Stock keeping unit, unique within the tenant.
            category: Free-text category.
            unit: Unit of measure label.
            price_cents: List price in minor units.
            is_active: Whether the item is offered for sale.

        Returns:
            Created ItemInfo DTO.
        """
        tenant_id = require_tenant_id(tenant_id)
        name = _check_text(name, "name", _MAX_NAME_LENGTH, required=True)
        sku = _check_text(sku, "sku", _MAX_SKU_LENGTH)
        category = _check_text(category, "category", _MAX_CATEGORY_LENGTH)
        unit = _check_text(unit, "unit", _MAX_UNIT_LENGTH)
        price_cents = _check_price(price_cents)

        if item_id is not None:
            _check_text(item_id, "id", MAX_ID_LENGTH, required=True)
            if self._id_taken(item_id):
                raise InvalidItemError("item id already exists", field="id", value=item_id)
        if sku is not None and self._sku_taken(tenant_id, sku):
            raise DuplicateSkuError(tenant_id, sku)

        now = self.clock.now_utc()
        item = Item(
            tenant_id=tenant_id,
            name=name,
            sku=sku,
            category=category,
            unit=unit,
            price_cents=price_cents,
            is_active=bool(is_active),
            created_at=now,
            updated_at=now,
        )
        if item_id is not None:
            item.id = item_id
        self.session.add(item)
        try:
            self.session.flush()
        except IntegrityError as exc:
            # Lost a race with a concurrent insert after the checks above
            if not is_unique_violation(exc):
                raise translate_storage_error(
                    exc, operation="create_item", tenant_id=tenant_id
                ) from exc
            if sku is not None and "sku" in str(exc.orig):
                raise DuplicateSkuError(tenant_id, sku) from exc
            raise InvalidItemError(
                "item id already exists", field="id", value=item_id
            ) from exc

        logger.info(
            "item_created",
            extra={"tenant_id": tenant_id, "item_id": item.id, "sku": sku},
        )
        return self._to_dto(item)

    def update_item(
        self,
        tenant_id: str,
        item_id: str,
        *,
        name: str | None = None,
        price_cents: int | None = None,
        category: str | None = None,
        unit: str | None = None,
        is_active: bool | None = None,
    ) -> ItemInfo:
        """
        Update item details.  Arguments left as None are unchanged.

        Past sale lines keep the unit price they were sold at; changing
        price_cents only affects what callers quote from now on.

        Raises:
            ItemNotFoundError: If the item doesn't exist for this tenant.
            InvalidItemError: If a supplied field is malformed.
        """
        item = self._get(tenant_id, item_id)

        if name is not None:
            item.name = _check_text(name, "name", _MAX_NAME_LENGTH, required=True)
        if price_cents is not None:
            item.price_cents = _check_price(price_cents)
        if category is not None:
            item.category = _check_text(category, "category", _MAX_CATEGORY_LENGTH)
        if unit is not None:
            item.unit = _check_text(unit, "unit", _MAX_UNIT_LENGTH)
        if is_active is not None:
            item.is_active = bool(is_active)

        item.updated_at = self.clock.now_utc()
        self.session.flush()
        logger.info("item_updated", extra={"tenant_id": tenant_id, "item_id": item_id})
        return self._to_dto(item)
