"""
Module: inventauri.models.item
Responsibility: ORM persistence for catalog items.  Items are owned by a tenant
    and referenced by sale lines and stock movements.
Architecture position: Models.  May import from db/base.py only.

Invariants enforced:
    - (tenant_id, id) is unique (uq_item_tenant_id).  Sale lines and stock
      movements reference items through this pair, so an item that belongs to
      another tenant fails the same foreign key as a missing one.
    - sku is unique per tenant when present (uq_item_tenant_sku).
    - price_cents >= 0 (ck_item_price_non_negative).

Failure modes:
    - IntegrityError on duplicate sku within a tenant.
"""

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    Index,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from inventauri.db.base import ID_LENGTH, TrackedBase


class Item(TrackedBase):
    """
    Catalog entry that can be sold and stocked.

    Contract:
        Items are read-only from the point of view of the sale recorder; the
        unit price carried on a sale line is supplied by the caller and is not
        re-read from ``price_cents``.
    """

    __tablename__ = "items"

    __table_args__ = (
        UniqueConstraint("tenant_id", "id", name="uq_item_tenant_id"),
        UniqueConstraint("tenant_id", "sku", name="uq_item_tenant_sku"),
        CheckConstraint("price_cents >= 0", name="ck_item_price_non_negative"),
        Index("idx_item_tenant_active", "tenant_id", "is_active"),
    )

    tenant_id: Mapped[str] = mapped_column(
        String(ID_LENGTH),
        nullable=False,
    )

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    sku: Mapped[str | None] = mapped_column(
        String(100),
        nullable=True,
    )

    category: Mapped[str | None] = mapped_column(
        String(100),
        nullable=True,
    )

    # Unit of measure label (e.g. "pcs", "kg")
    unit: Mapped[str | None] = mapped_column(
        String(20),
        nullable=True,
    )

    # List price in minor currency units
    price_cents: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        default=0,
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
    )

    def __repr__(self) -> str:
        return f"<Item {self.id} {self.name!r} tenant={self.tenant_id}>"
