"""
Module: inventauri.models.stock_movement
Responsibility: ORM persistence for the append-only stock ledger.  On-hand
    quantity is never stored; it is the sum of an item's movements.
Architecture position: Models.  May import from db/base.py only.

Invariants enforced:
    - quantity != 0 (ck_stock_movement_quantity_non_zero).  Negative quantities
      are outbound, positive are inbound.
    - reason is one of StockReason (ck_stock_movement_reason).
    - sale_line_id is unique: a sale line has at most one movement.
    - (tenant_id, item_id) references items(tenant_id, id).

Failure modes:
    - IntegrityError (foreign key) on unknown or foreign item reference.
"""

from decimal import Decimal
from enum import Enum

from sqlalchemy import (
    CheckConstraint,
    ForeignKey,
    ForeignKeyConstraint,
    Index,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column

from inventauri.db.base import ID_LENGTH, TimestampedBase
from inventauri.db.types import Quantity


class StockReason(str, Enum):
    """Fixed vocabulary for stock movements.

    Contract: SALE movements are written only by the sale recorder and are
    always negative.  RESTOCK is always positive.  ADJUSTMENT may go either way.
    """

    SALE = "sale"
    RESTOCK = "restock"
    ADJUSTMENT = "adjustment"


_REASON_VALUES = ", ".join(f"'{r.value}'" for r in StockReason)


class StockMovement(TimestampedBase):
    """
    One signed change in on-hand quantity for an item.

    Guarantees:
        - Movements with reason SALE carry the id of the sale line that
          caused them and quantity == -abs(line.quantity).
    """

    __tablename__ = "stock_movements"

    __table_args__ = (
        ForeignKeyConstraint(
            ["tenant_id", "item_id"],
            ["items.tenant_id", "items.id"],
            name="fk_stock_movement_item",
        ),
        CheckConstraint("quantity <> 0", name="ck_stock_movement_quantity_non_zero"),
        CheckConstraint(
            f"reason IN ({_REASON_VALUES})", name="ck_stock_movement_reason"
        ),
        Index("idx_stock_movement_item", "tenant_id", "item_id"),
        Index("idx_stock_movement_created_at", "created_at"),
    )

    tenant_id: Mapped[str] = mapped_column(
        String(ID_LENGTH),
        nullable=False,
    )

    item_id: Mapped[str] = mapped_column(
        String(ID_LENGTH),
        nullable=False,
    )

    # Signed delta: negative = outbound
    quantity: Mapped[Decimal] = mapped_column(
        Quantity,
        nullable=False,
    )

    # StockReason value
    reason: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
    )

    sale_line_id: Mapped[str | None] = mapped_column(
        String(ID_LENGTH),
        ForeignKey("sale_lines.id", name="fk_stock_movement_sale_line"),
        nullable=True,
        unique=True,
    )

    # Free-text reference, e.g. a delivery note number
    reference: Mapped[str | None] = mapped_column(
        String(100),
        nullable=True,
    )

    def __repr__(self) -> str:
        return (
            f"<StockMovement {self.id} item={self.item_id} "
            f"qty={self.quantity} reason={self.reason}>"
        )
