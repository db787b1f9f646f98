"""
Module: inventauri.models.sale
Responsibility: ORM persistence for sales and their line items.
Architecture position: Models.  May import from db/base.py only.

Invariants enforced:
    - A sale and all of its lines are written in one transaction by the sale
      recorder and never updated or deleted afterwards (db/immutability.py).
    - quantity > 0 and unit_price_cents >= 0 on every line (check constraints).
    - (sale_id, line_no) is unique; line_no preserves request order.
    - (tenant_id, item_id) references items(tenant_id, id), so storage rejects
      unknown items and items that belong to another tenant.

Failure modes:
    - IntegrityError (foreign key) on unknown or foreign item reference.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    ForeignKeyConstraint,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from inventauri.db.base import ID_LENGTH, TimestampedBase
from inventauri.db.types import Quantity


class Sale(TimestampedBase):
    """
    A completed point-of-sale transaction.

    Guarantees:
        - occurred_at is always set (defaults to processing time).
        - customer is an optional free-text label, NULL when absent.
    """

    __tablename__ = "sales"

    __table_args__ = (
        Index("idx_sale_tenant_occurred", "tenant_id", "occurred_at"),
    )

    tenant_id: Mapped[str] = mapped_column(
        String(ID_LENGTH),
        nullable=False,
    )

    customer: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )

    occurred_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    lines: Mapped[list["SaleLine"]] = relationship(
        order_by="SaleLine.line_no",
        viewonly=True,
    )

    def __repr__(self) -> str:
        return f"<Sale {self.id} tenant={self.tenant_id} at={self.occurred_at}>"


class SaleLine(TimestampedBase):
    """
    One item sold within a sale.

    Guarantees:
        - line_total_cents == round_half_up(quantity * unit_price_cents),
          computed by the recorder before insert.
        - Exactly one StockMovement with reason "sale" points at each line.
    """

    __tablename__ = "sale_lines"

    __table_args__ = (
        ForeignKeyConstraint(
            ["tenant_id", "item_id"],
            ["items.tenant_id", "items.id"],
            name="fk_sale_line_item",
        ),
        UniqueConstraint("sale_id", "line_no", name="uq_sale_line_no"),
        CheckConstraint("quantity > 0", name="ck_sale_line_quantity_positive"),
        CheckConstraint(
            "unit_price_cents >= 0", name="ck_sale_line_price_non_negative"
        ),
        Index("idx_sale_line_item", "tenant_id", "item_id"),
    )

    sale_id: Mapped[str] = mapped_column(
        String(ID_LENGTH),
        ForeignKey("sales.id", name="fk_sale_line_sale"),
        nullable=False,
    )

    tenant_id: Mapped[str] = mapped_column(
        String(ID_LENGTH),
        nullable=False,
    )

    item_id: Mapped[str] = mapped_column(
        String(ID_LENGTH),
        nullable=False,
    )

    # 0-based position in the originating request
    line_no: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    quantity: Mapped[Decimal] = mapped_column(
        Quantity,
        nullable=False,
    )

    unit_price_cents: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
    )

    line_total_cents: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
    )

    def __repr__(self) -> str:
        return (
            f"<SaleLine {self.sale_id}#{self.line_no} item={self.item_id} "
            f"qty={self.quantity} total={self.line_total_cents}>"
        )
