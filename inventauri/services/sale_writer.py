"""
SaleWriter -- persistence gateway for sales, sale lines and stock movements.

Responsibility:
    The three insert operations the sale recorder composes into one
    transaction: ``create_sale``, ``create_sale_line`` and
    ``create_stock_movement``.  Each adds one row and flushes it, so a
    constraint failure surfaces on the statement that caused it.

Architecture position:
    Services -- flush-only (see BaseService).  Stock movements with any
    reason go through ``create_stock_movement``; the reason rules live in
    SaleRecorder and StockService.

Invariants enforced:
    - Sale lines carry line_total_cents = compute_line_total(quantity, price).
    - Identifiers are assigned before flush so dependent rows can reference
      them without a refresh.

Failure modes:
    - sqlalchemy.exc.IntegrityError from flush (foreign key on the item,
      check constraints).  Translation is the caller's job, after rollback.
"""

from datetime import datetime
from decimal import Decimal

from inventauri.db.base import new_id
from inventauri.domain.quantities import compute_line_total
from inventauri.domain.sale_request import LineRequest
from inventauri.logging_config import get_logger
from inventauri.models.sale import Sale, SaleLine
from inventauri.models.stock_movement import StockMovement, StockReason
from inventauri.services.base import BaseService

logger = get_logger("services.sale_writer")


class SaleWriter(BaseService):
    """Insert-only gateway over the sales tables."""

    def create_sale(
        self,
        tenant_id: str,
        occurred_at: datetime | None = None,
        customer: str | None = None,
    ) -> Sale:
        """
        Insert a sale header.

        Args:
            tenant_id: Owning tenant.
            occurred_at: Business time of the sale; processing time if None.
            customer: Optional free-text customer label.
        """
        now = self.clock.now_utc()
        sale = Sale(
            id=new_id(),
            tenant_id=tenant_id,
            customer=customer,
            occurred_at=occurred_at or now,
            created_at=now,
        )
        self.session.add(sale)
        self.session.flush()
        logger.debug("sale_created", extra={"sale_id": sale.id})
        return sale

    def create_sale_line(
        self,
        sale: Sale,
        line_no: int,
        line: LineRequest,
    ) -> SaleLine:
        """Insert one line of ``sale`` with its computed total."""
        sale_line = SaleLine(
            id=new_id(),
            sale_id=sale.id,
            tenant_id=sale.tenant_id,
            item_id=line.item_id,
            line_no=line_no,
            quantity=line.quantity,
            unit_price_cents=line.unit_price_minor_units,
            line_total_cents=compute_line_total(
                line.quantity, line.unit_price_minor_units
            ),
            created_at=self.clock.now_utc(),
        )
        self.session.add(sale_line)
        self.session.flush()
        return sale_line

    def create_stock_movement(
        self,
        tenant_id: str,
        item_id: str,
        quantity: Decimal,
        reason: StockReason,
        sale_line_id: str | None = None,
        reference: str | None = None,
    ) -> StockMovement:
        """Insert one signed stock movement."""
        movement = StockMovement(
            id=new_id(),
            tenant_id=tenant_id,
            item_id=item_id,
            quantity=quantity,
            reason=StockReason(reason).value,
            sale_line_id=sale_line_id,
            reference=reference,
            created_at=self.clock.now_utc(),
        )
        self.session.add(movement)
        self.session.flush()
        return movement
