"""
Module: inventauri.selectors.stock_selector
Responsibility: Read access to the stock ledger.  On-hand quantity is derived
    from movements every time; there is no stored balance to drift.
Architecture position: Selectors.

Failure modes:
    - None beyond database errors; unknown items simply have no movements.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from sqlalchemy import func, select

from inventauri.domain.time import ensure_utc
from inventauri.models.item import Item
from inventauri.models.stock_movement import StockMovement, StockReason
from inventauri.selectors.base import BaseSelector

_ZERO = Decimal("0")


@dataclass(frozen=True)
class StockMovementInfo:
    """Immutable DTO for a stock movement."""

    id: str
    tenant_id: str
    item_id: str
    quantity: Decimal
    reason: StockReason
    sale_line_id: str | None
    reference: str | None
    created_at: datetime


def movement_to_dto(movement: StockMovement) -> StockMovementInfo:
    """Convert an ORM StockMovement to its DTO."""
    return StockMovementInfo(
        id=movement.id,
        tenant_id=movement.tenant_id,
        item_id=movement.item_id,
        quantity=Decimal(movement.quantity),
        reason=StockReason(movement.reason),
        sale_line_id=movement.sale_line_id,
        reference=movement.reference,
        created_at=ensure_utc(movement.created_at),
    )


def _as_decimal(value) -> Decimal:
    return _ZERO if value is None else Decimal(value)


class StockSelector(BaseSelector):
    """
    Selector for stock levels and movement history.

    Guarantees:
        - on_hand(item) == sum of the item's movement quantities.
        - Movement lists are ordered by created_at, then id.
    """

    def on_hand(self, tenant_id: str, item_id: str) -> Decimal:
        """Current on-hand quantity of one item (0 when it has no movements)."""
        stmt = select(func.sum(StockMovement.quantity)).where(
            StockMovement.tenant_id == tenant_id,
            StockMovement.item_id == item_id,
        )
        return _as_decimal(self.session.execute(stmt).scalar())

    def on_hand_by_item(self, tenant_id: str) -> dict[str, Decimal]:
        """On-hand quantity for every item of the tenant, including zeros."""
        totals = (
            select(
                StockMovement.item_id.label("item_id"),
                func.sum(StockMovement.quantity).label("on_hand"),
            )
            .where(StockMovement.tenant_id == tenant_id)
            .group_by(StockMovement.item_id)
            .subquery()
        )
        stmt = (
            select(Item.id, totals.c.on_hand)
            .outerjoin(totals, totals.c.item_id == Item.id)
            .where(Item.tenant_id == tenant_id)
            .order_by(Item.id)
        )
        return {
            item_id: _as_decimal(on_hand)
            for item_id, on_hand in self.session.execute(stmt).all()
        }

    def list_movements(
        self,
        tenant_id: str,
        item_id: str | None = None,
        reason: StockReason | str | None = None,
    ) -> list[StockMovementInfo]:
        """List the tenant's movements, optionally filtered by item and reason."""
        stmt = select(StockMovement).where(StockMovement.tenant_id == tenant_id)
        if item_id is not None:
            stmt = stmt.where(StockMovement.item_id == item_id)
        if reason is not None:
            stmt = stmt.where(StockMovement.reason == StockReason(reason).value)
        stmt = stmt.order_by(StockMovement.created_at, StockMovement.id)
        return [movement_to_dto(m) for m in self.session.execute(stmt).scalars().all()]
