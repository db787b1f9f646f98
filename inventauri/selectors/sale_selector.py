"""
Module: inventauri.selectors.sale_selector
Responsibility: Read access to recorded sales, their lines and the stock
    movements they caused, plus revenue totals for dashboards.
Architecture position: Selectors.

Invariants relied upon:
    - Lines are returned in line_no order, i.e. the order of the original
      request.
    - Sales totals are sums of stored line totals; nothing is re-rounded.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import selectinload

from inventauri.domain.time import ensure_utc
from inventauri.models.sale import Sale, SaleLine
from inventauri.models.stock_movement import StockMovement
from inventauri.selectors.base import BaseSelector
from inventauri.selectors.stock_selector import StockMovementInfo, movement_to_dto


@dataclass(frozen=True)
class SaleLineInfo:
    """Data transfer object for a sale line."""

    id: str
    sale_id: str
    item_id: str
    line_no: int
    quantity: Decimal
    unit_price_cents: int
    line_total_cents: int


@dataclass(frozen=True)
class SaleInfo:
    """Data transfer object for a sale with its lines."""

    id: str
    tenant_id: str
    customer: str | None
    occurred_at: datetime
    created_at: datetime
    lines: tuple[SaleLineInfo, ...]

    @property
    def total_cents(self) -> int:
        """Sum of line totals."""
        return sum(line.line_total_cents for line in self.lines)


def _line_to_dto(line: SaleLine) -> SaleLineInfo:
    return SaleLineInfo(
        id=line.id,
        sale_id=line.sale_id,
        item_id=line.item_id,
        line_no=line.line_no,
        quantity=Decimal(line.quantity),
        unit_price_cents=int(line.unit_price_cents),
        line_total_cents=int(line.line_total_cents),
    )


class SaleSelector(BaseSelector):
    """
    Selector for sales queries.

    Guarantees:
        - Lines are eager-loaded with selectinload and sorted by line_no.
        - list_sales orders newest first (occurred_at desc, then id).
        - Time windows are half-open: since <= occurred_at < until.
    """

    def _to_dto(self, sale: Sale) -> SaleInfo:
        return SaleInfo(
            id=sale.id,
            tenant_id=sale.tenant_id,
            customer=sale.customer,
            occurred_at=ensure_utc(sale.occurred_at),
            created_at=ensure_utc(sale.created_at),
            lines=tuple(
                _line_to_dto(line)
                for line in sorted(sale.lines, key=lambda x: x.line_no)
            ),
        )

    def _window(self, stmt, since: datetime | None, until: datetime | None):
        if since is not None:
            stmt = stmt.where(Sale.occurred_at >= ensure_utc(since))
        if until is not None:
            stmt = stmt.where(Sale.occurred_at < ensure_utc(until))
        return stmt

    def get_sale(self, tenant_id: str, sale_id: str) -> SaleInfo | None:
        """Get one sale with its lines, or None if it isn't the tenant's."""
        stmt = (
            select(Sale)
            .options(selectinload(Sale.lines))
            .where(Sale.tenant_id == tenant_id, Sale.id == sale_id)
        )
        sale = self.session.execute(stmt).scalar_one_or_none()
        return self._to_dto(sale) if sale is not None else None

    def list_sales(
        self,
        tenant_id: str,
        since: datetime | None = None,
        until: datetime | None = None,
        limit: int | None = None,
    ) -> list[SaleInfo]:
        """List the tenant's sales, newest first, optionally windowed."""
        stmt = (
            select(Sale)
            .options(selectinload(Sale.lines))
            .where(Sale.tenant_id == tenant_id)
        )
        stmt = self._window(stmt, since, until)
        stmt = stmt.order_by(Sale.occurred_at.desc(), Sale.id)
        if limit is not None:
            stmt = stmt.limit(limit)
        return [self._to_dto(s) for s in self.session.execute(stmt).scalars().all()]

    def list_lines(self, tenant_id: str, sale_id: str) -> list[SaleLineInfo]:
        """Lines of a sale in request order."""
        stmt = (
            select(SaleLine)
            .where(SaleLine.tenant_id == tenant_id, SaleLine.sale_id == sale_id)
            .order_by(SaleLine.line_no)
        )
        return [_line_to_dto(line) for line in self.session.execute(stmt).scalars().all()]

    def movements_for_sale(self, tenant_id: str, sale_id: str) -> list[StockMovementInfo]:
        """The stock movements written for a sale, in line order."""
        stmt = (
            select(StockMovement)
            .join(SaleLine, StockMovement.sale_line_id == SaleLine.id)
            .where(SaleLine.tenant_id == tenant_id, SaleLine.sale_id == sale_id)
            .order_by(SaleLine.line_no)
        )
        return [movement_to_dto(m) for m in self.session.execute(stmt).scalars().all()]

    def sales_total_cents(
        self,
        tenant_id: str,
        since: datetime | None = None,
        until: datetime | None = None,
    ) -> int:
        """Revenue in minor units over the window (0 when there are no sales)."""
        stmt = (
            select(func.coalesce(func.sum(SaleLine.line_total_cents), 0))
            .join(Sale, SaleLine.sale_id == Sale.id)
            .where(Sale.tenant_id == tenant_id)
        )
        stmt = self._window(stmt, since, until)
        return int(self.session.execute(stmt).scalar_one())
