"""
SaleRecorder -- the single entry point for recording a point-of-sale sale.

Responsibility:
    Atomically persist one sale, its lines and one "sale" stock movement per
    line, or nothing at all.

Architecture position:
    Services -- imperative shell that OWNS the transaction boundary.  Pure
    validation is delegated to domain/sale_request.py; inserts to SaleWriter.

Recording flow:
    record_sale(tenant_id, request)
      1. Validate tenant id and request (no storage access)
      2. Open session_scope (one transaction)
      3. Insert the sale (occurred_at = supplied value or clock time)
      4. For each line in request order:
           insert the line with its computed total, then
           insert a movement with quantity -abs(line.quantity), reason "sale"
      5. Commit; return a SaleRecord

Invariants enforced:
    - All-or-nothing: any failure after step 2 rolls the whole transaction
      back, including cancellation.
    - Every persisted line has exactly one "sale" movement that references it.
    - Not idempotent: the same request recorded twice yields two sales.

Failure modes:
    - ValidationError subclasses before any storage access.
    - UnknownItemReferenceError when an item does not exist for the tenant.
    - StorageError for any other persistence failure.
    Storage failures are raised after rollback and chained to the original
    SQLAlchemy error.
"""

from __future__ import annotations

import time
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any
from uuid import uuid4

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from inventauri.db.engine import session_scope
from inventauri.db.errors import translate_storage_error
from inventauri.domain.clock import Clock, SystemClock
from inventauri.domain.quantities import NegativeQuantityPolicy, outbound_quantity
from inventauri.domain.sale_request import (
    DEFAULT_MAX_LINES,
    SaleRequest,
    normalize_sale_request,
    parse_sale_request,
    require_tenant_id,
)
from inventauri.domain.time import ensure_utc
from inventauri.exceptions import ValidationError
from inventauri.logging_config import LogContext, get_logger
from inventauri.models.sale import Sale
from inventauri.models.stock_movement import StockReason
from inventauri.services.sale_writer import SaleWriter

logger = get_logger("services.sale_recorder")


@dataclass(frozen=True)
class SaleRecord:
    """The persisted sale header returned to the caller."""

    id: str
    tenant_id: str
    customer: str | None
    occurred_at: datetime
    created_at: datetime

    @classmethod
    def from_model(cls, sale: Sale) -> SaleRecord:
        return cls(
            id=sale.id,
            tenant_id=sale.tenant_id,
            customer=sale.customer,
            occurred_at=ensure_utc(sale.occurred_at),
            created_at=ensure_utc(sale.created_at),
        )

    def as_payload(self) -> dict[str, Any]:
        """Outbound wire shape: ``{id, tenantId, customer, occurredAt, createdAt}``."""
        return {
            "id": self.id,
            "tenantId": self.tenant_id,
            "customer": self.customer,
            "occurredAt": self.occurred_at.isoformat(),
            "createdAt": self.created_at.isoformat(),
        }


class _WriteProgress:
    """Which line was being written when a flush failed."""

    __slots__ = ("item_id", "line_index")

    def __init__(self) -> None:
        self.item_id: str | None = None
        self.line_index: int | None = None


class SaleRecorder:
    """
    Records sales atomically.

    Each call to ``record_sale`` is an independent unit of work with its own
    session taken from ``session_factory``.  Instances hold no per-call state
    and may be shared between threads.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session] | None = None,
        clock: Clock | None = None,
        *,
        max_lines: int = DEFAULT_MAX_LINES,
        negative_quantity_policy: NegativeQuantityPolicy | str = NegativeQuantityPolicy.REJECT,
    ):
        """
        Args:
            session_factory: Source of sessions; the module-level factory
                from db.engine when None.
            clock: Time source for processing-time defaults.
            max_lines: Maximum number of lines accepted in one sale.
            negative_quantity_policy: ``"reject"`` or ``"magnitude"``.
        """
        self._session_factory = session_factory
        self._clock = clock or SystemClock()
        self._max_lines = max_lines
        self._negative_policy = NegativeQuantityPolicy(negative_quantity_policy)

    @classmethod
    def from_settings(
        cls,
        settings,
        session_factory: sessionmaker[Session] | None = None,
        clock: Clock | None = None,
    ) -> SaleRecorder:
        """Build a recorder from ``inventauri_config.SalesSettings``."""
        return cls(
            session_factory,
            clock,
            max_lines=settings.max_lines_per_sale,
            negative_quantity_policy=settings.negative_quantity_policy,
        )

    def validate(self, request: SaleRequest | Mapping[str, Any]) -> SaleRequest:
        """Parse an inbound mapping, or re-check a SaleRequest, without storage."""
        if isinstance(request, SaleRequest):
            return normalize_sale_request(
                request,
                negative_quantity_policy=self._negative_policy,
                max_lines=self._max_lines,
            )
        return parse_sale_request(
            request,
            negative_quantity_policy=self._negative_policy,
            max_lines=self._max_lines,
        )

    def record_sale(
        self,
        tenant_id: str,
        request: SaleRequest | Mapping[str, Any],
    ) -> SaleRecord:
        """
        Record a sale with its lines and stock movements in one transaction.

        Args:
            tenant_id: Tenant resolved by the surrounding context.
            request: A SaleRequest, or a mapping in the inbound wire shape.

        Returns:
            SaleRecord for the committed sale.

        Raises:
            ValidationError: Request rejected before storage access.
            UnknownItemReferenceError: An item does not exist for the tenant.
            StorageError: Any other persistence failure.
        """
        correlation_id = str(uuid4())
        with LogContext.bind(
            correlation_id=correlation_id,
            tenant_id=tenant_id if isinstance(tenant_id, str) else None,
        ):
            try:
                tenant_id = require_tenant_id(tenant_id)
                sale_request = self.validate(request)
            except ValidationError as exc:
                logger.warning(
                    "sale_rejected",
                    extra={
                        "error_code": exc.code,
                        "field": exc.field,
                        "line_index": exc.line_index,
                    },
                )
                raise

            logger.info(
                "sale_recording_started",
                extra={"line_count": len(sale_request.lines)},
            )
            t0 = time.monotonic()
            progress = _WriteProgress()

            try:
                with session_scope(self._session_factory) as session:
                    record = self._write(session, tenant_id, sale_request, progress)
            except SQLAlchemyError as exc:
                duration_ms = round((time.monotonic() - t0) * 1000, 2)
                translated = translate_storage_error(
                    exc,
                    operation="record_sale",
                    tenant_id=tenant_id,
                    item_id=progress.item_id,
                    line_index=progress.line_index,
                )
                logger.error(
                    "sale_recording_failed",
                    extra={
                        "duration_ms": duration_ms,
                        "error_code": translated.code,
                        "item_id": progress.item_id,
                        "line_index": progress.line_index,
                    },
                )
                raise translated from exc
            except BaseException:
                duration_ms = round((time.monotonic() - t0) * 1000, 2)
                logger.error(
                    "sale_recording_failed",
                    extra={"duration_ms": duration_ms},
                    exc_info=True,
                )
                raise

            duration_ms = round((time.monotonic() - t0) * 1000, 2)
            logger.info(
                "sale_recorded",
                extra={
                    "sale_id": record.id,
                    "line_count": len(sale_request.lines),
                    "duration_ms": duration_ms,
                },
            )
            return record

    def _write(
        self,
        session: Session,
        tenant_id: str,
        request: SaleRequest,
        progress: _WriteProgress,
    ) -> SaleRecord:
        writer = SaleWriter(session, self._clock)
        sale = writer.create_sale(
            tenant_id,
            occurred_at=request.occurred_at,
            customer=request.customer,
        )
        with LogContext.bind(sale_id=sale.id):
            for line_no, line in enumerate(request.lines):
                progress.item_id = line.item_id
                progress.line_index = line_no
                sale_line = writer.create_sale_line(sale, line_no, line)
                writer.create_stock_movement(
                    tenant_id,
                    line.item_id,
                    outbound_quantity(line.quantity),
                    StockReason.SALE,
                    sale_line_id=sale_line.id,
                )
            progress.item_id = None
            progress.line_index = None
        return SaleRecord.from_model(sale)
