"""
StockService -- manual stock movements (restocks and adjustments).

Responsibility:
    Append signed movements to the stock ledger for goods received and for
    stock-take corrections.  Sale movements are reserved for SaleRecorder,
    which writes them in the same transaction as the sale line they belong to.

Architecture position:
    Services -- flush-only (see BaseService).

Invariants enforced:
    - quantity != 0.
    - restock quantities are positive; adjustments may take either sign.
    - The item must exist for the tenant (foreign key, not a pre-read).

Failure modes:
    - InvalidStockMovementError for a zero/invalid quantity or a bad reason.
    - UnknownItemReferenceError for an unknown or foreign item.  The session
      is unusable after this failure; the caller's session_scope rolls back.
"""

from decimal import Decimal

from sqlalchemy.exc import SQLAlchemyError

from inventauri.db.errors import translate_storage_error
from inventauri.domain.quantities import parse_quantity
from inventauri.domain.sale_request import require_tenant_id
from inventauri.exceptions import InvalidQuantityError, InvalidStockMovementError
from inventauri.logging_config import get_logger
from inventauri.models.stock_movement import StockReason
from inventauri.selectors.stock_selector import StockMovementInfo, movement_to_dto
from inventauri.services.base import BaseService
from inventauri.services.sale_writer import SaleWriter

logger = get_logger("services.stock")

_MAX_REFERENCE_LENGTH = 100


class StockService(BaseService):
    """Records restocks and adjustments."""

    def record_movement(
        self,
        tenant_id: str,
        item_id: str,
        quantity: Decimal | int | float | str,
        reason: StockReason | str,
        reference: str | None = None,
    ) -> StockMovementInfo:
        """
        Append a manual stock movement.

        Args:
            tenant_id: Owning tenant.
            item_id: Item whose stock changes.
            quantity: Signed change; positive is inbound.
            reason: "restock" or "adjustment".
            reference: Optional free text (delivery note, count sheet...).

        Returns:
            StockMovementInfo DTO.
        """
        tenant_id = require_tenant_id(tenant_id)
        if not isinstance(item_id, str) or not item_id.strip():
            raise InvalidStockMovementError(
                "invalid item id", field="item_id", value=item_id
            )

        try:
            stock_reason = StockReason(reason)
        except ValueError:
            raise InvalidStockMovementError(
                "invalid reason", field="reason", value=reason
            ) from None
        if stock_reason is StockReason.SALE:
            raise InvalidStockMovementError(
                "sale movements are recorded with their sale",
                field="reason",
                value=reason,
            )

        try:
            qty = parse_quantity(quantity)
        except InvalidQuantityError:
            raise InvalidStockMovementError(
                "invalid quantity", field="quantity", value=quantity
            ) from None
        if qty == 0:
            raise InvalidStockMovementError(
                "invalid quantity", field="quantity", value=quantity
            )
        if stock_reason is StockReason.RESTOCK and qty < 0:
            raise InvalidStockMovementError(
                "restock quantity must be positive", field="quantity", value=quantity
            )

        if reference is not None and (
            not isinstance(reference, str) or len(reference) > _MAX_REFERENCE_LENGTH
        ):
            raise InvalidStockMovementError(
                "invalid reference", field="reference", value=reference
            )

        writer = SaleWriter(self.session, self.clock)
        try:
            movement = writer.create_stock_movement(
                tenant_id,
                item_id,
                qty,
                stock_reason,
                reference=reference,
            )
        except SQLAlchemyError as exc:
            raise translate_storage_error(
                exc,
                operation="record_movement",
                tenant_id=tenant_id,
                item_id=item_id,
            ) from exc

        logger.info(
            "stock_movement_recorded",
            extra={
                "item_id": item_id,
                "quantity": qty,
                "reason": stock_reason.value,
            },
        )
        return movement_to_dto(movement)
