"""
Sale request boundary -- parse and validate an inbound sale.

Responsibility:
    Turn the loosely typed inbound shape

        {"customer": str?, "soldAt": str?, "items": [
            {"itemId": str, "qty": str | number, "unitPriceCents": int}, ...]}

    into a fully validated, immutable SaleRequest.  Every check that can be
    made without storage happens here, so a request that reaches the sale
    recorder's transaction can only fail on item existence or storage itself.

Architecture position:
    Domain -- pure, zero I/O.  Imports only exceptions and sibling domain
    modules.

Invariants enforced:
    - lines is non-empty and at most ``max_lines`` long.
    - every LineRequest.quantity is a finite, strictly positive Decimal.
    - every unit price is a non-negative int, and every line total fits the
      minor-unit money columns.
    - every item id is a non-empty string that fits an id column.

Failure modes:
    - EmptySaleError, TooManyLinesError, InvalidQuantityError,
      InvalidUnitPriceError, LineTotalOutOfRangeError, InvalidItemReferenceError,
      InvalidTimestampError, InvalidCustomerError, InvalidTenantError (all ValidationError).
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any

from inventauri.domain.quantities import (
    NegativeQuantityPolicy,
    compute_line_total,
    parse_unit_price,
    sale_quantity,
)
from inventauri.domain.time import ensure_utc, parse_timestamp
from inventauri.exceptions import (
    EmptySaleError,
    InvalidCustomerError,
    InvalidItemReferenceError,
    InvalidTenantError,
    TooManyLinesError,
    ValidationError,
)

# Identifier columns are String(64)
MAX_ID_LENGTH = 64
MAX_CUSTOMER_LENGTH = 255
DEFAULT_MAX_LINES = 500


@dataclass(frozen=True)
class LineRequest:
    """One validated sale line: item, strictly positive quantity, unit price."""

    item_id: str
    quantity: Decimal
    unit_price_minor_units: int


@dataclass(frozen=True)
class SaleRequest:
    """
    A validated sale, ready to be recorded.

    occurred_at is None when the caller did not supply a sale time; the
    recorder then uses processing time.
    """

    lines: tuple[LineRequest, ...]
    customer: str | None = None
    occurred_at: datetime | None = None

    def __post_init__(self) -> None:
        if not self.lines:
            raise EmptySaleError()
        object.__setattr__(self, "lines", tuple(self.lines))
        if self.occurred_at is not None:
            object.__setattr__(self, "occurred_at", ensure_utc(self.occurred_at))


def require_tenant_id(tenant_id: Any) -> str:
    """Validate a tenant identifier supplied by the surrounding context."""
    if not isinstance(tenant_id, str) or not tenant_id.strip():
        raise InvalidTenantError(tenant_id)
    if len(tenant_id) > MAX_ID_LENGTH:
        raise InvalidTenantError(tenant_id)
    return tenant_id


def _parse_item_id(value: Any, line_index: int) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidItemReferenceError(value, line_index)
    if len(value) > MAX_ID_LENGTH:
        raise InvalidItemReferenceError(value, line_index)
    return value


def _parse_customer(value: Any) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str) or len(value) > MAX_CUSTOMER_LENGTH:
        raise InvalidCustomerError(value)
    # Blank labels are stored as "no customer"
    return value if value.strip() else None


def _build_line(
    item_id: Any,
    quantity: Any,
    unit_price: Any,
    line_index: int,
    policy: NegativeQuantityPolicy,
) -> LineRequest:
    parsed_item_id = _parse_item_id(item_id, line_index)
    parsed_quantity = sale_quantity(quantity, policy, line_index=line_index)
    parsed_price = parse_unit_price(unit_price, line_index=line_index)
    compute_line_total(parsed_quantity, parsed_price, line_index=line_index)
    return LineRequest(
        item_id=parsed_item_id,
        quantity=parsed_quantity,
        unit_price_minor_units=parsed_price,
    )


def parse_line(
    raw: Any,
    line_index: int,
    *,
    negative_quantity_policy: NegativeQuantityPolicy = NegativeQuantityPolicy.REJECT,
) -> LineRequest:
    """
    Validate one inbound line (``{"itemId", "qty", "unitPriceCents"}``).

    Args:
        raw: The inbound line mapping.
        line_index: 0-based position of the line in the request.
        negative_quantity_policy: Treatment of negative quantities.

    Raises:
        ValidationError subclass naming the offending field and line.
    """
    if not isinstance(raw, Mapping):
        raise ValidationError(
            "invalid sale line", field="items", line_index=line_index, value=raw
        )
    return _build_line(
        raw.get("itemId"),
        raw.get("qty"),
        raw.get("unitPriceCents"),
        line_index,
        negative_quantity_policy,
    )


def parse_sale_request(
    payload: Any,
    *,
    negative_quantity_policy: NegativeQuantityPolicy | str = NegativeQuantityPolicy.REJECT,
    max_lines: int = DEFAULT_MAX_LINES,
) -> SaleRequest:
    """
    Parse and validate an inbound sale payload.

    Lines are validated in order; the first invalid line raises.  A missing
    or null ``items`` key is an empty sale.

    Args:
        payload: Mapping in the inbound wire shape.
        negative_quantity_policy: ``"reject"`` (default) or ``"magnitude"``.
        max_lines: Upper bound on the number of lines.

    Returns:
        A SaleRequest whose lines preserve request order.
    """
    if not isinstance(payload, Mapping):
        raise ValidationError("invalid sale payload", field="body", value=payload)

    policy = NegativeQuantityPolicy(negative_quantity_policy)

    raw_items = payload.get("items")
    if raw_items is None:
        raise EmptySaleError()
    if isinstance(raw_items, (str, bytes)) or not isinstance(raw_items, Sequence):
        raise ValidationError("invalid sale items", field="items", value=raw_items)
    if len(raw_items) == 0:
        raise EmptySaleError()
    if len(raw_items) > max_lines:
        raise TooManyLinesError(len(raw_items), max_lines)

    customer = _parse_customer(payload.get("customer"))

    sold_at = payload.get("soldAt")
    occurred_at = None if sold_at is None else parse_timestamp(sold_at, field="soldAt")

    lines = tuple(
        parse_line(raw, index, negative_quantity_policy=policy)
        for index, raw in enumerate(raw_items)
    )
    return SaleRequest(lines=lines, customer=customer, occurred_at=occurred_at)


def normalize_sale_request(
    request: SaleRequest,
    *,
    negative_quantity_policy: NegativeQuantityPolicy | str = NegativeQuantityPolicy.REJECT,
    max_lines: int = DEFAULT_MAX_LINES,
) -> SaleRequest:
    """
    Re-validate a SaleRequest built directly by a caller.

    Dataclass construction does not parse values, so a caller can hand over a
    LineRequest with a zero quantity, a string quantity or a negative price.
    The same rules as parse_sale_request apply.

    Returns:
        An equivalent SaleRequest with Decimal quantities.
    """
    policy = NegativeQuantityPolicy(negative_quantity_policy)
    if len(request.lines) > max_lines:
        raise TooManyLinesError(len(request.lines), max_lines)
    lines = tuple(
        _build_line(
            line.item_id,
            line.quantity,
            line.unit_price_minor_units,
            index,
            policy,
        )
        for index, line in enumerate(request.lines)
    )
    return SaleRequest(
        lines=lines,
        customer=_parse_customer(request.customer),
        occurred_at=request.occurred_at,
    )
