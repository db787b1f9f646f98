"""
Pure domain layer.

Request parsing, quantity and money arithmetic, timestamps and the clock
abstraction.  Nothing here touches the ORM, the database or I/O (except
SystemClock).
"""

from inventauri.domain.clock import Clock, DeterministicClock, SystemClock
from inventauri.domain.quantities import (
    NegativeQuantityPolicy,
    compute_line_total,
    outbound_quantity,
    parse_quantity,
    parse_unit_price,
    sale_quantity,
)
from inventauri.domain.sale_request import (
    LineRequest,
    SaleRequest,
    normalize_sale_request,
    parse_sale_request,
    require_tenant_id,
)
from inventauri.domain.time import ensure_utc, parse_timestamp

__all__ = [
    "Clock",
    "DeterministicClock",
    "LineRequest",
    "NegativeQuantityPolicy",
    "SaleRequest",
    "SystemClock",
    "compute_line_total",
    "ensure_utc",
    "normalize_sale_request",
    "outbound_quantity",
    "parse_quantity",
    "parse_sale_request",
    "parse_timestamp",
    "parse_unit_price",
    "require_tenant_id",
    "sale_quantity",
]
