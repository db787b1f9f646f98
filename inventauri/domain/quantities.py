"""
Quantity and money arithmetic (pure).

Responsibility:
    Parses caller-supplied quantities and unit prices and computes line totals.
    This is the ONLY place line totals are rounded.

Rounding rule:
    line_total = quantity * unit_price_cents rounded to an integer with
    ROUND_HALF_UP on Decimal, i.e. halves round away from zero:

        2.5 * 199 = 497.5  ->  498
        0.5 * 1   = 0.5    ->  1
        1.25 * 2  = 2.5    ->  3

    Floats are converted through ``str()`` so 1.1 means Decimal("1.1"), not
    its binary approximation.

Ranges:
    Quantities have at most 9 decimal places and 9 integer digits, so every
    accepted quantity is stored exactly on both PostgreSQL NUMERIC(38, 9) and
    the scaled-BIGINT SQLite encoding (db/types.py).  Unit prices and line
    totals must fit a signed BIGINT.  Range checks never go through the
    default 28-digit decimal context.
"""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from enum import Enum
from typing import Any

from inventauri.exceptions import (
    InvalidQuantityError,
    InvalidUnitPriceError,
    LineTotalOutOfRangeError,
)

LINE_TOTAL_ROUNDING = ROUND_HALF_UP

QUANTITY_DECIMAL_PLACES = 9
QUANTITY_INTEGER_DIGITS = 9

# Signed BIGINT
MAX_MINOR_UNITS = 2**63 - 1

# Enough digits for any accepted quantity times any accepted price
_LINE_TOTAL_PRECISION = 64


class NegativeQuantityPolicy(str, Enum):
    """How a sale line with a negative quantity is treated.

    REJECT:    negative quantities are a validation error (default).
    MAGNITUDE: the absolute value is used for both the line and its stock
               movement.
    """

    REJECT = "reject"
    MAGNITUDE = "magnitude"


def _decimal_places(value: Decimal) -> int:
    """Decimal places of a finite non-zero Decimal, ignoring trailing zeros."""
    _, digits, exponent = value.as_tuple()
    significant = "".join(map(str, digits)).rstrip("0")
    return max(0, -(exponent + len(digits) - len(significant)))


def parse_quantity(value: Any, *, line_index: int | None = None) -> Decimal:
    """
    Parse a quantity given as a decimal string, int, float or Decimal.

    Returns the signed value; sign policy is applied by the caller.

    Raises:
        InvalidQuantityError: bools, blanks, malformed strings, NaN/Infinity,
            or values outside QUANTITY_INTEGER_DIGITS/QUANTITY_DECIMAL_PLACES.
    """
    if isinstance(value, bool):
        raise InvalidQuantityError(value, line_index)

    if isinstance(value, Decimal):
        quantity = value
    elif isinstance(value, int):
        quantity = Decimal(value)
    elif isinstance(value, float):
        if not math.isfinite(value):
            raise InvalidQuantityError(value, line_index)
        quantity = Decimal(str(value))
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            raise InvalidQuantityError(value, line_index)
        try:
            quantity = Decimal(text)
        except InvalidOperation:
            raise InvalidQuantityError(value, line_index) from None
    else:
        raise InvalidQuantityError(value, line_index)

    if not quantity.is_finite():
        raise InvalidQuantityError(value, line_index)
    if quantity != 0:
        if _decimal_places(quantity) > QUANTITY_DECIMAL_PLACES:
            raise InvalidQuantityError(value, line_index)
        if quantity.adjusted() >= QUANTITY_INTEGER_DIGITS:
            raise InvalidQuantityError(value, line_index)
    return quantity


def sale_quantity(
    value: Any,
    policy: NegativeQuantityPolicy = NegativeQuantityPolicy.REJECT,
    *,
    line_index: int | None = None,
) -> Decimal:
    """
    Parse a sale line quantity and apply the sign policy.

    Zero is always rejected.  Negative values are rejected under REJECT and
    replaced by their magnitude under MAGNITUDE.

    Returns:
        A strictly positive Decimal.
    """
    quantity = parse_quantity(value, line_index=line_index)
    if quantity == 0:
        raise InvalidQuantityError(value, line_index)
    if quantity < 0:
        if policy is NegativeQuantityPolicy.REJECT:
            raise InvalidQuantityError(value, line_index)
        quantity = -quantity
    return quantity


def parse_unit_price(value: Any, *, line_index: int | None = None) -> int:
    """
    Parse a unit price in minor currency units.

    Accepts ints and integral floats/Decimals (JSON numbers like ``250.0``).
    Strings are rejected so money never round-trips through text parsing.

    Raises:
        InvalidUnitPriceError: negative, fractional, non-finite, non-numeric
            or above MAX_MINOR_UNITS.
    """
    if isinstance(value, bool):
        raise InvalidUnitPriceError(value, line_index)
    if isinstance(value, int):
        price = value
    elif isinstance(value, float):
        if not math.isfinite(value) or not value.is_integer():
            raise InvalidUnitPriceError(value, line_index)
        price = int(value)
    elif isinstance(value, Decimal):
        if not value.is_finite() or value != value.to_integral_value():
            raise InvalidUnitPriceError(value, line_index)
        # No BIGINT has more than 19 digits
        if value.adjusted() > 18:
            raise InvalidUnitPriceError(value, line_index)
        price = int(value)
    else:
        raise InvalidUnitPriceError(value, line_index)

    if price < 0 or price > MAX_MINOR_UNITS:
        raise InvalidUnitPriceError(value, line_index)
    return price


def compute_line_total(
    quantity: Decimal,
    unit_price_cents: int,
    *,
    line_index: int | None = None,
) -> int:
    """
    Compute a line total in minor units.

    Preconditions: quantity is a finite Decimal, unit_price_cents an int.
    Postconditions: returns round_half_up(quantity * unit_price_cents).

    Raises:
        LineTotalOutOfRangeError: the total does not fit MAX_MINOR_UNITS.
    """
    with localcontext() as ctx:
        ctx.prec = _LINE_TOTAL_PRECISION
        raw = quantity * Decimal(unit_price_cents)
        if raw.adjusted() >= _LINE_TOTAL_PRECISION - 1:
            raise LineTotalOutOfRangeError(raw, line_index)
        total = int(raw.quantize(Decimal(1), rounding=LINE_TOTAL_ROUNDING))
    if abs(total) > MAX_MINOR_UNITS:
        raise LineTotalOutOfRangeError(total, line_index)
    return total


def outbound_quantity(quantity: Decimal) -> Decimal:
    """Stock movement quantity for a sold quantity: always -abs(quantity)."""
    return -abs(quantity)
