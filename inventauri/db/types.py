"""
Module: inventauri.db.types
Responsibility: Column types for stock quantities and money.
Architecture position: DB.  Imported by db/base.py and models/.  MUST NOT
    import from services/, selectors/ or domain/.

Invariants enforced:
    - Quantities are exact Decimals with QUANTITY_SCALE decimal places on
      every backend.  PostgreSQL stores them as NUMERIC(38, 9).  SQLite has no
      exact decimal type (NUMERIC columns hold REAL), so there they are stored
      as a signed BIGINT count of 10**-9 units.  Sums, comparisons and check
      constraints stay exact on both backends.
    - Money is integer minor units that fit a signed BIGINT.

Failure modes:
    - ValueError from bind processing when a quantity has more than
      QUANTITY_SCALE decimal places or does not fit the SQLite encoding.
      Values that pass domain/quantities.py validation never hit this.
"""

from decimal import Decimal

from sqlalchemy import BigInteger, Numeric
from sqlalchemy.types import TypeDecorator

QUANTITY_PRECISION = 38
QUANTITY_SCALE = 9

# Signed 64-bit limit shared by money columns and the SQLite quantity encoding
BIGINT_MAX = 2**63 - 1

_QUANTUM = Decimal(1).scaleb(-QUANTITY_SCALE)


class Quantity(TypeDecorator):
    """Exact decimal quantity: NUMERIC(38, 9), or scaled BIGINT on SQLite."""

    impl = Numeric(QUANTITY_PRECISION, QUANTITY_SCALE, asdecimal=True)
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "sqlite":
            return dialect.type_descriptor(BigInteger())
        return dialect.type_descriptor(
            Numeric(QUANTITY_PRECISION, QUANTITY_SCALE, asdecimal=True)
        )

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        value = Decimal(value)
        if dialect.name != "sqlite":
            return value
        scaled = value.scaleb(QUANTITY_SCALE)
        if scaled != scaled.to_integral_value():
            raise ValueError(f"quantity {value} has more than {QUANTITY_SCALE} decimal places")
        units = int(scaled)
        if abs(units) > BIGINT_MAX:
            raise ValueError(f"quantity {value} is out of range")
        return units

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if dialect.name == "sqlite":
            return Decimal(int(value)).scaleb(-QUANTITY_SCALE)
        return Decimal(value).quantize(_QUANTUM)
