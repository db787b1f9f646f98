"""
Module: inventauri.db.base
Responsibility: Declarative base classes for all SQLAlchemy ORM models.  Provides
    the opaque string primary key convention, the type annotation map for
    consistent column types, and timestamp mixins.
Architecture position: DB.  Imports only db/types.py; ALL model files import
    from here.  MUST NOT import from models/, services/, selectors/ or domain/.

Invariants enforced:
    - Opaque string primary keys: ids are strings so callers may supply their
      own identifiers (e.g. "sku-1"); generated ids are uuid4 strings.
    - Decimal precision: Decimal maps to db.types.Quantity.  NEVER use float for
      quantities.  Money is stored as integer minor units (BigInteger).
    - Timestamps are always timezone-aware.
"""

from datetime import datetime
from decimal import Decimal
from typing import ClassVar
from uuid import uuid4

from sqlalchemy import BigInteger, DateTime, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from inventauri.db.types import Quantity

ID_LENGTH = 64


def new_id() -> str:
    """Generate a fresh opaque identifier."""
    return str(uuid4())


class Base(DeclarativeBase):
    """
    Declarative base for all SQLAlchemy models.

    Guarantees:
        - id is a String(64) primary key, generated via uuid4 when not given.
        - Decimal maps to Quantity (exact NUMERIC(38, 9) on every backend).
        - datetime maps to DateTime(timezone=True).
        - int maps to BigInteger -- minor currency units can be large.
    """

    type_annotation_map: ClassVar[dict] = {
        Decimal: Quantity(),
        datetime: DateTime(timezone=True),
        int: BigInteger,
    }

    id: Mapped[str] = mapped_column(
        String(ID_LENGTH),
        primary_key=True,
        default=new_id,
    )


class TimestampedBase(Base):
    """
    Abstract base for append-only records.

    created_at is normally assigned by the writing service from its Clock so
    the value is known without a round trip; the server default covers rows
    inserted by other means.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )


class TrackedBase(TimestampedBase):
    """Abstract base for mutable records: adds updated_at."""

    __abstract__ = True

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
