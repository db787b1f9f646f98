"""
Module: inventauri.db.errors
Responsibility: Translate SQLAlchemy / DBAPI failures into the Inventauri error
    taxonomy.  Callers translate only AFTER the transaction has been rolled back
    (i.e. outside session_scope), so the translated error always describes a
    request that left nothing behind.
Architecture position: DB.  May import from exceptions.py only.

Classification:
    - Foreign key violation -> UnknownItemReferenceError (ReferentialError).
      Recognised by PostgreSQL SQLSTATE 23503 or the SQLite driver message.
    - Unique violation      -> is_unique_violation() lets the catalog map it
      onto DuplicateSkuError / InvalidItemError.
    - Anything else         -> StorageError.
"""

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from inventauri.exceptions import (
    InventauriError,
    StorageError,
    UnknownItemReferenceError,
)

# PostgreSQL SQLSTATEs
_PG_FOREIGN_KEY_VIOLATION = "23503"
_PG_UNIQUE_VIOLATION = "23505"


def _sqlstate(exc: IntegrityError) -> str | None:
    orig = exc.orig
    return getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)


def is_foreign_key_violation(exc: IntegrityError) -> bool:
    """Check whether an IntegrityError was raised by a foreign key constraint."""
    sqlstate = _sqlstate(exc)
    if sqlstate is not None:
        return sqlstate == _PG_FOREIGN_KEY_VIOLATION
    return "FOREIGN KEY constraint failed" in str(exc.orig)


def is_unique_violation(exc: IntegrityError) -> bool:
    """Check whether an IntegrityError was raised by a unique or primary key constraint."""
    sqlstate = _sqlstate(exc)
    if sqlstate is not None:
        return sqlstate == _PG_UNIQUE_VIOLATION
    return "UNIQUE constraint failed" in str(exc.orig)


def translate_storage_error(
    exc: SQLAlchemyError,
    *,
    operation: str,
    tenant_id: str,
    item_id: str | None = None,
    line_index: int | None = None,
) -> InventauriError:
    """
    Map a SQLAlchemy failure onto ReferentialError or StorageError.

    Args:
        exc: The original SQLAlchemy exception.
        operation: Name of the operation that failed (for StorageError).
        tenant_id: Tenant of the failing request.
        item_id: Item referenced by the statement being flushed, if known.
        line_index: Sale line being written, if any.

    Returns:
        The exception to raise (``raise translated from exc``).
    """
    if isinstance(exc, IntegrityError) and is_foreign_key_violation(exc):
        return UnknownItemReferenceError(tenant_id, item_id, line_index)
    detail = str(getattr(exc, "orig", None) or exc)
    return StorageError(operation, detail)
