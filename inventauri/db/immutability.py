"""
ORM-level immutability enforcement for sale records.

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity          | When Immutable          | Why
----------------|-------------------------|-----------------------------------
Sale            | ALWAYS (from creation)  | No return/refund flow; history only
SaleLine        | ALWAYS (from creation)  | Totals are frozen at sale time
StockMovement   | ALWAYS (from creation)  | The stock ledger is append-only

Corrections to stock are new ``adjustment`` movements, never edits.

===============================================================================
HOW IT WORKS
===============================================================================

    session.flush()
         |
         v
    [before_update event] --> _check_*_update() --> ImmutabilityViolationError
         |
         v
    [before_delete event] --> _check_*_delete() --> ImmutabilityViolationError
         |
         v
    SQL sent to database (only if checks pass)

A raised ImmutabilityViolationError aborts the flush; the surrounding
session_scope rolls the transaction back.

``before_update`` also fires for objects whose only change is a collection;
those have no column changes and pass.

===============================================================================
USAGE
===============================================================================

Registered by ``init_engine_from_url``.  To temporarily disable (TESTS ONLY):

    unregister_immutability_listeners()
    # ... do forbidden operation ...
    register_immutability_listeners()
"""

from sqlalchemy import event
from sqlalchemy.orm import object_session

from inventauri.exceptions import ImmutabilityViolationError
from inventauri.logging_config import get_logger

logger = get_logger("db.immutability")


def _block(entity_type: str, target, operation: str) -> None:
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": str(target.id),
            "operation": operation,
        },
    )
    raise ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=str(target.id),
        operation=operation.lower(),
    )


def _has_column_changes(target) -> bool:
    session = object_session(target)
    if session is None:
        return True
    return session.is_modified(target, include_collections=False)


def _check_append_only_update(mapper, connection, target):
    """Prevent column updates to Sale, SaleLine and StockMovement rows."""
    if not _has_column_changes(target):
        return
    _block(type(target).__name__, target, "UPDATE")


def _check_append_only_delete(mapper, connection, target):
    """Prevent deletion of Sale, SaleLine and StockMovement rows."""
    _block(type(target).__name__, target, "DELETE")


def _append_only_models():
    # Inline import: models import from db, db must not import models at load
    from inventauri.models.sale import Sale, SaleLine
    from inventauri.models.stock_movement import StockMovement

    return (Sale, SaleLine, StockMovement)


def register_immutability_listeners():
    """
    Register all immutability enforcement event listeners (idempotent).

    Call this after all models are imported but before any database
    operations begin.
    """
    for model in _append_only_models():
        if not event.contains(model, "before_update", _check_append_only_update):
            event.listen(model, "before_update", _check_append_only_update)
        if not event.contains(model, "before_delete", _check_append_only_delete):
            event.listen(model, "before_delete", _check_append_only_delete)


def _safe_remove_listener(target, event_name, listener_fn):
    """Remove an event listener, ignoring it if not registered."""
    if event.contains(target, event_name, listener_fn):
        event.remove(target, event_name, listener_fn)


def unregister_immutability_listeners():
    """
    Remove immutability enforcement event listeners.

    WARNING: Only use this in tests where you need to intentionally
    violate immutability rules to verify detection.
    """
    for model in _append_only_models():
        _safe_remove_listener(model, "before_update", _check_append_only_update)
        _safe_remove_listener(model, "before_delete", _check_append_only_delete)
