"""Database layer - engine, base classes, and session scope."""

from inventauri.db.base import Base, TimestampedBase, TrackedBase, new_id
from inventauri.db.engine import (
    create_tables,
    drop_tables,
    get_engine,
    get_session,
    get_session_factory,
    init_engine_from_settings,
    init_engine_from_url,
    reset_engine,
    session_scope,
)

__all__ = [
    "Base",
    "TimestampedBase",
    "TrackedBase",
    "new_id",
    "create_tables",
    "drop_tables",
    "get_engine",
    "get_session",
    "get_session_factory",
    "init_engine_from_settings",
    "init_engine_from_url",
    "reset_engine",
    "session_scope",
]
