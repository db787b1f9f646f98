"""
BaseService -- abstract base for all write-side services.

Responsibility:
    Common constructor and session-handling contract.  Services receive a
    SQLAlchemy ``Session`` and persist with ``session.flush()``, never
    ``session.commit()``.

Architecture position:
    Services -- imperative shell.  The caller (SaleRecorder, a request
    handler, or a test) opens ``session_scope`` and owns commit/rollback.

Failure modes:
    - A subclass that commits on its own breaks the all-or-nothing guarantee
      of a multi-row sale.
"""

from abc import ABC

from sqlalchemy.orm import Session

from inventauri.domain.clock import Clock, SystemClock


class BaseService(ABC):
    """
    Abstract base class for write-side services.

    Guarantees:
        - The service never calls ``session.commit()`` or
          ``session.rollback()``.
        - ``self.clock`` supplies every timestamp the service writes.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        """
        Args:
            session: Open SQLAlchemy session inside the caller's transaction.
            clock: Time source; defaults to SystemClock.
        """
        self.session = session
        self.clock = clock or SystemClock()
