"""
Module: inventauri.selectors.base
Responsibility: Abstract base class for read-only query selectors.
Architecture position: Selectors.  May import from db/, domain/ and models/.
    MUST NOT import from services/.

Invariants enforced:
    - Read-only access: selectors MUST NOT call session.add(), delete(),
      flush() or commit().
    - Selectors return frozen dataclasses, not ORM instances, and every
      timestamp they return is timezone-aware UTC.
    - Every query is scoped to a single tenant.
"""

from abc import ABC

from sqlalchemy.orm import Session


class BaseSelector(ABC):
    """
    Abstract base class for all selectors.

    Selectors accept a Session from the caller and never manage its
    transaction.
    """

    def __init__(self, session: Session):
        self.session = session
