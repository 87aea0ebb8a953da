"""
Write side of the kernel.

A service persists rows with ``session.flush()`` inside the caller's
transaction.  Commit and rollback of that transaction belong to the
order-management code (or ``session_scope()``), never to a service.
"""

from abc import ABC

from sqlalchemy.orm import Session


class BaseService(ABC):
    """Holds the caller's session for a write service."""

    def __init__(self, session: Session):
        self.session = session
