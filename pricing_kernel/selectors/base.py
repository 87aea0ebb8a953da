"""
Read side of the kernel.

Selectors run queries against the caller's session and hand back frozen
DTOs or engine value objects.  They never add, delete, flush or commit.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from pricing_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseSelector(ABC, Generic[ModelType]):
    """Holds the caller's session; subclasses add query methods."""

    def __init__(self, session: Session):
        self.session = session
