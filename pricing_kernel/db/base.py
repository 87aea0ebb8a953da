"""
Declarative bases for the pricing engine's ORM models.

Every table gets a uuid4 primary key stored as ``String(36)`` so the same
schema runs on SQLite (tests) and PostgreSQL.  Python ``Decimal``
annotations map to ``Numeric(38, 9)``: flat tax amounts such as ``0.125``
per unit must survive a round trip unchanged, and money is never a float.

Nothing in this module may import models, selectors, services or any
outer layer.
"""

from datetime import datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID as PyUUID, uuid4

from sqlalchemy import BigInteger, DateTime, Numeric, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """``uuid.UUID`` in Python, ``VARCHAR(36)`` in the database."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return None if value is None else str(value)

    def process_result_value(self, value, dialect):
        return None if value is None else PyUUID(value)


class Base(DeclarativeBase):
    """Root of every mapped class; supplies the ``id`` column."""

    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(38, 9),
        datetime: DateTime(timezone=True),
        PyUUID: UUIDString(),
        int: BigInteger,
    }

    id: Mapped[PyUUID] = mapped_column(UUIDString(), primary_key=True, default=uuid4)


class TrackedBase(Base):
    """
    Editable rows: catalog entries, categories, products, order items.

    Append-only compliance rows inherit ``Base`` directly and carry their
    own ``calculated_at`` / ``sale_date`` taken from the injected clock.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now(), nullable=False,
    )


UUID = PyUUID
