"""
Declarative base shared by the pay-period ORM models.

Conventions every table follows:

* ``id`` is a UUID stored as ``String(36)`` so SQLite and PostgreSQL
  behave the same.
* ``Decimal`` columns are ``Numeric(18, 4)``; hours and pay never touch
  float.
* ``datetime`` columns are timezone-aware.

Nothing here imports from the domain, engine or module layers.
"""

from datetime import datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID, uuid4

from sqlalchemy import DateTime, Numeric, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """``uuid.UUID`` in Python, 36-character text in the database."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return None if value is None else str(value)

    def process_result_value(self, value, dialect):
        return None if value is None else UUID(value)


class Base(DeclarativeBase):
    type_annotation_map: ClassVar[dict] = {
        UUID: UUIDString(),
        Decimal: Numeric(18, 4, asdecimal=True),
        datetime: DateTime(timezone=True),
    }

    id: Mapped[UUID] = mapped_column(UUIDString(), primary_key=True, default=uuid4)
