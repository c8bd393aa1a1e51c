"""
SQLAlchemy declarative base and common model mixins.

This module provides the SQLAlchemy DeclarativeBase and the column mixins
shared by the order, order detail and shopping cart tables: audit columns
(created/updated on and by) and the soft-delete ``is_active`` flag.
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional

from sqlalchemy import Boolean, DateTime, Integer, func
from sqlalchemy.types import TypeDecorator
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.ext.asyncio import AsyncAttrs
from sqlalchemy.orm import DeclarativeBase, Mapped, declared_attr, mapped_column


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


class IntEnumType(TypeDecorator):
    """
    Store an ``IntEnum`` as a plain integer column.

    Values read back are converted to the enum; unknown integers raise
    ``ValueError`` rather than leaking raw numbers into the domain.
    """

    impl = Integer
    cache_ok = True

    def __init__(self, enum_class: type, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.enum_class = enum_class

    def process_bind_param(self, value: Any, dialect: Any) -> Optional[int]:
        if value is None:
            return None
        return int(self.enum_class(value))

    def process_result_value(self, value: Any, dialect: Any) -> Any:
        if value is None:
            return None
        return self.enum_class(value)


class Base(AsyncAttrs, DeclarativeBase):
    """
    Base class for all SQLAlchemy models with async support.

    Provides async attribute loading and a column-based ``to_dict`` used
    by structured log events and tests.
    """

    __abstract__ = True

    def to_dict(self, exclude: Optional[set[str]] = None) -> Dict[str, Any]:
        """
        Convert model instance to dictionary.

        Args:
            exclude: Set of attribute names to exclude from output

        Returns:
            Dictionary representation of the model with JSON-friendly values
        """
        exclude = exclude or set()
        result = {}

        for column in self.__table__.columns:
            if column.key in exclude:
                continue
            value = getattr(self, column.key)
            if isinstance(value, datetime):
                result[column.key] = value.isoformat()
            elif isinstance(value, uuid.UUID):
                result[column.key] = str(value)
            elif isinstance(value, Decimal):
                result[column.key] = str(value)
            elif isinstance(value, Enum):
                result[column.key] = value.value
            else:
                result[column.key] = value

        return result

    def __repr__(self) -> str:
        pk_values = []
        for column in self.__table__.primary_key.columns:
            value = getattr(self, column.key, None)
            if value is not None:
                pk_values.append(f"{column.key}={value!r}")

        pk_str = ", ".join(pk_values) if pk_values else "no primary key"
        return f"<{self.__class__.__name__}({pk_str})>"


class AuditMixin:
    """
    Mixin for audit trail columns.

    ``created_on``/``created_by`` are written once on insert;
    ``updated_on``/``updated_by`` are set by every mutation.
    """

    @declared_attr
    def created_on(cls) -> Mapped[datetime]:
        return mapped_column(
            DateTime(timezone=True),
            nullable=False,
            default=utcnow,
            server_default=func.now(),
            comment="Timestamp when record was created",
        )

    @declared_attr
    def created_by(cls) -> Mapped[uuid.UUID]:
        return mapped_column(
            UUID(as_uuid=True),
            nullable=False,
            comment="User who created the record",
        )

    @declared_attr
    def updated_on(cls) -> Mapped[Optional[datetime]]:
        return mapped_column(
            DateTime(timezone=True),
            nullable=True,
            comment="Timestamp when record was last updated",
        )

    @declared_attr
    def updated_by(cls) -> Mapped[Optional[uuid.UUID]]:
        return mapped_column(
            UUID(as_uuid=True),
            nullable=True,
            comment="User who last updated the record",
        )

    def touch(self, actor: Optional[uuid.UUID] = None) -> None:
        """Record a mutation by ``actor`` at the current time."""
        self.updated_on = utcnow()
        if actor is not None:
            self.updated_by = actor


class ActiveFlagMixin:
    """
    Mixin for soft delete via an ``is_active`` flag.

    Rows are deactivated, never physically removed.
    """

    @declared_attr
    def is_active(cls) -> Mapped[bool]:
        return mapped_column(
            Boolean,
            nullable=False,
            default=True,
            server_default="true",
            comment="False once the record has been soft deleted",
        )

    def deactivate(self, actor: Optional[uuid.UUID] = None) -> None:
        """Mark record inactive."""
        self.is_active = False
        if isinstance(self, AuditMixin):
            self.touch(actor)

