"""SQLAlchemy declarative base and the booking timestamp columns."""

from datetime import datetime

from sqlalchemy import DateTime
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from dtbooking.services.business_time import local_now


class Base(DeclarativeBase):
    """Base class for all ORM models."""
    pass


class TimestampMixin:
    """``created_at``/``updated_at`` as naive business-local time, like ``due``."""

    created_at: Mapped[datetime] = mapped_column(DateTime, default=local_now, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=local_now, onupdate=local_now)
