"""Translator assignment (translator_job_rel) table.

Rows are append-only: a reassignment or cancellation stamps ``cancel_at`` on the
current row and, where a new translator takes over, inserts a fresh row.
"""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, text
from sqlalchemy.orm import Mapped, mapped_column

from dtbooking.db.base import Base, TimestampMixin

_ACTIVE_PREDICATE = text("cancel_at IS NULL AND completed_at IS NULL")


class TranslatorJobRelRow(Base, TimestampMixin):
    __tablename__ = "translator_job_rel"
    __table_args__ = (
        # At most one active assignment per job
        Index(
            "uq_translator_job_rel_active",
            "job_id",
            unique=True,
            sqlite_where=_ACTIVE_PREDICATE,
            postgresql_where=_ACTIVE_PREDICATE,
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    job_id: Mapped[int] = mapped_column(Integer, ForeignKey("jobs.id"), nullable=False, index=True)
    cancel_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    completed_by: Mapped[int | None] = mapped_column(Integer, nullable=True)
