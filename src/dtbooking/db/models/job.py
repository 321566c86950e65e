"""Job (booking) table."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from dtbooking.db.base import Base, TimestampMixin


class JobRow(Base, TimestampMixin):
    __tablename__ = "jobs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    from_language_id: Mapped[int] = mapped_column(Integer, ForeignKey("languages.id"), nullable=False)
    # Business-local wall clock time
    due: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    duration: Mapped[int] = mapped_column(Integer, nullable=False)
    immediate: Mapped[str] = mapped_column(String(3), nullable=False, default="no")
    status: Mapped[str] = mapped_column(String(30), nullable=False, default="pending", index=True)
    gender: Mapped[str | None] = mapped_column(String(10), nullable=True)
    certified: Mapped[str | None] = mapped_column(String(20), nullable=True)
    job_type: Mapped[str] = mapped_column(String(10), nullable=False)
    customer_phone_type: Mapped[str] = mapped_column(String(3), nullable=False, default="no")
    customer_physical_type: Mapped[str] = mapped_column(String(3), nullable=False, default="no")
    town: Mapped[str | None] = mapped_column(String(100), nullable=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    instructions: Mapped[str | None] = mapped_column(Text, nullable=True)
    user_email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    reference: Mapped[str | None] = mapped_column(String(200), nullable=True)
    admin_comments: Mapped[str | None] = mapped_column(Text, nullable=True)
    flagged: Mapped[str] = mapped_column(String(3), nullable=False, default="no")
    session_time: Mapped[str | None] = mapped_column(String(20), nullable=True)
    by_admin: Mapped[str] = mapped_column(String(3), nullable=False, default="no")
    manually_handled: Mapped[str] = mapped_column(String(3), nullable=False, default="no")
    specific_translator_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=True
    )
    will_expire_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    expired_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    end_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    withdraw_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    emailsent: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    emailsenttovirpal: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    cust_16_hour_email: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    cust_48_hour_email: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    ignore: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    ignore_expired: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    ignore_flagged: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    ignore_physical: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    ignore_physical_phone: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class DistanceRow(Base, TimestampMixin):
    __tablename__ = "distance"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    job_id: Mapped[int] = mapped_column(Integer, ForeignKey("jobs.id"), unique=True, nullable=False)
    distance: Mapped[str | None] = mapped_column(String(50), nullable=True)
    time: Mapped[str | None] = mapped_column(String(50), nullable=True)
