"""User, profile, language and blacklist tables."""

from sqlalchemy import ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from dtbooking.db.base import Base, TimestampMixin


class UserRow(Base, TimestampMixin):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_type: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    mobile: Mapped[str | None] = mapped_column(String(40), nullable=True)
    status: Mapped[int] = mapped_column(Integer, nullable=False, default=1)


class UserMetaRow(Base, TimestampMixin):
    __tablename__ = "user_meta"

    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), primary_key=True)
    consumer_type: Mapped[str | None] = mapped_column(String(30), nullable=True)
    customer_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    instructions: Mapped[str | None] = mapped_column(Text, nullable=True)
    gender: Mapped[str | None] = mapped_column(String(10), nullable=True)
    translator_type: Mapped[str | None] = mapped_column(String(30), nullable=True)
    translator_level: Mapped[str | None] = mapped_column(String(100), nullable=True)
    not_get_notification: Mapped[str] = mapped_column(String(3), nullable=False, default="no")
    not_get_nighttime: Mapped[str] = mapped_column(String(3), nullable=False, default="no")
    not_get_emergency: Mapped[str] = mapped_column(String(3), nullable=False, default="no")


class LanguageRow(Base):
    __tablename__ = "languages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    language: Mapped[str] = mapped_column(String(100), nullable=False)
    active: Mapped[int] = mapped_column(Integer, nullable=False, default=1)


class UserLanguageRow(Base):
    __tablename__ = "user_languages"
    __table_args__ = (UniqueConstraint("user_id", "lang_id", name="uq_user_language"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    lang_id: Mapped[int] = mapped_column(Integer, ForeignKey("languages.id"), nullable=False, index=True)


class UsersBlacklistRow(Base, TimestampMixin):
    __tablename__ = "users_blacklist"
    __table_args__ = (UniqueConstraint("user_id", "translator_id", name="uq_blacklist_pair"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # The customer who excludes the translator
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    translator_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
