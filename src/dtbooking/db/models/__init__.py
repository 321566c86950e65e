"""SQLAlchemy ORM models - import all to register with Base.metadata."""

from dtbooking.db.models.user import (
    LanguageRow,
    UserLanguageRow,
    UserMetaRow,
    UserRow,
    UsersBlacklistRow,
)
from dtbooking.db.models.job import DistanceRow, JobRow
from dtbooking.db.models.translator import TranslatorJobRelRow

__all__ = [
    "UserRow",
    "UserMetaRow",
    "LanguageRow",
    "UserLanguageRow",
    "UsersBlacklistRow",
    "JobRow",
    "DistanceRow",
    "TranslatorJobRelRow",
]
