"""Repositories for users, their profile meta, languages and blacklists."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dtbooking.db.models.user import (
    LanguageRow,
    UserLanguageRow,
    UserMetaRow,
    UserRow,
    UsersBlacklistRow,
)
from dtbooking.models.enums import UserType
from dtbooking.repositories.base import BaseRepository


class UserRepository(BaseRepository):
    def __init__(self, session: AsyncSession):
        super().__init__(session, UserRow)

    async def get_by_email(self, email: str) -> UserRow | None:
        stmt = select(UserRow).where(UserRow.email == email)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_by_emails(self, emails: list[str]) -> list[UserRow]:
        if not emails:
            return []
        stmt = select(UserRow).where(UserRow.email.in_(emails))
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_emails_by_type(self, user_type: str) -> list[str]:
        stmt = select(UserRow.email).where(UserRow.user_type == user_type).order_by(UserRow.email)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_active_translators(self, exclude_user_id: int | None = None) -> list[UserRow]:
        stmt = select(UserRow).where(
            UserRow.user_type == UserType.TRANSLATOR,
            UserRow.status == 1,
        )
        if exclude_user_id is not None:
            stmt = stmt.where(UserRow.id != exclude_user_id)
        result = await self.session.execute(stmt.order_by(UserRow.id))
        return list(result.scalars().all())

    async def list_potential_translators(
        self,
        translator_type: str,
        language_id: int,
        gender: str | None,
        levels: list[str],
        exclude_ids: list[int],
    ) -> list[UserRow]:
        """Active translators of a type speaking a language at one of the given levels."""
        stmt = (
            select(UserRow)
            .join(UserMetaRow, UserMetaRow.user_id == UserRow.id)
            .join(UserLanguageRow, UserLanguageRow.user_id == UserRow.id)
            .where(
                UserRow.user_type == UserType.TRANSLATOR,
                UserRow.status == 1,
                UserMetaRow.translator_type == translator_type,
                UserMetaRow.translator_level.in_(levels),
                UserLanguageRow.lang_id == language_id,
            )
        )
        if gender:
            stmt = stmt.where(UserMetaRow.gender == gender)
        if exclude_ids:
            stmt = stmt.where(UserRow.id.not_in(exclude_ids))
        result = await self.session.execute(stmt.distinct())
        return list(result.scalars().all())


class UserMetaRepository(BaseRepository):
    def __init__(self, session: AsyncSession):
        super().__init__(session, UserMetaRow)

    async def get_value(self, user_id: int, field: str) -> str | None:
        meta = await self.get(user_id)
        if meta is None:
            return None
        return getattr(meta, field)

    async def language_ids(self, user_id: int) -> list[int]:
        stmt = select(UserLanguageRow.lang_id).where(UserLanguageRow.user_id == user_id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())


class BlacklistRepository(BaseRepository):
    def __init__(self, session: AsyncSession):
        super().__init__(session, UsersBlacklistRow)

    async def translator_ids_for_customer(self, customer_id: int) -> list[int]:
        stmt = select(UsersBlacklistRow.translator_id).where(UsersBlacklistRow.user_id == customer_id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())


class LanguageRepository(BaseRepository):
    """Language name lookup, memoised per repository instance."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, LanguageRow)
        self._names: dict[int, str] = {}

    async def name(self, language_id: int | None) -> str:
        if language_id is None:
            return ""
        if language_id not in self._names:
            row = await self.get(language_id)
            self._names[language_id] = row.language if row else ""
        return self._names[language_id]

    async def list_active(self) -> list[LanguageRow]:
        stmt = select(LanguageRow).where(LanguageRow.active == 1).order_by(LanguageRow.language)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

