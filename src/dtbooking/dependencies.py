"""FastAPI dependency injection providers."""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from dtbooking.db.models.user import UserRow
from dtbooking.errors.exceptions import AuthenticationError, AuthorizationError
from dtbooking.logging_config import bind_actor
from dtbooking.models.enums import ADMIN_USER_TYPES, UserType
from dtbooking.repositories.user_repo import UserRepository
from dtbooking.services.booking_service import BookingService
from dtbooking.services.filters import JobQueryService


async def get_db(request: Request) -> AsyncGenerator:
    """Yield a database session from the app's session factory."""
    session_factory = request.app.state.db_session_factory
    async with session_factory() as session:
        yield session


async def get_current_user(request: Request, db: AsyncSession = Depends(get_db)) -> UserRow:
    """Return the authenticated user row or raise 401."""
    claims = getattr(request.state, "user", {})
    if "_auth_error" in claims:
        raise AuthenticationError(claims["_auth_error"])
    sub = claims.get("sub", "anonymous")
    if sub in ("anonymous", ""):
        raise AuthenticationError("Authentication required")
    try:
        user_id = int(sub)
    except (TypeError, ValueError):
        raise AuthenticationError("invalid_subject") from None
    user = await UserRepository(db).get(user_id)
    if user is None or user.status != 1:
        raise AuthenticationError("Unknown or inactive user")
    bind_actor(user.id, user.user_type)
    return user


def require_role(*roles: str):
    """Return a dependency that enforces one of the given user types."""

    async def _check(user: UserRow = Depends(get_current_user)) -> UserRow:
        if user.user_type not in roles:
            raise AuthorizationError(f"Requires one of: {', '.join(roles)}")
        return user

    return _check


def get_booking_service(request: Request, db: AsyncSession = Depends(get_db)) -> BookingService:
    state = request.app.state
    return BookingService(db, state.mailer, state.push_sender, state.sms_sender)


def get_job_query_service(db: AsyncSession = Depends(get_db)) -> JobQueryService:
    return JobQueryService(db)


# Type aliases for dependency injection
CurrentUser = Annotated[UserRow, Depends(get_current_user)]
Bookings = Annotated[BookingService, Depends(get_booking_service)]
JobQueries = Annotated[JobQueryService, Depends(get_job_query_service)]
RequireAdmin = Depends(require_role(*ADMIN_USER_TYPES))
RequireTranslator = Depends(require_role(UserType.TRANSLATOR))
