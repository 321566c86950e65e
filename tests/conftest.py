"""Shared test fixtures."""

from datetime import timedelta

import pytest
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from dtbooking.config import settings
from dtbooking.db.base import Base
# Import all models to register with Base.metadata
import dtbooking.db.models  # noqa: F401
from dtbooking.db.models.job import JobRow
from dtbooking.db.models.translator import TranslatorJobRelRow
from dtbooking.db.models.user import (
    LanguageRow,
    UserLanguageRow,
    UserMetaRow,
    UserRow,
    UsersBlacklistRow,
)
from dtbooking.models.enums import JobStatus, JobType, TranslatorLevel, TranslatorType, UserType
from dtbooking.notifications.base import Mailer, PushSender, SmsSender
from dtbooking.services.booking_service import BookingService
from dtbooking.services.business_time import local_now, will_expire_at


class RecordingMailer(Mailer):
    def __init__(self):
        self.sent: list[dict] = []

    async def send(self, email, name, subject, template, data) -> bool:
        self.sent.append(
            {"email": email, "name": name, "subject": subject, "template": template, "data": data}
        )
        return True

    def to(self, email: str) -> list[str]:
        return [m["template"] for m in self.sent if m["email"] == email]


class RecordingPushSender(PushSender):
    def __init__(self, configured: bool = True):
        self._configured = configured
        self.sent: list[dict] = []

    @property
    def configured(self) -> bool:
        return self._configured

    async def send(self, fields) -> dict:
        self.sent.append(fields)
        return {"id": f"push_{len(self.sent)}", "recipients": len(fields["tags"])}

    def recipients(self) -> list[str]:
        return [tag["value"] for fields in self.sent for tag in fields["tags"]]


class RecordingSmsSender(SmsSender):
    def __init__(self, configured: bool = True):
        self._configured = configured
        self.sent: list[tuple[str, str, str]] = []

    @property
    def configured(self) -> bool:
        return self._configured

    async def send(self, from_number, to_number, message) -> bool:
        self.sent.append((from_number, to_number, message))
        return True


class Factory:
    """Creates committed rows for a test scenario."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self._seq = 0

    async def _save(self, *rows):
        self.session.add_all(rows)
        await self.session.commit()
        return rows[0]

    async def language(self, name: str = "Arabiska") -> LanguageRow:
        return await self._save(LanguageRow(language=name, active=1))

    async def user(self, user_type: str, **meta) -> UserRow:
        self._seq += 1
        user = UserRow(
            user_type=user_type,
            email=f"{user_type}{self._seq}@example.se",
            name=f"{user_type.title()} {self._seq}",
            mobile=f"+4670000{self._seq:04d}",
            status=1,
        )
        await self._save(user)
        await self._save(UserMetaRow(user_id=user.id, **meta))
        return user

    async def customer(self, **meta) -> UserRow:
        meta.setdefault("consumer_type", "paid")
        meta.setdefault("customer_type", "Sjukvård")
        meta.setdefault("city", "Stockholm")
        return await self.user(UserType.CUSTOMER, **meta)

    async def translator(self, languages: list[LanguageRow], **meta) -> UserRow:
        meta.setdefault("translator_type", TranslatorType.PROFESSIONAL)
        meta.setdefault("translator_level", TranslatorLevel.CERTIFIED)
        meta.setdefault("city", "Stockholm")
        user = await self.user(UserType.TRANSLATOR, **meta)
        for language in languages:
            await self._save(UserLanguageRow(user_id=user.id, lang_id=language.id))
        return user

    async def admin(self, superadmin: bool = False) -> UserRow:
        return await self.user(UserType.SUPERADMIN if superadmin else UserType.ADMIN)

    async def blacklist(self, customer: UserRow, translator: UserRow) -> UsersBlacklistRow:
        return await self._save(UsersBlacklistRow(user_id=customer.id, translator_id=translator.id))

    async def job(self, customer: UserRow, language: LanguageRow, **fields) -> JobRow:
        now = local_now()
        due = fields.pop("due", now.replace(second=0, microsecond=0) + timedelta(days=3))
        values = {
            "user_id": customer.id,
            "from_language_id": language.id,
            "due": due,
            "duration": 60,
            "immediate": "no",
            "status": JobStatus.PENDING,
            "job_type": JobType.PAID,
            "customer_phone_type": "yes",
            "customer_physical_type": "no",
            "will_expire_at": will_expire_at(due, now),
        }
        values.update(fields)
        return await self._save(JobRow(**values))

    async def relation(self, translator: UserRow, job: JobRow, **fields) -> TranslatorJobRelRow:
        return await self._save(TranslatorJobRelRow(user_id=translator.id, job_id=job.id, **fields))


def auth_headers(user: UserRow) -> dict[str, str]:
    token = jwt.encode(
        {
            "sub": str(user.id),
            "email": user.email,
            "iss": settings.jwt_issuer,
            "aud": settings.jwt_audience,
        },
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def db_engine():
    """Create an in-memory SQLite async engine for testing."""
    engine = create_async_engine("sqlite+aiosqlite:///", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(db_engine):
    """Create a test database session."""
    session_factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest.fixture
def factory(db_session):
    return Factory(db_session)


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def push_sender():
    return RecordingPushSender()


@pytest.fixture
def sms_sender():
    return RecordingSmsSender()


@pytest.fixture
def service(db_session, mailer, push_sender, sms_sender):
    return BookingService(db_session, mailer, push_sender, sms_sender)


@pytest.fixture
async def world(factory):
    """A customer, two Arabic translators in Stockholm and an admin."""
    arabic = await factory.language("Arabiska")
    return {
        "arabic": arabic,
        "customer": await factory.customer(),
        "translator": await factory.translator([arabic]),
        "other_translator": await factory.translator([arabic]),
        "admin": await factory.admin(),
    }


@pytest.fixture
def app(db_engine, mailer, push_sender, sms_sender):
    """Create a test application instance with in-memory DB and recording notifiers."""
    from dtbooking.main import create_app

    _app = create_app()
    session_factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    _app.state.db_engine = db_engine
    _app.state.db_session_factory = session_factory
    _app.state.mailer = mailer
    _app.state.push_sender = push_sender
    _app.state.sms_sender = sms_sender
    return _app


@pytest.fixture
async def client(app):
    """Async HTTP test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
