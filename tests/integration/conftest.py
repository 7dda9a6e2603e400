from datetime import datetime
from typing import List, Optional, Tuple
from urllib.parse import parse_qs, urlparse

import bcrypt
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession
from src.depends import get_clock, get_email_sender, get_reset_policy, get_unit_of_work
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.services.email_sender import IEmailSender
from src.app.services.reset_policy import ResetPolicy
from src.domain.entities import (
    QuestionCategory,
    SecurityQuestion,
    User,
    UserSecurityQuestion,
    UserStatus,
)
from src.domain.validation import hash_security_answer

OLD_PASSWORD = "0ld@Passw0rd"


class RecordingEmailSender(IEmailSender):
    """Keeps every reset link instead of sending it"""

    def __init__(self):
        self.sent: List[Tuple[str, str, datetime]] = []

    async def send_password_reset_link(self, to_email, reset_link, expires_at):
        self.sent.append((to_email, reset_link, expires_at))

    def last_token(self) -> Optional[str]:
        if not self.sent:
            return None
        return parse_qs(urlparse(self.sent[-1][1]).query)["token"][0]


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine("sqlite+aiosqlite:///./test.db")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(engine):
    Session = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with Session() as session:
        yield session


@pytest.fixture
def outbox():
    return RecordingEmailSender()


@pytest.fixture
def app(db_session, outbox, clock):
    from src.api.app import create_app
    from config import ApplicationConfig

    app = create_app(ApplicationConfig)

    async def override_get_unit_of_work():
        yield SqlAlchemyUnitOfWork(db_session)

    app.dependency_overrides[get_unit_of_work] = override_get_unit_of_work
    app.dependency_overrides[get_email_sender] = lambda: outbox
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_reset_policy] = lambda: ResetPolicy(min_request_duration=0)
    return app


@pytest_asyncio.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def make_user(db_session):
    """Factory: user with optional security questions given as {question_text: answer}"""

    async def _make_user(
        email: str = "ana.quispe@gamc.gov.bo",
        questions: Optional[dict] = None,
        status: UserStatus = UserStatus.active,
    ) -> Tuple[User, List[SecurityQuestion]]:
        user = User(
            email=email,
            password_hash=bcrypt.hashpw(OLD_PASSWORD.encode(), bcrypt.gensalt(4)).decode(),
            status=status,
        )
        db_session.add(user)
        await db_session.flush()

        catalog = []
        for text, answer in (questions or {}).items():
            question = SecurityQuestion(question_text=text, category=QuestionCategory.personal)
            db_session.add(question)
            await db_session.flush()
            await db_session.refresh(question)
            db_session.add(
                UserSecurityQuestion(
                    user_id=user.id,
                    question_id=question.id,
                    answer_hash=hash_security_answer(answer),
                )
            )
            catalog.append(question)

        await db_session.commit()
        await db_session.refresh(user)
        return user, catalog

    return _make_user
