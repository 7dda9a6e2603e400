from datetime import datetime
from typing import Callable
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession
from config import ApplicationConfig
from src.adapter.services.email_sender import LoggingEmailSender, SmtpEmailSender
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.api.utils.jwt import verify_jwt
from src.app.services.email_sender import IEmailSender
from src.app.services.reset_policy import ResetPolicy
from src.domain.base import utc_now

engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)

security = HTTPBearer()


async def get_unit_of_work():
    async with AsyncSessionLocal() as session:
        yield SqlAlchemyUnitOfWork(session)


def build_email_sender(config=ApplicationConfig) -> IEmailSender:
    if config.EMAIL_BACKEND == "smtp":
        return SmtpEmailSender(
            host=config.SMTP_HOST,
            port=int(config.SMTP_PORT),
            username=config.SMTP_USERNAME or None,
            password=config.SMTP_PASSWORD or None,
            use_tls=config.SMTP_USE_TLS,
            from_address=config.SMTP_FROM,
            timeout=float(config.DOWNSTREAM_TIMEOUT_SECONDS),
        )
    return LoggingEmailSender()


_email_sender = build_email_sender()
_reset_policy = ResetPolicy.from_config(ApplicationConfig)


def get_email_sender() -> IEmailSender:
    return _email_sender


def get_reset_policy() -> ResetPolicy:
    return _reset_policy


def get_clock() -> Callable[[], datetime]:
    return utc_now


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> dict:
    """
    Dependency to extract and verify JWT token from Authorization header.

    Args:
        credentials: Bearer token from Authorization header

    Returns:
        Decoded JWT payload containing user_id

    Raises:
        HTTPException: 401 if token is invalid or expired
    """
    token = credentials.credentials
    payload = verify_jwt(token)

    if payload is None or "user_id" not in payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )

    try:
        UUID(payload["user_id"])
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )

    return payload
