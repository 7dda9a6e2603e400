from datetime import datetime
from uuid import UUID

from sqlmodel import update
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.session_repository import ISessionRepository
from src.domain.entities import Session


class SessionRepository(ISessionRepository):
    """Session repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def revoke_all_by_user_id(self, user_id: UUID, revoked_at: datetime) -> int:
        """Revoke all active sessions for a user"""
        stmt = (
            update(Session)
            .where(Session.user_id == user_id, Session.revoked == False)  # noqa: E712
            .values(revoked=True, revoked_at=revoked_at)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount
