from datetime import datetime
from typing import Optional

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.rate_limit_repository import IRateLimitRepository
from src.domain.entities import RateLimitRecord


class RateLimitRepository(IRateLimitRepository):
    """RateLimitRecord repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_email(self, email: str, for_update: bool = False) -> Optional[RateLimitRecord]:
        """Get the record for a normalized email"""
        stmt = select(RateLimitRecord).where(RateLimitRecord.email == email)
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def record(self, email: str, requested_at: datetime) -> RateLimitRecord:
        """Insert or move forward the last accepted request timestamp"""
        record = await self.get_by_email(email)
        if record is None:
            record = RateLimitRecord(email=email, last_request_at=requested_at)
        else:
            record.last_request_at = requested_at
        self.session.add(record)
        await self.session.flush()
        return record

    async def clear(self, email: str) -> bool:
        """Remove the record"""
        record = await self.get_by_email(email)
        if record is None:
            return False
        await self.session.delete(record)
        await self.session.flush()
        return True
