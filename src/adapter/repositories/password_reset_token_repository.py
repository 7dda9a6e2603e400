from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import delete, func
from sqlmodel import select, update
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.password_reset_token_repository import IPasswordResetTokenRepository
from src.domain.entities import (
    LIVE_TOKEN_STAGES,
    TERMINAL_TOKEN_STAGES,
    PasswordResetToken,
    SecurityQuestionAttempt,
    TokenStage,
)


class PasswordResetTokenRepository(IPasswordResetTokenRepository):
    """PasswordResetToken repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, token: PasswordResetToken) -> PasswordResetToken:
        """Create a new password reset token"""
        self.session.add(token)
        await self.session.flush()
        await self.session.refresh(token)
        return token

    async def get_by_token_hash(
        self, token_hash: str, for_update: bool = False
    ) -> Optional[PasswordResetToken]:
        """Get password reset token by token hash"""
        stmt = select(PasswordResetToken).where(PasswordResetToken.token_hash == token_hash)
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def get_live_by_user_id(
        self, user_id: UUID, for_update: bool = False
    ) -> Optional[PasswordResetToken]:
        """Get the user's live token (newest first if several slipped through)"""
        stmt = (
            select(PasswordResetToken)
            .where(
                PasswordResetToken.user_id == user_id,
                PasswordResetToken.stage.in_(LIVE_TOKEN_STAGES),
            )
            .order_by(PasswordResetToken.created_at.desc())
        )
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.session.exec(stmt)
        return result.first()

    async def expire_live_by_user_id(self, user_id: UUID) -> int:
        """Move every live token of the user to expired"""
        stmt = (
            update(PasswordResetToken)
            .where(
                PasswordResetToken.user_id == user_id,
                PasswordResetToken.stage.in_(LIVE_TOKEN_STAGES),
            )
            .values(stage=TokenStage.expired)
            .execution_options(synchronize_session="fetch")
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount

    async def update(self, token: PasswordResetToken) -> PasswordResetToken:
        """Update existing password reset token"""
        self.session.add(token)
        await self.session.flush()
        await self.session.refresh(token)
        return token

    async def list_recent_by_user_id(
        self, user_id: UUID, limit: int = 5
    ) -> List[PasswordResetToken]:
        """Most recent tokens of a user, newest first"""
        stmt = (
            select(PasswordResetToken)
            .where(PasswordResetToken.user_id == user_id)
            .order_by(PasswordResetToken.created_at.desc())
            .limit(limit)
        )
        result = await self.session.exec(stmt)
        return list(result.all())

    async def expire_overdue(self, now: datetime) -> int:
        """Move live tokens past expires_at to expired, keeping the rows"""
        stmt = (
            update(PasswordResetToken)
            .where(
                PasswordResetToken.stage.in_(LIVE_TOKEN_STAGES),
                PasswordResetToken.expires_at < now,
            )
            .values(stage=TokenStage.expired)
            .execution_options(synchronize_session="fetch")
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount

    async def delete_terminal_before(self, cutoff: datetime) -> int:
        """Delete used or expired tokens that ended before the retention cutoff"""
        ended_at = func.coalesce(PasswordResetToken.used_at, PasswordResetToken.expires_at)
        stale_ids = select(PasswordResetToken.id).where(
            PasswordResetToken.stage.in_(TERMINAL_TOKEN_STAGES),
            ended_at < cutoff,
        )

        # Attempt rows reference tokens, remove them first
        await self.session.execute(
            delete(SecurityQuestionAttempt)
            .where(SecurityQuestionAttempt.token_id.in_(stale_ids))
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(
            delete(PasswordResetToken)
            .where(PasswordResetToken.id.in_(stale_ids))
            .execution_options(synchronize_session=False)
        )
        await self.session.flush()
        return result.rowcount
