from typing import List, Optional
from uuid import UUID

from sqlmodel import select, update
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.security_question_repository import (
    ISecurityQuestionAttemptRepository,
    ISecurityQuestionRepository,
)
from src.domain.entities import (
    SecurityQuestion,
    SecurityQuestionAttempt,
    UserSecurityQuestion,
)


class SecurityQuestionRepository(ISecurityQuestionRepository):
    """Security question repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_active(self) -> List[SecurityQuestion]:
        """Active catalog entries ordered by sort_order"""
        stmt = (
            select(SecurityQuestion)
            .where(SecurityQuestion.is_active == True)  # noqa: E712
            .order_by(SecurityQuestion.sort_order, SecurityQuestion.id)
        )
        result = await self.session.exec(stmt)
        return list(result.all())

    async def get_by_id(self, question_id: int) -> Optional[SecurityQuestion]:
        """Get catalog entry by ID"""
        stmt = select(SecurityQuestion).where(SecurityQuestion.id == question_id)
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def list_user_questions(self, user_id: UUID) -> List[UserSecurityQuestion]:
        """Active configured questions of a user, lowest id first"""
        stmt = (
            select(UserSecurityQuestion)
            .where(
                UserSecurityQuestion.user_id == user_id,
                UserSecurityQuestion.is_active == True,  # noqa: E712
            )
            .order_by(UserSecurityQuestion.id)
        )
        result = await self.session.exec(stmt)
        return list(result.all())

    async def get_user_question(
        self, user_id: UUID, question_id: int
    ) -> Optional[UserSecurityQuestion]:
        """The user's active answer to one catalog question"""
        stmt = select(UserSecurityQuestion).where(
            UserSecurityQuestion.user_id == user_id,
            UserSecurityQuestion.question_id == question_id,
            UserSecurityQuestion.is_active == True,  # noqa: E712
        )
        result = await self.session.exec(stmt)
        return result.one_or_none()


class SecurityQuestionAttemptRepository(ISecurityQuestionAttemptRepository):
    """Attempt counter repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, attempt: SecurityQuestionAttempt) -> SecurityQuestionAttempt:
        """Create the attempt counter of a new cycle"""
        self.session.add(attempt)
        await self.session.flush()
        await self.session.refresh(attempt)
        return attempt

    async def get_by_token_id(
        self, token_id: UUID, for_update: bool = False
    ) -> Optional[SecurityQuestionAttempt]:
        """Get the attempt counter of a cycle"""
        stmt = select(SecurityQuestionAttempt).where(SecurityQuestionAttempt.token_id == token_id)
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def increment(self, attempt: SecurityQuestionAttempt) -> bool:
        """
        Conditional UPDATE so two concurrent misses can never push
        attempts_used past max_attempts.
        """
        stmt = (
            update(SecurityQuestionAttempt)
            .where(
                SecurityQuestionAttempt.id == attempt.id,
                SecurityQuestionAttempt.attempts_used < SecurityQuestionAttempt.max_attempts,
            )
            .values(attempts_used=SecurityQuestionAttempt.attempts_used + 1)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        await self.session.refresh(attempt)
        return result.rowcount > 0

    async def update(self, attempt: SecurityQuestionAttempt) -> SecurityQuestionAttempt:
        """Update existing attempt counter"""
        self.session.add(attempt)
        await self.session.flush()
        await self.session.refresh(attempt)
        return attempt
