from abc import ABC, abstractmethod
from typing import List, Optional
from uuid import UUID

from src.domain.entities import (
    SecurityQuestion,
    SecurityQuestionAttempt,
    UserSecurityQuestion,
)


class ISecurityQuestionRepository(ABC):
    """Security question catalog and user answers - application layer"""

    @abstractmethod
    async def list_active(self) -> List[SecurityQuestion]:
        """Active catalog entries ordered by sort_order"""
        pass

    @abstractmethod
    async def get_by_id(self, question_id: int) -> Optional[SecurityQuestion]:
        """Get catalog entry by ID"""
        pass

    @abstractmethod
    async def list_user_questions(self, user_id: UUID) -> List[UserSecurityQuestion]:
        """Active configured questions of a user, lowest id first"""
        pass

    @abstractmethod
    async def get_user_question(
        self, user_id: UUID, question_id: int
    ) -> Optional[UserSecurityQuestion]:
        """The user's active answer to one catalog question"""
        pass


class ISecurityQuestionAttemptRepository(ABC):
    """Per-cycle attempt counters - application layer"""

    @abstractmethod
    async def create(self, attempt: SecurityQuestionAttempt) -> SecurityQuestionAttempt:
        """Create the attempt counter of a new cycle"""
        pass

    @abstractmethod
    async def get_by_token_id(
        self, token_id: UUID, for_update: bool = False
    ) -> Optional[SecurityQuestionAttempt]:
        """Get the attempt counter of a cycle"""
        pass

    @abstractmethod
    async def increment(self, attempt: SecurityQuestionAttempt) -> bool:
        """
        Atomically consume one attempt.

        Returns False when no attempt was left to consume. The passed
        object is refreshed with the stored counter either way.
        """
        pass

    @abstractmethod
    async def update(self, attempt: SecurityQuestionAttempt) -> SecurityQuestionAttempt:
        """Update existing attempt counter"""
        pass
