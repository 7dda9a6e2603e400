from abc import ABC, abstractmethod
from datetime import datetime
from uuid import UUID


class ISessionRepository(ABC):
    """Session repository interface - application layer"""

    @abstractmethod
    async def revoke_all_by_user_id(self, user_id: UUID, revoked_at: datetime) -> int:
        """Revoke all sessions for a user. Returns count of revoked sessions."""
        pass
