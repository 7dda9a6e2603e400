from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from src.domain.entities import PasswordResetToken


class IPasswordResetTokenRepository(ABC):
    """PasswordResetToken repository interface - application layer"""

    @abstractmethod
    async def create(self, token: PasswordResetToken) -> PasswordResetToken:
        """Create a new password reset token"""
        pass

    @abstractmethod
    async def get_by_token_hash(
        self, token_hash: str, for_update: bool = False
    ) -> Optional[PasswordResetToken]:
        """Get password reset token by token hash"""
        pass

    @abstractmethod
    async def get_live_by_user_id(
        self, user_id: UUID, for_update: bool = False
    ) -> Optional[PasswordResetToken]:
        """Get the user's live (pending_security or ready) token, if any"""
        pass

    @abstractmethod
    async def expire_live_by_user_id(self, user_id: UUID) -> int:
        """Move every live token of the user to expired. Returns count."""
        pass

    @abstractmethod
    async def update(self, token: PasswordResetToken) -> PasswordResetToken:
        """Update existing password reset token"""
        pass

    @abstractmethod
    async def list_recent_by_user_id(
        self, user_id: UUID, limit: int = 5
    ) -> List[PasswordResetToken]:
        """Most recent tokens of a user, newest first"""
        pass

    @abstractmethod
    async def expire_overdue(self, now: datetime) -> int:
        """Move live tokens whose expires_at has passed to expired. Returns count."""
        pass

    @abstractmethod
    async def delete_terminal_before(self, cutoff: datetime) -> int:
        """
        Delete used or expired tokens whose used_at (or expires_at when never
        used) is older than `cutoff`, together with their attempt rows.
        Returns count.
        """
        pass
