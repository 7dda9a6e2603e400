"""
Get Password Reset History Use Case

Recent reset cycles of the authenticated user.
"""

from typing import Optional
from uuid import UUID

from src.app.services.reset_policy import ResetPolicy
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import UserStatus
from src.domain.errors import ErrorCode
from src.libs.result import Error, Result, Return
from .dtos import PasswordResetHistoryResponse, ResetCycleInfo


class GetPasswordResetHistoryUseCase:
    """
    Use case for listing the caller's recent reset cycles.

    Business Rules:
    - Newest first, limited to the last 5 cycles
    - Token hashes are never returned
    """

    def __init__(self, uow: UnitOfWork, policy: Optional[ResetPolicy] = None):
        self.uow = uow
        self.policy = policy or ResetPolicy()

    async def execute(self, user_id: UUID) -> Result[PasswordResetHistoryResponse]:
        """
        Execute get password reset history use case.

        Args:
            user_id: User UUID from JWT

        Returns:
            Result with the recent cycles, or Error

        Errors:
            - TOKEN_INVALID: User no longer exists or is disabled
        """
        async with self.uow:
            user = await self.uow.users.get_by_id(user_id)
            if user is None or user.status != UserStatus.active:
                return Return.err(Error(ErrorCode.TOKEN_INVALID, "Invalid access token"))

            tokens = await self.uow.password_reset_tokens.list_recent_by_user_id(
                user_id, limit=self.policy.history_limit
            )

            cycles = [
                ResetCycleInfo(
                    id=str(token.id),
                    stage=token.stage.value,
                    created_at=token.created_at,
                    expires_at=token.expires_at,
                    used_at=token.used_at,
                    request_ip=token.request_ip,
                )
                for token in tokens
            ]

        return Return.ok(PasswordResetHistoryResponse(cycles=cycles, count=len(cycles)))
