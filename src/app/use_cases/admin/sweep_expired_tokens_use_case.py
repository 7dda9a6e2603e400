"""
Use Case: Sweep Expired Reset Tokens

Batch cleanup of the password reset token table. Runs on demand from the
admin API or periodically from the token sweeper job.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from src.app.services.reset_policy import ResetPolicy
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.auth.dtos import CleanupTokensResponse
from src.domain.base import utc_now
from src.libs.result import Result, Return

logger = logging.getLogger(__name__)


class SweepExpiredTokensUseCase:
    """
    Retire reset tokens that can no longer be used.

    Business Logic:
    1. Live tokens whose expires_at is in the past move to expired; the rows
       stay so the reset history keeps them
    2. Used or expired tokens that ended before the retention cutoff are deleted
    3. Attempt counters of deleted tokens go with them
    4. Nothing else is written; running it twice is harmless
    """

    def __init__(
        self,
        uow: UnitOfWork,
        policy: Optional[ResetPolicy] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.uow = uow
        self.policy = policy or ResetPolicy()
        self.clock = clock

    async def execute(self) -> Result[CleanupTokensResponse]:
        """
        Execute sweep expired tokens use case.

        Returns:
            Result[CleanupTokensResponse] with the number of expired and
            deleted tokens
        """
        async with self.uow:
            now = self.clock()
            cutoff = now - self.policy.token_retention

            expired = await self.uow.password_reset_tokens.expire_overdue(now)
            cleaned = await self.uow.password_reset_tokens.delete_terminal_before(cutoff)
            await self.uow.commit()

        logger.info(f"Token sweep expired {expired} and removed {cleaned} password reset token(s)")

        return Return.ok(
            CleanupTokensResponse(
                expired=expired,
                cleaned=cleaned,
                message=f"Expired {expired} and removed {cleaned} token(s)",
            )
        )
