"""
Confirm Password Reset Use Case

Consumes a ready token and sets the new password.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

import bcrypt

from src.app.services.keyed_lock import KeyedLock, reset_locks
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utc_now
from src.domain.entities import AuditEvent, TokenStage
from src.domain.errors import ErrorCode
from src.domain.validation import (
    hash_reset_token,
    normalize_email,
    validate_password,
    validate_reset_token_format,
)
from src.libs.result import Error, Result, Return
from .dtos import ConfirmPasswordResetResponse

logger = logging.getLogger(__name__)


class ConfirmPasswordResetUseCase:
    """
    Use case for confirming password reset.

    Business Rules:
    - Token is found by its SHA-256 hash
    - Token must be in stage ready, unused and not past expires_at
    - New password must satisfy the password policy; a rejected password
      leaves the token usable
    - Password is hashed with bcrypt (cost factor 12)
    - Password update, token consumption, session revocation and rate-limit
      clearing are committed together or not at all
    """

    def __init__(
        self,
        uow: UnitOfWork,
        clock: Callable[[], datetime] = utc_now,
        locks: KeyedLock = reset_locks,
    ):
        self.uow = uow
        self.clock = clock
        self.locks = locks

    async def execute(
        self,
        token: str,
        new_password: str,
        request_ip: Optional[str] = None,
    ) -> Result[ConfirmPasswordResetResponse]:
        """
        Execute confirm password reset use case.

        Args:
            token: Reset token (emailed link or elevated token)
            new_password: New password to set
            request_ip: Client IP for the audit record

        Returns:
            Result with confirmation message, or Error

        Errors:
            - TOKEN_INVALID: Unknown token or cycle not ready
            - TOKEN_USED: Token already consumed
            - TOKEN_EXPIRED: Token past expiry or cycle expired
            - PASSWORD_POLICY_VIOLATION: New password rejected
        """
        if not validate_reset_token_format(token).valid:
            return self._invalid_token()

        token_hash = hash_reset_token(token)
        async with self.locks.hold(f"token:{token_hash}"):
            return await self._confirm(token_hash, new_password, request_ip)

    async def _confirm(
        self, token_hash: str, new_password: str, request_ip: Optional[str]
    ) -> Result[ConfirmPasswordResetResponse]:
        async with self.uow:
            now = self.clock()

            reset_token = await self.uow.password_reset_tokens.get_by_token_hash(
                token_hash, for_update=True
            )
            if reset_token is None:
                return self._invalid_token()

            if reset_token.stage == TokenStage.used or reset_token.used_at is not None:
                return Return.err(
                    Error(ErrorCode.TOKEN_USED, "Password reset token has already been used")
                )

            if reset_token.stage == TokenStage.expired:
                return Return.err(
                    Error(ErrorCode.TOKEN_EXPIRED, "Password reset token has expired")
                )

            if reset_token.stage != TokenStage.ready:
                # pending_security: the original secret never authorizes a reset
                return self._invalid_token()

            if reset_token.is_expired(now):
                reset_token.advance(TokenStage.expired)
                await self.uow.password_reset_tokens.update(reset_token)
                await self.uow.commit()
                return Return.err(
                    Error(ErrorCode.TOKEN_EXPIRED, "Password reset token has expired")
                )

            password_check = validate_password(new_password)
            if not password_check.valid:
                return Return.err(
                    Error(
                        ErrorCode.PASSWORD_POLICY_VIOLATION,
                        password_check.message,
                        {"violations": password_check.violations},
                    )
                )

            user = await self.uow.users.get_by_id(reset_token.user_id)
            if user is None:
                return self._invalid_token()

            password_hash = bcrypt.hashpw(new_password.encode(), bcrypt.gensalt(12))
            user.password_hash = password_hash.decode()
            user.password_changed_at = now
            await self.uow.users.update(user)

            reset_token.used_at = now
            reset_token.advance(TokenStage.used)
            await self.uow.password_reset_tokens.update(reset_token)

            revoked_count = await self.uow.sessions.revoke_all_by_user_id(user.id, now)

            await self.uow.rate_limits.clear(normalize_email(user.email))

            await self.uow.audit_events.create(
                AuditEvent(
                    user_id=user.id,
                    action="password_reset_confirmed",
                    event_metadata={
                        "token_id": str(reset_token.id),
                        "sessions_revoked": revoked_count,
                        "ip": request_ip,
                    },
                )
            )

            await self.uow.commit()
            logger.info(
                f"Password reset for user {user.id} (cycle {reset_token.id}, "
                f"{revoked_count} session(s) revoked)"
            )

            return Return.ok(
                ConfirmPasswordResetResponse(message="Password has been reset successfully")
            )

    @staticmethod
    def _invalid_token() -> Result[ConfirmPasswordResetResponse]:
        return Return.err(Error(ErrorCode.TOKEN_INVALID, "Invalid password reset token"))
