"""
Verify Security Answer Use Case

Attempt-limited check of the knowledge factor of a reset cycle. A correct
answer mints the elevated reset token.
"""

import logging
import secrets
from datetime import datetime
from typing import Callable, Optional

from src.app.services.keyed_lock import KeyedLock, reset_locks
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utc_now
from src.domain.entities import (
    AuditEvent,
    PasswordResetToken,
    SecurityQuestionAttempt,
    TokenStage,
    UserStatus,
)
from src.domain.errors import ErrorCode
from src.domain.validation import (
    hash_reset_token,
    normalize_email,
    validate_security_answer,
    verify_security_answer,
)
from src.libs.result import Error, Result, Return
from .dtos import VerifySecurityAnswerResponse

logger = logging.getLogger(__name__)


class VerifySecurityAnswerUseCase:
    """
    Use case for answering the security question of a reset cycle.

    Business Rules:
    - Requires a live token in stage pending_security for the email
    - Answer is normalized and checked against the bcrypt hash
    - Every miss consumes one attempt atomically
    - Running out of attempts expires the cycle for good
    - A correct answer replaces the cycle secret with a new elevated token,
      moves the cycle to ready and returns that token
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
        email: str,
        question_id: int,
        answer: str,
        request_ip: Optional[str] = None,
    ) -> Result[VerifySecurityAnswerResponse]:
        """
        Execute verify security answer use case.

        Args:
            email: Email the cycle was requested for
            question_id: Catalog id of the answered question
            answer: Plaintext answer
            request_ip: Client IP for the audit record

        Returns:
            Result with the elevated reset token, or Error

        Errors:
            - VALIDATION_ERROR: Empty or oversized answer (no attempt consumed)
            - TOKEN_INVALID: No cycle awaiting a security answer
            - TOKEN_EXPIRED: Cycle ran past its expiry time
            - SECURITY_ANSWER_INCORRECT: Wrong answer, attempts left
            - MAX_ATTEMPTS_REACHED: Wrong answer, cycle locked
        """
        answer_check = validate_security_answer(answer)
        if not answer_check.valid:
            return Return.err(Error(ErrorCode.VALIDATION_ERROR, answer_check.message))

        normalized = normalize_email(email)
        async with self.locks.hold(f"email:{normalized}"):
            return await self._verify(normalized, question_id, answer, request_ip)

    async def _verify(
        self, email: str, question_id: int, answer: str, request_ip: Optional[str]
    ) -> Result[VerifySecurityAnswerResponse]:
        async with self.uow:
            now = self.clock()

            user = await self.uow.users.get_by_email(email)
            if user is None or user.status != UserStatus.active:
                return self._no_pending_cycle()

            token = await self.uow.password_reset_tokens.get_live_by_user_id(
                user.id, for_update=True
            )
            if token is None or token.stage != TokenStage.pending_security:
                return self._no_pending_cycle()

            if token.is_expired(now):
                token.advance(TokenStage.expired)
                await self.uow.password_reset_tokens.update(token)
                await self.uow.commit()
                return Return.err(
                    Error(ErrorCode.TOKEN_EXPIRED, "Password reset request has expired, start again")
                )

            attempt = await self.uow.security_question_attempts.get_by_token_id(
                token.id, for_update=True
            )
            if attempt is None or attempt.attempts_remaining == 0:
                return self._no_pending_cycle()

            matched = False
            if question_id == attempt.question_id:
                user_question = await self.uow.security_questions.get_user_question(
                    user.id, question_id
                )
                if user_question is not None:
                    matched = verify_security_answer(answer, user_question.answer_hash)

            if not matched:
                return await self._record_miss(token, attempt, now, request_ip)

            elevated_token = secrets.token_hex(32)
            token.token_hash = hash_reset_token(elevated_token)
            token.verified_at = now
            token.advance(TokenStage.ready)
            await self.uow.password_reset_tokens.update(token)

            await self.uow.audit_events.create(
                AuditEvent(
                    user_id=user.id,
                    action="password_reset_security_verified",
                    event_metadata={
                        "token_id": str(token.id),
                        "question_id": question_id,
                        "attempts_used": attempt.attempts_used,
                        "ip": request_ip,
                    },
                )
            )

            await self.uow.commit()
            logger.info(f"Security question answered for reset cycle {token.id}")

            return Return.ok(
                VerifySecurityAnswerResponse(
                    verified=True,
                    attempts_remaining=attempt.attempts_remaining,
                    reset_token=elevated_token,
                    message="Security question verified, you can now set a new password",
                )
            )

    async def _record_miss(
        self,
        token: PasswordResetToken,
        attempt: SecurityQuestionAttempt,
        now: datetime,
        request_ip: Optional[str],
    ) -> Result[VerifySecurityAnswerResponse]:
        consumed = await self.uow.security_question_attempts.increment(attempt)
        remaining = attempt.attempts_remaining

        if not consumed or remaining == 0:
            attempt.locked_at = now
            await self.uow.security_question_attempts.update(attempt)
            token.advance(TokenStage.expired)
            await self.uow.password_reset_tokens.update(token)

            await self.uow.audit_events.create(
                AuditEvent(
                    user_id=token.user_id,
                    action="password_reset_security_locked",
                    event_metadata={
                        "token_id": str(token.id),
                        "attempts_used": attempt.attempts_used,
                        "ip": request_ip,
                    },
                )
            )
            await self.uow.commit()
            logger.warning(f"Reset cycle {token.id} locked after {attempt.attempts_used} failed answers")

            return Return.err(
                Error(
                    ErrorCode.MAX_ATTEMPTS_REACHED,
                    "Maximum attempts reached, request a new password reset",
                    {"attemptsRemaining": 0},
                )
            )

        await self.uow.audit_events.create(
            AuditEvent(
                user_id=token.user_id,
                action="password_reset_security_failed",
                event_metadata={
                    "token_id": str(token.id),
                    "attempts_used": attempt.attempts_used,
                    "ip": request_ip,
                },
            )
        )
        await self.uow.commit()
        logger.info(f"Wrong security answer for reset cycle {token.id}, {remaining} attempt(s) left")

        return Return.err(
            Error(
                ErrorCode.SECURITY_ANSWER_INCORRECT,
                f"Incorrect answer, {remaining} attempt(s) remaining",
                {"attemptsRemaining": remaining},
            )
        )

    @staticmethod
    def _no_pending_cycle() -> Result[VerifySecurityAnswerResponse]:
        return Return.err(
            Error(ErrorCode.TOKEN_INVALID, "No password reset awaiting a security answer")
        )
