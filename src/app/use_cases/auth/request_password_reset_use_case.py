"""
Request Password Reset Use Case

Starts a reset cycle: rate-limit gate, token issue and, depending on the
account, either a security question challenge or an emailed reset link.
"""

import asyncio
import logging
import math
import secrets
import time
from datetime import datetime
from typing import Callable, Optional, Tuple

from src.app.services.email_sender import EmailDeliveryError, IEmailSender
from src.app.services.keyed_lock import KeyedLock, reset_locks
from src.app.services.reset_policy import ResetPolicy
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utc_now
from src.domain.entities import (
    AuditEvent,
    PasswordResetToken,
    SecurityQuestionAttempt,
    TokenStage,
    User,
    UserStatus,
)
from src.domain.errors import ErrorCode
from src.domain.validation import (
    hash_reset_token,
    is_eligible_email,
    normalize_email,
    validate_email_address,
)
from src.libs.result import Error, Result, Return
from .dtos import RequestPasswordResetResponse, SecurityQuestionChallenge

logger = logging.getLogger(__name__)

GENERIC_MESSAGE = "If the email belongs to an active account, follow the instructions to continue"


class RequestPasswordResetUseCase:
    """
    Use case for requesting a password reset.

    Business Rules:
    - Only institutional email domains may request a reset
    - At most one accepted request per email every 5 minutes
    - Same response shape and comparable latency whether or not the account exists
    - A new cycle expires every live token of the user
    - Secret is 32 random bytes as 64 hex chars; only its SHA-256 hash is stored
    - Users with security questions get a challenge and no email;
      everyone else gets the reset link by email
    - Every request is audited
    """

    def __init__(
        self,
        uow: UnitOfWork,
        email_sender: IEmailSender,
        policy: Optional[ResetPolicy] = None,
        clock: Callable[[], datetime] = utc_now,
        locks: KeyedLock = reset_locks,
    ):
        self.uow = uow
        self.email_sender = email_sender
        self.policy = policy or ResetPolicy()
        self.clock = clock
        self.locks = locks

    async def execute(
        self,
        email: str,
        request_ip: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Result[RequestPasswordResetResponse]:
        """
        Execute request password reset use case.

        Args:
            email: Email address submitted by the client
            request_ip: Client IP, stored on the token and audit record
            user_agent: Client user agent, stored on the token

        Returns:
            Result with the generic response, or Error

        Errors:
            - VALIDATION_ERROR: Malformed email
            - EMAIL_NOT_ELIGIBLE: Domain outside the institutional allow-list
            - RATE_LIMIT_EXCEEDED: Previous accepted request is too recent
            - SERVER_ERROR: Reset email could not be dispatched
        """
        started = time.monotonic()

        validation = validate_email_address(email)
        if not validation.valid:
            return Return.err(Error(ErrorCode.VALIDATION_ERROR, validation.message))

        normalized = normalize_email(email)
        if not is_eligible_email(normalized, self.policy.allowed_email_domains):
            domains = ", ".join(f"@{d}" for d in self.policy.allowed_email_domains)
            return Return.err(
                Error(
                    ErrorCode.EMAIL_NOT_ELIGIBLE,
                    f"Only {domains} accounts can request a password reset",
                )
            )

        async with self.locks.hold(f"email:{normalized}"):
            result = await self._start_cycle(normalized, request_ip, user_agent)

        if result.is_ok():
            await self._pad_latency(started)
        return result

    async def _start_cycle(
        self, email: str, request_ip: Optional[str], user_agent: Optional[str]
    ) -> Result[RequestPasswordResetResponse]:
        async with self.uow:
            now = self.clock()

            # Authoritative rate limit, checked before any token exists
            record = await self.uow.rate_limits.get_by_email(email, for_update=True)
            if record is not None:
                elapsed = now - record.last_request_at
                if elapsed < self.policy.rate_limit_window:
                    seconds_remaining = max(
                        math.ceil((self.policy.rate_limit_window - elapsed).total_seconds()), 1
                    )
                    await self.uow.audit_events.create(
                        AuditEvent(
                            user_id=None,
                            action="password_reset_rate_limited",
                            event_metadata={"email": email, "ip": request_ip},
                        )
                    )
                    await self.uow.commit()
                    logger.warning(f"Password reset rate limited for {email} ({seconds_remaining}s left)")
                    return Return.err(
                        Error(
                            ErrorCode.RATE_LIMIT_EXCEEDED,
                            f"Please wait {seconds_remaining} seconds before requesting another reset",
                            {"secondsRemaining": seconds_remaining},
                        )
                    )

            user = await self.uow.users.get_by_email(email)
            eligible = user is not None and user.status == UserStatus.active

            token: Optional[PasswordResetToken] = None
            raw_token: Optional[str] = None
            challenge: Optional[SecurityQuestionChallenge] = None

            if eligible:
                token, raw_token, challenge = await self._issue_token(
                    user, now, request_ip, user_agent
                )
            else:
                # Same hashing work as the issuing path
                hash_reset_token(secrets.token_hex(32))

            metadata = {"email": email, "ip": request_ip, "account_found": eligible}
            if token is not None:
                metadata["token_id"] = str(token.id)
                metadata["requires_security_question"] = challenge is not None
            await self.uow.audit_events.create(
                AuditEvent(
                    user_id=user.id if eligible else None,
                    action="password_reset_requested",
                    event_metadata=metadata,
                )
            )

            await self.uow.rate_limits.record(email, now)

            if token is not None and raw_token is not None:
                try:
                    await self.email_sender.send_password_reset_link(
                        user.email, self.policy.reset_link(raw_token), token.expires_at
                    )
                except EmailDeliveryError:
                    # Leaving the block without commit discards the new cycle
                    logger.error(f"Password reset email for {email} could not be sent")
                    return Return.err(
                        Error(ErrorCode.SERVER_ERROR, "Password reset email could not be sent")
                    )
                token.email_sent_at = self.clock()
                await self.uow.password_reset_tokens.update(token)

            await self.uow.commit()

            if token is not None:
                logger.info(
                    f"Password reset cycle {token.id} started for {email} "
                    f"(security question: {challenge is not None})"
                )

            return Return.ok(
                RequestPasswordResetResponse(
                    message=GENERIC_MESSAGE,
                    requires_security_question=challenge is not None,
                    security_question=challenge,
                )
            )

    async def _issue_token(
        self,
        user: User,
        now: datetime,
        request_ip: Optional[str],
        user_agent: Optional[str],
    ) -> Tuple[PasswordResetToken, Optional[str], Optional[SecurityQuestionChallenge]]:
        """
        Create the cycle's token. Returns the raw secret only when it is
        meant to be emailed.
        """
        superseded = await self.uow.password_reset_tokens.expire_live_by_user_id(user.id)
        if superseded:
            logger.info(f"Expired {superseded} live reset token(s) of user {user.id}")

        raw_token = secrets.token_hex(32)
        questions = await self.uow.security_questions.list_user_questions(user.id)

        token = PasswordResetToken(
            user_id=user.id,
            token_hash=hash_reset_token(raw_token),
            stage=TokenStage.pending_security if questions else TokenStage.ready,
            request_ip=request_ip,
            user_agent=user_agent,
            created_at=now,
            expires_at=now + self.policy.token_ttl,
        )
        token = await self.uow.password_reset_tokens.create(token)

        if not questions:
            return token, raw_token, None

        selected = questions[0]
        catalog_entry = await self.uow.security_questions.get_by_id(selected.question_id)
        await self.uow.security_question_attempts.create(
            SecurityQuestionAttempt(
                token_id=token.id,
                question_id=selected.question_id,
                attempts_used=0,
                max_attempts=self.policy.max_security_attempts,
            )
        )
        challenge = SecurityQuestionChallenge(
            question_id=selected.question_id,
            question_text=catalog_entry.question_text if catalog_entry else "",
            attempts=0,
            max_attempts=self.policy.max_security_attempts,
        )
        # The secret of a security-question cycle never leaves the server
        return token, None, challenge

    async def _pad_latency(self, started: float) -> None:
        floor = self.policy.min_request_duration
        elapsed = time.monotonic() - started
        if elapsed < floor:
            await asyncio.sleep(floor - elapsed)
        elif floor > 0:
            logger.warning(
                f"Password reset request took {elapsed:.3f}s, above the {floor:.3f}s "
                f"latency floor; raise RESET_MIN_RESPONSE_MS"
            )
