"""
ResetClient - the single client for the password reset HTTP contract.

Runs the same validators as the server before sending anything and turns
error bodies into ResetClientError. The rate-limit hint it keeps is only a
UX aid; the server decides.
"""

import logging
import time
from typing import Any, Callable, Dict, Optional

import httpx

from src.app.use_cases.auth.dtos import (
    ConfirmPasswordResetResponse,
    RequestPasswordResetResponse,
    SecurityQuestionCatalogResponse,
    VerifySecurityAnswerResponse,
)
from src.domain.errors import ErrorCode
from src.domain.validation import (
    ValidationResult,
    normalize_email,
    validate_email_address,
    validate_password,
    validate_reset_token_format,
    validate_security_answer,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
DEFAULT_RATE_LIMIT_SECONDS = 300


class ResetClientError(Exception):
    """Failure reported by the server, or input rejected before sending"""

    def __init__(
        self,
        code: str,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(f"{code}: {message}")

    @classmethod
    def from_validation(cls, result: ValidationResult) -> "ResetClientError":
        return cls(
            ErrorCode.VALIDATION_ERROR,
            result.message,
            details={"violations": result.violations, "severity": result.severity.value},
        )

    @classmethod
    def from_response(cls, response: httpx.Response) -> "ResetClientError":
        try:
            body = response.json()
        except ValueError:
            body = {}
        error = body.get("error") if isinstance(body, dict) else None
        if not isinstance(error, dict):
            # FastAPI request validation (422) and auth errors use "detail"
            code = ErrorCode.VALIDATION_ERROR if response.status_code == 422 else ErrorCode.SERVER_ERROR
            return cls(code, f"Unexpected response ({response.status_code})", response.status_code)
        return cls(
            error.get("code", ErrorCode.SERVER_ERROR),
            error.get("message", ""),
            response.status_code,
            error.get("details"),
        )


class RateLimitHint:
    """Per-email estimate of when another reset request is worth sending"""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._not_before: Dict[str, float] = {}

    def record(self, email: str, seconds: float) -> None:
        self._not_before[normalize_email(email)] = self._clock() + seconds

    def seconds_remaining(self, email: str) -> int:
        deadline = self._not_before.get(normalize_email(email))
        if deadline is None:
            return 0
        remaining = deadline - self._clock()
        if remaining <= 0:
            del self._not_before[normalize_email(email)]
            return 0
        return int(remaining + 0.999)

    def clear(self, email: str) -> None:
        self._not_before.pop(normalize_email(email), None)


class ResetClient:
    """
    Async client for the /auth password reset endpoints.

    Usage:
        async with ResetClient("https://intranet.gamc.gov.bo/api") as client:
            started = await client.request_reset("ana@gamc.gov.bo")
            if started.requires_security_question:
                verified = await client.verify_answer(
                    "ana@gamc.gov.bo", started.security_question.question_id, "Rex"
                )
                await client.confirm_reset(verified.reset_token, "N3w@Passw0rd")
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        rate_limit_seconds: int = DEFAULT_RATE_LIMIT_SECONDS,
        hint: Optional[RateLimitHint] = None,
    ):
        self.rate_limit_seconds = rate_limit_seconds
        self.hint = hint or RateLimitHint()
        self._http = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    async def __aenter__(self) -> "ResetClient":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    # ------------------------------------------------------------------
    # Validators shared with the server
    # ------------------------------------------------------------------

    @staticmethod
    def check_email(email: str) -> ValidationResult:
        return validate_email_address(email)

    @staticmethod
    def check_answer(answer: str) -> ValidationResult:
        return validate_security_answer(answer)

    @staticmethod
    def check_new_password(password: str) -> ValidationResult:
        return validate_password(password)

    @staticmethod
    def check_token(token: str) -> ValidationResult:
        return validate_reset_token_format(token)

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------

    async def request_reset(self, email: str) -> RequestPasswordResetResponse:
        """Start a reset cycle. The hint is updated on success and on 429."""
        self._ensure_valid(self.check_email(email))
        try:
            body = await self._send("POST", "/auth/forgot-password", {"email": email})
        except ResetClientError as exc:
            if exc.code == ErrorCode.RATE_LIMIT_EXCEEDED:
                self.hint.record(email, exc.details.get("secondsRemaining", self.rate_limit_seconds))
            raise
        self.hint.record(email, self.rate_limit_seconds)
        return RequestPasswordResetResponse.model_validate(body)

    async def verify_answer(
        self, email: str, question_id: int, answer: str
    ) -> VerifySecurityAnswerResponse:
        """Answer the cycle's security question; success carries the reset token"""
        self._ensure_valid(self.check_email(email))
        self._ensure_valid(self.check_answer(answer))
        body = await self._send(
            "POST",
            "/auth/verify-security-question",
            {"email": email, "questionId": question_id, "answer": answer},
        )
        return VerifySecurityAnswerResponse.model_validate(body)

    async def confirm_reset(self, token: str, new_password: str) -> ConfirmPasswordResetResponse:
        """
        Set the new password.

        token must be the emailed token or the one returned by verify_answer.
        """
        self._ensure_valid(self.check_token(token))
        self._ensure_valid(self.check_new_password(new_password))
        body = await self._send(
            "POST", "/auth/reset-password", {"token": token, "newPassword": new_password}
        )
        return ConfirmPasswordResetResponse.model_validate(body)

    async def list_security_questions(self) -> SecurityQuestionCatalogResponse:
        body = await self._send("GET", "/auth/security-questions")
        return SecurityQuestionCatalogResponse.model_validate(body)

    # ------------------------------------------------------------------

    @staticmethod
    def _ensure_valid(result: ValidationResult) -> None:
        if not result.valid:
            raise ResetClientError.from_validation(result)

    async def _send(self, method: str, path: str, json: Optional[dict] = None) -> dict:
        try:
            response = await self._http.request(method, path, json=json)
        except httpx.TimeoutException as exc:
            logger.error(f"{method} {path} timed out")
            raise ResetClientError(ErrorCode.SERVER_ERROR, "The server did not respond in time") from exc
        except httpx.TransportError as exc:
            logger.error(f"{method} {path} failed: {exc.__class__.__name__}")
            raise ResetClientError(ErrorCode.SERVER_ERROR, "The server could not be reached") from exc

        if response.is_error:
            raise ResetClientError.from_response(response)
        return response.json()
