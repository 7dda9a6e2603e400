from datetime import datetime
from typing import Callable, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Request, status
from pydantic import EmailStr, Field

from src.api.error import ClientError, ServerError
from src.app.services.email_sender import IEmailSender
from src.app.services.reset_policy import ResetPolicy
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.auth import (
    ConfirmPasswordResetResponse,
    ConfirmPasswordResetUseCase,
    GetPasswordResetHistoryUseCase,
    ListSecurityQuestionsUseCase,
    PasswordResetHistoryResponse,
    RequestPasswordResetResponse,
    RequestPasswordResetUseCase,
    SecurityQuestionCatalogResponse,
    VerifySecurityAnswerResponse,
    VerifySecurityAnswerUseCase,
)
from src.app.use_cases.auth.dtos import CamelModel
from src.depends import (
    get_clock,
    get_current_user,
    get_email_sender,
    get_reset_policy,
    get_unit_of_work,
)
from src.domain.errors import ErrorCode
from src.libs.result import Error

router = APIRouter(prefix="/auth", tags=["Password Reset"])

# Every code a use case may return, mapped to its HTTP status
ERROR_STATUS = {
    ErrorCode.VALIDATION_ERROR: status.HTTP_400_BAD_REQUEST,
    ErrorCode.PASSWORD_POLICY_VIOLATION: status.HTTP_400_BAD_REQUEST,
    ErrorCode.TOKEN_INVALID: status.HTTP_400_BAD_REQUEST,
    ErrorCode.SECURITY_ANSWER_INCORRECT: status.HTTP_400_BAD_REQUEST,
    ErrorCode.EMAIL_NOT_ELIGIBLE: status.HTTP_403_FORBIDDEN,
    ErrorCode.MAX_ATTEMPTS_REACHED: status.HTTP_403_FORBIDDEN,
    ErrorCode.TOKEN_USED: status.HTTP_409_CONFLICT,
    ErrorCode.TOKEN_EXPIRED: status.HTTP_410_GONE,
}


def raise_for_error(error: Error):
    if error.code == ErrorCode.RATE_LIMIT_EXCEEDED:
        raise ClientError.rate_limited(error)
    status_code = ERROR_STATUS.get(error.code)
    if status_code is None:
        raise ServerError(error)
    raise ClientError(error, status_code=status_code)


def client_ip(request: Request) -> Optional[str]:
    return request.client.host if request.client else None


class ForgotPasswordRequest(CamelModel):
    """
    Forgot password HTTP request payload

    Only syntax is checked here; domain policy lives in the use case.
    """

    email: EmailStr = Field(..., description="Institutional email address")


@router.post(
    "/forgot-password",
    status_code=status.HTTP_200_OK,
    response_model=RequestPasswordResetResponse,
    response_model_by_alias=True,
    response_model_exclude_none=True,
)
async def forgot_password(
    payload: ForgotPasswordRequest,
    request: Request,
    uow: UnitOfWork = Depends(get_unit_of_work),
    email_sender: IEmailSender = Depends(get_email_sender),
    policy: ResetPolicy = Depends(get_reset_policy),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    """
    Request Password Reset

    Starts a reset cycle. Accounts without security questions receive an
    emailed link; accounts with questions get the challenge in the response.

    Security:
        - Same response for unknown and known emails
        - One accepted request per email every 5 minutes

    Raises:
        - 403 Forbidden: EMAIL_NOT_ELIGIBLE
        - 429 Too Many Requests: RATE_LIMIT_EXCEEDED (Retry-After header)
        - 500 Internal Server Error: Email could not be sent
    """
    use_case = RequestPasswordResetUseCase(uow, email_sender, policy=policy, clock=clock)
    result = await use_case.execute(
        payload.email,
        request_ip=client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )

    if result.is_err():
        raise_for_error(result.error)

    return result.value


class VerifySecurityQuestionRequest(CamelModel):
    """Verify security question HTTP request payload"""

    email: EmailStr = Field(..., description="Email the reset was requested for")
    question_id: int = Field(..., description="Catalog id of the presented question")
    answer: str = Field(..., max_length=255, description="Plaintext answer")


@router.post(
    "/verify-security-question",
    status_code=status.HTTP_200_OK,
    response_model=VerifySecurityAnswerResponse,
    response_model_by_alias=True,
    response_model_exclude_none=True,
)
async def verify_security_question(
    payload: VerifySecurityQuestionRequest,
    request: Request,
    uow: UnitOfWork = Depends(get_unit_of_work),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    """
    Verify Security Question

    Returns the elevated reset token when the answer matches.

    Raises:
        - 400 Bad Request: TOKEN_INVALID, SECURITY_ANSWER_INCORRECT, VALIDATION_ERROR
        - 403 Forbidden: MAX_ATTEMPTS_REACHED
        - 410 Gone: TOKEN_EXPIRED
    """
    use_case = VerifySecurityAnswerUseCase(uow, clock=clock)
    result = await use_case.execute(
        payload.email,
        payload.question_id,
        payload.answer,
        request_ip=client_ip(request),
    )

    if result.is_err():
        raise_for_error(result.error)

    return result.value


class ResetPasswordRequest(CamelModel):
    """Reset password HTTP request payload"""

    token: str = Field(..., description="Reset token from the email link or verification")
    new_password: str = Field(..., description="New password")


@router.post(
    "/reset-password",
    status_code=status.HTTP_200_OK,
    response_model=ConfirmPasswordResetResponse,
)
async def reset_password(
    payload: ResetPasswordRequest,
    request: Request,
    uow: UnitOfWork = Depends(get_unit_of_work),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    """
    Confirm Password Reset

    Sets the new password and revokes every session of the user.

    Raises:
        - 400 Bad Request: TOKEN_INVALID, PASSWORD_POLICY_VIOLATION
        - 409 Conflict: TOKEN_USED
        - 410 Gone: TOKEN_EXPIRED
    """
    use_case = ConfirmPasswordResetUseCase(uow, clock=clock)
    result = await use_case.execute(
        payload.token, payload.new_password, request_ip=client_ip(request)
    )

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.get(
    "/security-questions",
    status_code=status.HTTP_200_OK,
    response_model=SecurityQuestionCatalogResponse,
    response_model_by_alias=True,
)
async def list_security_questions(uow: UnitOfWork = Depends(get_unit_of_work)):
    """Security question catalog (public reference data)"""
    use_case = ListSecurityQuestionsUseCase(uow)
    result = await use_case.execute()

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.get(
    "/reset-history",
    status_code=status.HTTP_200_OK,
    response_model=PasswordResetHistoryResponse,
    response_model_by_alias=True,
)
async def reset_history(
    current_user: dict = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    policy: ResetPolicy = Depends(get_reset_policy),
):
    """
    Password Reset History

    Last reset cycles of the authenticated user, without secrets.

    Requires: Authorization: Bearer <access_token>
    """
    use_case = GetPasswordResetHistoryUseCase(uow, policy=policy)
    result = await use_case.execute(UUID(current_user["user_id"]))

    if result.is_err():
        error = result.error
        if error.code == ErrorCode.TOKEN_INVALID:
            raise ClientError(error, status_code=status.HTTP_401_UNAUTHORIZED)
        raise_for_error(error)

    return result.value
