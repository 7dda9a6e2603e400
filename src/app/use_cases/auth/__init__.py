"""
Credential Recovery Use Cases

All password reset business logic.
"""

from .request_password_reset_use_case import RequestPasswordResetUseCase
from .verify_security_answer_use_case import VerifySecurityAnswerUseCase
from .confirm_password_reset_use_case import ConfirmPasswordResetUseCase
from .list_security_questions_use_case import ListSecurityQuestionsUseCase
from .get_password_reset_history_use_case import GetPasswordResetHistoryUseCase
from .dtos import (
    RequestPasswordResetResponse,
    VerifySecurityAnswerResponse,
    ConfirmPasswordResetResponse,
    SecurityQuestionCatalogResponse,
    PasswordResetHistoryResponse,
    CleanupTokensResponse,
    SecurityQuestionChallenge,
    SecurityQuestionInfo,
    ResetCycleInfo,
)

__all__ = [
    # Use Cases
    "RequestPasswordResetUseCase",
    "VerifySecurityAnswerUseCase",
    "ConfirmPasswordResetUseCase",
    "ListSecurityQuestionsUseCase",
    "GetPasswordResetHistoryUseCase",
    # DTOs - Responses
    "RequestPasswordResetResponse",
    "VerifySecurityAnswerResponse",
    "ConfirmPasswordResetResponse",
    "SecurityQuestionCatalogResponse",
    "PasswordResetHistoryResponse",
    "CleanupTokensResponse",
    # DTOs - Nested Models
    "SecurityQuestionChallenge",
    "SecurityQuestionInfo",
    "ResetCycleInfo",
]
