"""
Credential Recovery Use Case DTOs (Data Transfer Objects)

All Response classes for the recovery flow.
Serialized with camelCase keys; attributes stay snake_case in Python.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================================
# Nested DTOs
# ============================================================================


class SecurityQuestionChallenge(CamelModel):
    """Question the user must answer to continue a reset cycle"""

    question_id: int
    question_text: str
    attempts: int
    max_attempts: int


class SecurityQuestionInfo(CamelModel):
    """Public catalog entry"""

    id: int
    question_text: str
    category: str


class ResetCycleInfo(CamelModel):
    """One past or current reset cycle, without secrets"""

    id: str
    stage: str
    created_at: datetime
    expires_at: datetime
    used_at: Optional[datetime] = None
    request_ip: Optional[str] = None


# ============================================================================
# Response DTOs
# ============================================================================


class RequestPasswordResetResponse(CamelModel):
    """Response for request password reset use case"""

    message: str
    requires_security_question: bool
    security_question: Optional[SecurityQuestionChallenge] = None


class VerifySecurityAnswerResponse(CamelModel):
    """Response for verify security answer use case"""

    verified: bool
    attempts_remaining: int
    reset_token: Optional[str] = None
    message: str


class ConfirmPasswordResetResponse(CamelModel):
    """Response for confirm password reset use case"""

    message: str


class SecurityQuestionCatalogResponse(CamelModel):
    """Response for list security questions use case"""

    questions: List[SecurityQuestionInfo]
    count: int


class PasswordResetHistoryResponse(CamelModel):
    """Response for password reset history use case"""

    cycles: List[ResetCycleInfo]
    count: int


class CleanupTokensResponse(CamelModel):
    """Response for expired token sweep"""

    expired: int
    cleaned: int
    message: str
