"""
Use Cases

Organized into domain folders:
- auth/: Credential recovery flows
- admin/: Maintenance operations

Import from subdirectories for better organization.
"""

from .auth import (
    RequestPasswordResetUseCase,
    VerifySecurityAnswerUseCase,
    ConfirmPasswordResetUseCase,
    ListSecurityQuestionsUseCase,
    GetPasswordResetHistoryUseCase,
)
from .admin import SweepExpiredTokensUseCase

__all__ = [
    # Auth
    "RequestPasswordResetUseCase",
    "VerifySecurityAnswerUseCase",
    "ConfirmPasswordResetUseCase",
    "ListSecurityQuestionsUseCase",
    "GetPasswordResetHistoryUseCase",
    # Admin
    "SweepExpiredTokensUseCase",
]
