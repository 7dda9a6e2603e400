"""
Credential Recovery Domain Entities

All domain entities organized by model.
Each entity in its own file for better maintainability.
"""

# Export all enums
from .enums import (
    UserStatus,
    TokenStage,
    Severity,
    QuestionCategory,
    LIVE_TOKEN_STAGES,
    TERMINAL_TOKEN_STAGES,
)

# Export all entities
from .user import User
from .session import Session
from .audit_event import AuditEvent
from .password_reset_token import PasswordResetToken, RESET_TOKEN_TTL
from .security_question import (
    SecurityQuestion,
    UserSecurityQuestion,
    SecurityQuestionAttempt,
    MAX_SECURITY_QUESTION_ATTEMPTS,
)
from .rate_limit_record import RateLimitRecord

__all__ = [
    # Enums
    "UserStatus",
    "TokenStage",
    "Severity",
    "QuestionCategory",
    "LIVE_TOKEN_STAGES",
    "TERMINAL_TOKEN_STAGES",
    # Entities
    "User",
    "Session",
    "AuditEvent",
    "PasswordResetToken",
    "SecurityQuestion",
    "UserSecurityQuestion",
    "SecurityQuestionAttempt",
    "RateLimitRecord",
    # Constants
    "RESET_TOKEN_TTL",
    "MAX_SECURITY_QUESTION_ATTEMPTS",
]
