"""
Credential Recovery Domain Enums

All enumeration types used across domain entities.
"""

from enum import Enum


class UserStatus(str, Enum):
    """User account status"""

    active = "active"
    disabled = "disabled"


class TokenStage(str, Enum):
    """
    Lifecycle stage of a password reset cycle.

    Only advances pending_security -> ready -> used, or any stage -> expired.
    """

    pending_security = "pending_security"
    ready = "ready"
    used = "used"
    expired = "expired"


LIVE_TOKEN_STAGES = (TokenStage.pending_security, TokenStage.ready)
TERMINAL_TOKEN_STAGES = (TokenStage.used, TokenStage.expired)


class Severity(str, Enum):
    """Severity of a validation result"""

    info = "info"
    warning = "warning"
    error = "error"


class QuestionCategory(str, Enum):
    """Security question catalog categories"""

    personal = "personal"
    education = "education"
    professional = "professional"
    preferences = "preferences"
    general = "general"
