"""
Error codes for the credential recovery flow.

Every expected failure carries one of these codes. They are safe to show
to the end user and stable across releases.
"""


class ErrorCode:
    VALIDATION_ERROR = "VALIDATION_ERROR"
    EMAIL_NOT_ELIGIBLE = "EMAIL_NOT_ELIGIBLE"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    TOKEN_INVALID = "TOKEN_INVALID"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    TOKEN_USED = "TOKEN_USED"
    SECURITY_ANSWER_INCORRECT = "SECURITY_ANSWER_INCORRECT"
    MAX_ATTEMPTS_REACHED = "MAX_ATTEMPTS_REACHED"
    PASSWORD_POLICY_VIOLATION = "PASSWORD_POLICY_VIOLATION"
    SERVER_ERROR = "SERVER_ERROR"
