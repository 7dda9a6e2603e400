"""
Shared validators for every entry point of the recovery flow.

Server use cases and the ResetClient run the same checks and report them
with the same ValidationResult type.
"""

import hashlib
import re
from dataclasses import dataclass, field
from typing import List, Sequence

import bcrypt
from email_validator import EmailNotValidError, validate_email

from src.domain.entities.enums import Severity

PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 128
PASSWORD_SYMBOLS = "@$!%*?&"

ANSWER_MIN_LENGTH = 2
ANSWER_MAX_LENGTH = 100

_WHITESPACE = re.compile(r"\s+")
_RESET_TOKEN = re.compile(r"^[0-9a-f]{64}$")


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    message: str
    severity: Severity = Severity.info
    violations: List[str] = field(default_factory=list)

    @classmethod
    def ok(cls, message: str = "Valid") -> "ValidationResult":
        return cls(valid=True, message=message, severity=Severity.info)

    @classmethod
    def fail(cls, violations: Sequence[str]) -> "ValidationResult":
        return cls(
            valid=False,
            message=violations[0],
            severity=Severity.error,
            violations=list(violations),
        )


def normalize_email(email: str) -> str:
    return email.strip().lower()


def validate_email_address(email: str) -> ValidationResult:
    """Syntax-only check; deliverability is never checked"""
    if not email or not email.strip():
        return ValidationResult.fail(["Email is required"])
    try:
        validate_email(email.strip(), check_deliverability=False)
    except EmailNotValidError as exc:
        return ValidationResult.fail([f"Invalid email address: {exc}"])
    return ValidationResult.ok()


def is_eligible_email(email: str, allowed_domains: Sequence[str]) -> bool:
    """An empty allow-list admits every domain"""
    if not allowed_domains:
        return True
    domain = normalize_email(email).rpartition("@")[2]
    return domain in {d.lower() for d in allowed_domains}


def validate_password(password: str) -> ValidationResult:
    """
    Password policy: 8-128 characters with at least one uppercase letter,
    one lowercase letter, one digit and one symbol from @$!%*?&.
    """
    password = password or ""
    violations = []

    if len(password) < PASSWORD_MIN_LENGTH:
        violations.append(f"Password must be at least {PASSWORD_MIN_LENGTH} characters long")
    if len(password) > PASSWORD_MAX_LENGTH:
        violations.append(f"Password cannot exceed {PASSWORD_MAX_LENGTH} characters")
    if not any(c.isupper() for c in password):
        violations.append("Password must contain at least one uppercase letter")
    if not any(c.islower() for c in password):
        violations.append("Password must contain at least one lowercase letter")
    if not any(c.isdigit() for c in password):
        violations.append("Password must contain at least one digit")
    if not any(c in PASSWORD_SYMBOLS for c in password):
        violations.append(f"Password must contain at least one symbol ({PASSWORD_SYMBOLS})")

    if violations:
        return ValidationResult.fail(violations)
    return ValidationResult.ok("Password meets the policy")


def validate_reset_token_format(token: str) -> ValidationResult:
    if not token or not _RESET_TOKEN.match(token):
        return ValidationResult.fail(["Reset token must be 64 lowercase hexadecimal characters"])
    return ValidationResult.ok()


def normalize_security_answer(answer: str) -> str:
    return _WHITESPACE.sub(" ", (answer or "").strip()).casefold()


def validate_security_answer(answer: str) -> ValidationResult:
    normalized = normalize_security_answer(answer)
    if not normalized:
        return ValidationResult.fail(["Answer cannot be empty"])
    if len(normalized) < ANSWER_MIN_LENGTH:
        return ValidationResult.fail([f"Answer must be at least {ANSWER_MIN_LENGTH} characters"])
    if len(normalized) > ANSWER_MAX_LENGTH:
        return ValidationResult.fail([f"Answer cannot exceed {ANSWER_MAX_LENGTH} characters"])
    return ValidationResult.ok()


def hash_security_answer(answer: str) -> str:
    normalized = normalize_security_answer(answer)
    return bcrypt.hashpw(normalized.encode(), bcrypt.gensalt(12)).decode()


def verify_security_answer(answer: str, answer_hash: str) -> bool:
    """bcrypt.checkpw compares digests in constant time"""
    normalized = normalize_security_answer(answer)
    try:
        return bcrypt.checkpw(normalized.encode(), answer_hash.encode())
    except ValueError:
        return False


def hash_reset_token(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()
