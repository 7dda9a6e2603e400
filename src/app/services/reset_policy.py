from dataclasses import dataclass
from datetime import timedelta
from typing import Tuple

from src.domain.entities import MAX_SECURITY_QUESTION_ATTEMPTS, RESET_TOKEN_TTL

# Default forgot-password latency floor per EMAIL_BACKEND, in milliseconds
DEFAULT_MIN_RESPONSE_MS = {"log": 250, "smtp": 2000}


@dataclass(frozen=True)
class ResetPolicy:
    """Tunable parameters of the credential recovery flow"""

    token_ttl: timedelta = RESET_TOKEN_TTL
    rate_limit_window: timedelta = timedelta(minutes=5)
    max_security_attempts: int = MAX_SECURITY_QUESTION_ATTEMPTS
    token_retention: timedelta = timedelta(hours=24)
    min_request_duration: float = 0.25  # seconds, RequestReset latency floor
    allowed_email_domains: Tuple[str, ...] = ("gamc.gov.bo",)
    reset_link_base_url: str = "http://localhost:3000/reset-password"
    history_limit: int = 5

    @classmethod
    def from_config(cls, config) -> "ResetPolicy":
        floor_ms = config.RESET_MIN_RESPONSE_MS
        if floor_ms is None:
            floor_ms = DEFAULT_MIN_RESPONSE_MS.get(config.EMAIL_BACKEND, DEFAULT_MIN_RESPONSE_MS["log"])

        return cls(
            token_ttl=timedelta(minutes=int(config.RESET_TOKEN_TTL_MINUTES)),
            rate_limit_window=timedelta(seconds=int(config.RESET_RATE_LIMIT_SECONDS)),
            max_security_attempts=int(config.SECURITY_QUESTION_MAX_ATTEMPTS),
            token_retention=timedelta(hours=int(config.RESET_TOKEN_RETENTION_HOURS)),
            min_request_duration=int(floor_ms) / 1000,
            allowed_email_domains=tuple(config.ALLOWED_EMAIL_DOMAINS or ()),
            reset_link_base_url=config.RESET_LINK_BASE_URL,
        )

    def reset_link(self, token: str) -> str:
        return f"{self.reset_link_base_url}?token={token}"
