from typing import Dict, Optional

from fastapi import status
from src.libs.result import Error


class ClientError(Exception):
    """Expected failure shown to the caller with its code, message and details"""

    def __init__(
        self,
        base_error: Error,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.base_error = base_error
        self.status_code = status_code
        self.headers = headers
        super().__init__(base_error.message)

    @classmethod
    def rate_limited(cls, base_error: Error) -> "ClientError":
        seconds = (base_error.details or {}).get("secondsRemaining")
        headers = {"Retry-After": str(seconds)} if seconds is not None else None
        return cls(base_error, status.HTTP_429_TOO_MANY_REQUESTS, headers=headers)


class ServerError(Exception):
    """Infrastructure failure; the message is logged, never returned"""

    def __init__(self, base_error: Error):
        self.base_error = base_error
        super().__init__(base_error.message)
