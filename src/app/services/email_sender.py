from abc import ABC, abstractmethod
from datetime import datetime


class EmailDeliveryError(Exception):
    """Raised when the mail transport fails or times out"""


class IEmailSender(ABC):
    """Outbound email collaborator - application layer"""

    @abstractmethod
    async def send_password_reset_link(
        self, to_email: str, reset_link: str, expires_at: datetime
    ) -> None:
        """
        Deliver a reset link.

        Raises:
            EmailDeliveryError: transport failure or timeout
        """
        pass
