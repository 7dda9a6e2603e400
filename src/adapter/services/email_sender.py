import asyncio
import logging
import smtplib
import ssl
from datetime import datetime
from email.message import EmailMessage
from typing import Optional

from src.app.services.email_sender import EmailDeliveryError, IEmailSender

logger = logging.getLogger(__name__)


class LoggingEmailSender(IEmailSender):
    """Development sender: records the dispatch without contacting a mail server"""

    async def send_password_reset_link(
        self, to_email: str, reset_link: str, expires_at: datetime
    ) -> None:
        logger.info(f"Password reset link for {to_email} queued (expires {expires_at.isoformat()})")


class SmtpEmailSender(IEmailSender):
    """SMTP sender; the blocking smtplib call runs in a worker thread"""

    def __init__(
        self,
        host: str,
        port: int = 587,
        username: Optional[str] = None,
        password: Optional[str] = None,
        use_tls: bool = True,
        from_address: str = "no-reply@gamc.gov.bo",
        timeout: float = 30.0,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.from_address = from_address
        self.timeout = timeout

    def _build_message(self, to_email: str, reset_link: str, expires_at: datetime) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = "Password reset request"
        msg["From"] = self.from_address
        msg["To"] = to_email
        msg.set_content(
            "A password reset was requested for your account.\n\n"
            f"Open the following link to choose a new password:\n{reset_link}\n\n"
            f"The link expires at {expires_at.strftime('%Y-%m-%d %H:%M')} UTC and can be used once.\n"
            "If you did not request this, you can ignore this message."
        )
        return msg

    def _send(self, msg: EmailMessage) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
            if self.use_tls:
                server.starttls(context=ssl.create_default_context())
            if self.username:
                server.login(self.username, self.password or "")
            server.send_message(msg)

    async def send_password_reset_link(
        self, to_email: str, reset_link: str, expires_at: datetime
    ) -> None:
        msg = self._build_message(to_email, reset_link, expires_at)
        try:
            await asyncio.wait_for(asyncio.to_thread(self._send, msg), timeout=self.timeout)
        except (smtplib.SMTPException, OSError, asyncio.TimeoutError) as exc:
            logger.error(f"SMTP delivery to {to_email} failed: {exc.__class__.__name__}")
            raise EmailDeliveryError(str(exc)) from exc
