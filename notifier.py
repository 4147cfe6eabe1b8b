import asyncio
import logging
from email.message import EmailMessage
from typing import Protocol

import aiosmtplib

from config import settings
from errors import NotificationError

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    async def send_code(self, address: str, code: str) -> None:
        """Deliver ``code`` to ``address``. Raises NotificationError on failure."""
        ...


def build_otp_message(sender: str, address: str, code: str) -> EmailMessage:
    message = EmailMessage()
    message.set_content(
        f"Your OTP code is {code}. It will expire in {settings.OTP_EXPIRE_MINUTES} minutes.\n\n"
        "If you didn't request this, please ignore this email."
    )
    message["Subject"] = "Your OTP Code"
    message["From"] = sender
    message["To"] = address
    return message


class SmtpNotifier:
    """Sends one-time codes over SMTP, bounded by a timeout."""

    def __init__(
        self,
        hostname: str,
        port: int,
        username: str,
        password: str,
        sender: str,
        start_tls: bool = True,
        timeout: float = 15.0,
    ):
        self.hostname = hostname
        self.port = port
        self.username = username
        self.password = password
        self.sender = sender
        self.start_tls = start_tls
        self.timeout = timeout

    async def send_code(self, address: str, code: str) -> None:
        message = build_otp_message(self.sender, address, code)
        smtp_client = aiosmtplib.SMTP(
            hostname=self.hostname,
            port=self.port,
            username=self.username or None,
            password=self.password or None,
            use_tls=False,  # Use STARTTLS instead of direct TLS
            start_tls=self.start_tls,
            timeout=self.timeout,
        )
        try:
            async with smtp_client:
                await asyncio.wait_for(smtp_client.send_message(message), timeout=self.timeout)
        except (aiosmtplib.SMTPException, OSError, asyncio.TimeoutError) as e:
            raise NotificationError(f"SMTP delivery to {address} failed: {e}") from e


class LoggingNotifier:
    """Development backend: records the dispatch in the log instead of sending mail."""

    def __init__(self, reveal_codes: bool = False):
        self.reveal_codes = reveal_codes

    async def send_code(self, address: str, code: str) -> None:
        if self.reveal_codes:
            logger.info("OTP for %s: %s", address, code)
        else:
            logger.info("OTP dispatched to %s", address)


def build_notifier() -> Notifier:
    if settings.NOTIFIER_BACKEND == "log":
        return LoggingNotifier(reveal_codes=settings.DEBUG)
    return SmtpNotifier(
        hostname=settings.SMTP_HOST,
        port=settings.SMTP_PORT,
        username=settings.SMTP_USERNAME,
        password=settings.SMTP_PASSWORD,
        sender=settings.email_sender,
        start_tls=settings.SMTP_START_TLS,
        timeout=settings.NOTIFIER_TIMEOUT_SECONDS,
    )


notifier: Notifier = build_notifier()

def get_notifier() -> Notifier:
    return notifier
