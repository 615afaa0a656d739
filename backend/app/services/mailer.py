"""
Outbound SMTP mail transport.

Sends one HTML message per call with aiosmtplib. Settings are read from the
environment once at startup and passed in; the transport never reads the
environment itself.

Environment variables
---------------------
SMTP_HOST          SMTP server hostname (default: localhost).
SMTP_PORT          SMTP server port (default: 587).
SMTP_USER          Login user; no AUTH is attempted when empty.
SMTP_PASSWORD      Login password.
SMTP_USE_TLS       Direct TLS, typically port 465 (default: false).
SMTP_START_TLS     Upgrade with STARTTLS after connect (default: true).
SMTP_TIMEOUT       Per-connection timeout in seconds (default: 10).
MAIL_FROM          From address (default: SMTP_USER).
"""

import logging
import os
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Optional

import aiosmtplib

from app.errors import DeliveryFailed

logger = logging.getLogger(__name__)


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_number(name: str, default, cast=float):
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return cast(value.strip())
    except ValueError:
        logger.warning(f"Ignoring invalid {name}={value!r}; using {default}")
        return default


@dataclass(frozen=True)
class MailSettings:
    host: str = "localhost"
    port: int = 587
    user: Optional[str] = None
    password: Optional[str] = None
    use_tls: bool = False
    start_tls: bool = True
    timeout: float = 10.0
    sender: str = ""

    @classmethod
    def from_env(cls) -> "MailSettings":
        user = os.getenv("SMTP_USER") or None
        use_tls = _env_bool("SMTP_USE_TLS", False)
        return cls(
            host=os.getenv("SMTP_HOST", "localhost"),
            port=_env_number("SMTP_PORT", 587, int),
            user=user,
            password=os.getenv("SMTP_PASSWORD") or None,
            use_tls=use_tls,
            # Direct TLS and STARTTLS are mutually exclusive in aiosmtplib
            start_tls=False if use_tls else _env_bool("SMTP_START_TLS", True),
            timeout=_env_number("SMTP_TIMEOUT", 10.0),
            sender=os.getenv("MAIL_FROM") or user or "",
        )


def build_message(sender: str, recipient: str, subject: str, html_body: str) -> EmailMessage:
    """Build a single-recipient HTML message."""
    msg = EmailMessage()
    msg["From"] = sender
    msg["To"] = recipient
    msg["Subject"] = subject
    msg.set_content(html_body, subtype="html")
    return msg


class SmtpMailTransport:
    """Submits one message per call. No pooling and no retries."""

    def __init__(self, settings: MailSettings):
        self.settings = settings

    async def send(self, address: str, subject: str, html_body: str) -> None:
        """
        Send one newsletter email.

        Raises:
            DeliveryFailed: on any SMTP, network, or message-building error
        """
        s = self.settings
        try:
            message = build_message(s.sender, address, subject, html_body)
            await aiosmtplib.send(
                message,
                hostname=s.host,
                port=s.port,
                username=s.user,
                password=s.password,
                use_tls=s.use_tls,
                start_tls=s.start_tls,
                timeout=s.timeout,
            )
        except Exception as e:
            raise DeliveryFailed(f"Failed to send email to {address}: {str(e)}", recipient=address) from e
