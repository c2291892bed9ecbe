"""Delivery of email codes: SMTP for real mailboxes, console for development."""

import html
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional, Protocol

import anyio

from email_otp.core.config import settings
from email_otp.core.errors import DeliveryError
from email_otp.schemas.user import UserRecord

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """Sends a code to the user's registered address; raises DeliveryError on failure."""

    async def send(self, user: UserRecord, code: str, realm_display_name: str) -> None: ...


def build_subject(realm_display_name: str) -> str:
    return f"{realm_display_name} access code"


def build_body(user: UserRecord, code: str) -> str:
    return f"""
        <div>
            <h2>Access code</h2>
            <p>Hello {html.escape(user.username)},</p>
            <p>Use the following one-time code to continue signing in:</p>
            <h3 style="color: #2563eb; font-size: 24px; text-align: center;">{code}</h3>
            <p>The code is valid until this sign-in attempt ends.</p>
        </div>
        """


class SmtpNotifier:
    """SMTP email sender that runs blocking calls in a worker thread."""

    def __init__(
        self,
        server: Optional[str] = None,
        port: Optional[int] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        from_email: Optional[str] = None,
    ):
        self.server = server or settings.SMTP_SERVER
        self.port = port or settings.SMTP_PORT
        self.username = username or settings.SMTP_USERNAME
        self.password = password or settings.SMTP_PASSWORD
        self.from_email = from_email or settings.FROM_EMAIL

    async def send(self, user: UserRecord, code: str, realm_display_name: str) -> None:
        """Send the code to `user.email`, wrapping transport errors in DeliveryError."""

        def _send() -> None:
            """Inner sync function executed in a thread."""
            if not all([self.server, self.username, self.password, self.from_email]):
                raise RuntimeError("SMTP settings are incomplete.")

            message = MIMEMultipart()
            message["From"] = self.from_email
            message["To"] = user.email
            message["Subject"] = build_subject(realm_display_name)
            message.attach(MIMEText(build_body(user, code), "html"))

            with smtplib.SMTP(self.server, int(self.port), timeout=20) as server:
                server.ehlo()
                server.starttls()
                server.ehlo()
                server.login(self.username, self.password)
                server.send_message(message)

        try:
            await anyio.to_thread.run_sync(_send)
        except Exception as exc:
            raise DeliveryError(str(exc)) from exc


class ConsoleNotifier:
    """Development sender that logs the message instead of mailing it."""

    async def send(self, user: UserRecord, code: str, realm_display_name: str) -> None:
        logger.info("[Email][Console] To: %s", user.email)
        logger.info("[Email][Console] Subject: %s", build_subject(realm_display_name))
        logger.info("[Email][Console] Code for %s: %s", user.username, code)


_notifier_instance: Optional[Notifier] = None


def get_notifier() -> Notifier:
    """Get the configured notifier instance."""
    global _notifier_instance

    if _notifier_instance is None:
        if settings.EMAIL_PROVIDER == "smtp":
            _notifier_instance = SmtpNotifier()
        else:
            _notifier_instance = ConsoleNotifier()

    return _notifier_instance
