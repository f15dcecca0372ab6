"""Welcome e-mail for newly created driver accounts."""

from __future__ import annotations

import asyncio
import logging
import smtplib
from email.message import EmailMessage

from pyfleet.config import SmtpSettings

_logger = logging.getLogger(__name__)

WELCOME_SUBJECT = "Welcome to Fleet Management System"


def build_welcome_message(sender: str, email: str, password: str) -> EmailMessage:
    """Compose the welcome e-mail.

    The temporary password is included in plain text; the recipient has to
    replace it on first sign-in.
    """
    msg = EmailMessage()
    msg["From"] = sender
    msg["To"] = email
    msg["Subject"] = WELCOME_SUBJECT
    msg.set_content(
        "Welcome to Fleet Management System!\n\n"
        "Your login credentials are:\n"
        f"Email: {email}\n"
        f"Password: {password}\n\n"
        "You will be asked to choose a new password when you first sign in.\n"
    )
    return msg


class WelcomeMailer:
    """Send welcome e-mails through the configured SMTP relay.

    With no relay configured every send is a logged no-op.
    """

    def __init__(self, settings: SmtpSettings) -> None:
        self._settings = settings

    @property
    def is_configured(self) -> bool:
        return self._settings.is_configured

    def _send(self, msg: EmailMessage) -> None:
        settings = self._settings
        with smtplib.SMTP(settings.host, settings.port, timeout=settings.timeout) as smtp:
            if settings.starttls:
                smtp.starttls()
            if settings.username and settings.password:
                smtp.login(settings.username, settings.password)
            smtp.send_message(msg)

    async def send_welcome_email(self, email: str, password: str) -> bool:
        """Send the welcome e-mail from a worker thread.

        Returns
        -------
        bool
            ``True`` when the relay accepted the message.  Delivery
            failures are logged, not raised.
        """
        if not self.is_configured:
            _logger.info("SMTP relay not configured, skipping welcome email to %s", email)
            return False
        if "@" not in email:
            _logger.error("Not sending welcome email to invalid address %r", email)
            return False

        _logger.info("Sending welcome email to: %s", email)
        msg = build_welcome_message(self._settings.sender, email, password)
        try:
            await asyncio.to_thread(self._send, msg)
        except (smtplib.SMTPException, OSError) as exc:
            _logger.error("Error while sending welcome email to %s: %s", email, exc)
            return False
        return True
