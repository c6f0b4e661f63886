"""
Email senders for account notifications.

SmtpEmailSender delivers through aiosmtplib; LoggingEmailSender is used
when no SMTP host is configured (local development) and only logs that a
message would have been sent. Links are never logged.
"""

import logging
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

import aiosmtplib

from shared.config import Settings

from .exceptions import EmailDeliveryError

logger = logging.getLogger(__name__)


def _verification_body(name: str, link: str) -> tuple[str, str]:
    text = (
        f"Hello {name},\n\n"
        f"Please verify your email address by opening the link below:\n{link}\n\n"
        "If you did not create an account, you can ignore this email."
    )
    html = (
        f"<p>Hello {name},</p>"
        f'<p>Please verify your email address: <a href="{link}">Verify email</a></p>'
        "<p>If you did not create an account, you can ignore this email.</p>"
    )
    return text, html


def _reset_body(name: str, link: str) -> tuple[str, str]:
    text = (
        f"Hello {name},\n\n"
        f"We received a request to reset your password. Open the link below to choose a new one:\n{link}\n\n"
        "If you did not request a reset, no action is needed."
    )
    html = (
        f"<p>Hello {name},</p>"
        f'<p>We received a request to reset your password. <a href="{link}">Reset password</a></p>'
        "<p>If you did not request a reset, no action is needed.</p>"
    )
    return text, html


def _password_changed_body(name: str) -> tuple[str, str]:
    text = (
        f"Hello {name},\n\n"
        "Your password was just changed. If this wasn't you, contact the school office immediately."
    )
    html = (
        f"<p>Hello {name},</p>"
        "<p>Your password was just changed. If this wasn't you, contact the school office immediately.</p>"
    )
    return text, html


class SmtpEmailSender:
    """Sends account emails over SMTP."""

    def __init__(self, settings: Settings):
        self._settings = settings

    async def send_email_verification(self, to: str, name: str, link: str) -> None:
        text, html = _verification_body(name, link)
        await self._send(to, "Verify your email address", text, html)

    async def send_password_reset(self, to: str, name: str, link: str) -> None:
        text, html = _reset_body(name, link)
        await self._send(to, "Reset your password", text, html)

    async def send_password_changed(self, to: str, name: str) -> None:
        text, html = _password_changed_body(name)
        await self._send(to, "Your password was changed", text, html)

    def _build_message(self, to: str, subject: str, text: str, html: str) -> MIMEMultipart:
        message = MIMEMultipart("alternative")
        message["From"] = f"{self._settings.smtp_from_name} <{self._settings.smtp_from_email}>"
        message["To"] = to
        message["Subject"] = subject
        message.attach(MIMEText(text, "plain", "utf-8"))
        message.attach(MIMEText(html, "html", "utf-8"))
        return message

    async def _send(self, to: str, subject: str, text: str, html: str) -> None:
        message = self._build_message(to, subject, text, html)
        try:
            await aiosmtplib.send(
                message,
                hostname=self._settings.smtp_host,
                port=self._settings.smtp_port,
                username=self._settings.smtp_username or None,
                password=self._settings.smtp_password or None,
                start_tls=self._settings.smtp_use_tls,
                timeout=self._settings.identity_request_timeout,
            )
        except aiosmtplib.SMTPException as e:
            logger.error(f"Failed to send '{subject}' email to {to}: {e}")
            raise EmailDeliveryError(f"Failed to send email: {e}") from e

        logger.info(f"Sent '{subject}' email to {to}")


class LoggingEmailSender:
    """Stands in for SMTP when no host is configured."""

    async def send_email_verification(self, to: str, name: str, link: str) -> None:
        logger.info(f"[email disabled] verification email for {to}")

    async def send_password_reset(self, to: str, name: str, link: str) -> None:
        logger.info(f"[email disabled] password reset email for {to}")

    async def send_password_changed(self, to: str, name: str) -> None:
        logger.info(f"[email disabled] password changed notice for {to}")


def create_email_sender(settings: Settings):
    """Pick the SMTP sender when a host is configured."""
    if settings.smtp_host:
        return SmtpEmailSender(settings)
    logger.warning("SMTP_HOST not set; account emails will only be logged")
    return LoggingEmailSender()
