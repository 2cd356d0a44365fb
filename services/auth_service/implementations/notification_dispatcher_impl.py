"""Notification dispatchers delivering account emails.

``SmtpNotificationDispatcher`` renders Jinja2 templates and sends them with
aiosmtplib. ``LoggingNotificationDispatcher`` is the development fallback used
when no SMTP server is configured; it writes the code or link to the log.
"""

from __future__ import annotations

from datetime import timedelta
from email.message import EmailMessage

import aiosmtplib
from techvault_service_libs.logging_utils import create_service_logger

from services.auth_service.config import OTP_LIFETIME, RESET_TOKEN_LIFETIME, Settings
from services.auth_service.protocols import NotificationDispatcher, TemplateRenderer

logger = create_service_logger("auth_service.notifications")

VERIFICATION_TEMPLATE = "verification_code"
PASSWORD_RESET_TEMPLATE = "password_reset"


def _minutes(lifetime: timedelta) -> int:
    return int(lifetime.total_seconds() // 60)


class SmtpNotificationDispatcher(NotificationDispatcher):
    def __init__(self, settings: Settings, renderer: TemplateRenderer) -> None:
        self.settings = settings
        self._renderer = renderer

    async def send_verification_code(self, email: str, name: str, code: str) -> None:
        rendered = await self._renderer.render(
            VERIFICATION_TEMPLATE,
            {"user_name": name, "code": code, "expires_in_minutes": str(_minutes(OTP_LIFETIME))},
        )
        await self._send(email, rendered.subject, rendered.html_content, rendered.text_content)

    async def send_password_reset_link(self, email: str, name: str, url: str) -> None:
        rendered = await self._renderer.render(
            PASSWORD_RESET_TEMPLATE,
            {
                "user_name": name,
                "reset_link": url,
                "expires_in_minutes": str(_minutes(RESET_TOKEN_LIFETIME)),
            },
        )
        await self._send(email, rendered.subject, rendered.html_content, rendered.text_content)

    async def _send(self, to: str, subject: str, html_content: str, text_content: str) -> None:
        msg = EmailMessage()
        msg["From"] = f"{self.settings.DEFAULT_FROM_NAME} <{self.settings.DEFAULT_FROM_EMAIL}>"
        msg["To"] = to
        msg["Subject"] = subject
        msg.set_content(text_content, charset="utf-8")
        msg.add_alternative(html_content, subtype="html", charset="utf-8")

        try:
            async with aiosmtplib.SMTP(
                hostname=self.settings.SMTP_HOST,
                port=self.settings.SMTP_PORT,
                start_tls=self.settings.SMTP_USE_TLS,
                timeout=self.settings.SMTP_TIMEOUT,
            ) as smtp:
                if self.settings.SMTP_USERNAME and self.settings.SMTP_PASSWORD:
                    await smtp.login(
                        self.settings.SMTP_USERNAME,
                        self.settings.SMTP_PASSWORD.get_secret_value(),
                    )
                await smtp.send_message(msg)
        except aiosmtplib.SMTPException as e:
            logger.error(
                f"SMTP send failed: {e}",
                extra={"to": to, "subject": subject, "smtp_host": self.settings.SMTP_HOST},
            )
            raise

        logger.info(
            "Email sent via SMTP",
            extra={"to": to, "subject": subject, "smtp_host": self.settings.SMTP_HOST},
        )


class LoggingNotificationDispatcher(NotificationDispatcher):
    """Development dispatcher: no email leaves the process."""

    async def send_verification_code(self, email: str, name: str, code: str) -> None:
        logger.info(
            "Email delivery not configured; verification code logged instead",
            extra={
                "to": email,
                "user_name": name,
                "code": code,
                "expires_in_minutes": _minutes(OTP_LIFETIME),
            },
        )

    async def send_password_reset_link(self, email: str, name: str, url: str) -> None:
        logger.info(
            "Email delivery not configured; password reset link logged instead",
            extra={
                "to": email,
                "user_name": name,
                "reset_link": url,
                "expires_in_minutes": _minutes(RESET_TOKEN_LIFETIME),
            },
        )
