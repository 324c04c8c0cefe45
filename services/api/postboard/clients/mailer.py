"""
Transactional email: account verification codes and password-reset links.

Backends:
  console — log the message (development default)
  smtp    — deliver through an SMTP relay; smtplib is blocking, so sends run
            in a worker thread
"""
import asyncio
import logging
import smtplib
from email.message import EmailMessage

from postboard.config import settings

logger = logging.getLogger(__name__)


class Mailer:
    def __init__(self, backend: str | None = None) -> None:
        self.backend = backend or settings.mail_backend

    async def send_verify_account_email(self, email: str, user_id: str, otp: str) -> None:
        body = (
            "Welcome to Postboard!\n\n"
            f"Your verification code is {otp}.\n"
            "Enter it in the app to activate your account."
        )
        logger.info("Sending verification email to user %s", user_id)
        await self.send(email, "Verify your account", body)

    async def send_reset_password_email(self, email: str, token: str) -> None:
        link = f"{settings.frontend_url}/reset-password?token={token}"
        body = (
            "We received a request to reset your password.\n\n"
            f"Open {link} within {settings.reset_token_ttl_minutes} minutes "
            "to choose a new one. If you did not ask for this, ignore this email."
        )
        await self.send(email, "Reset your password", body)

    async def send(self, to: str, subject: str, body: str) -> None:
        msg = EmailMessage()
        msg["From"] = settings.mail_from
        msg["To"] = to
        msg["Subject"] = subject
        msg.set_content(body)

        if self.backend == "console":
            logger.info("Email to %s — %s\n%s", to, subject, body)
            return
        await asyncio.to_thread(self._deliver_smtp, msg)
        logger.debug("Delivered '%s' to %s", subject, to)

    @staticmethod
    def _deliver_smtp(msg: EmailMessage) -> None:
        with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=10) as smtp:
            if settings.smtp_use_tls:
                smtp.starttls()
            if settings.smtp_username:
                smtp.login(settings.smtp_username, settings.smtp_password or "")
            smtp.send_message(msg)


mailer = Mailer()


def get_mailer() -> Mailer:
    """FastAPI dependency for the mailer."""
    return mailer
