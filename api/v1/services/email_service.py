import smtplib
from email.message import EmailMessage
from email.utils import formataddr
from api.v1.utils.config import Settings
from api.v1.utils.exceptions import EmailDeliveryError
from api.v1.utils.logger import get_logger

logger = get_logger("email_service")

OTP_HTML = """\
<!DOCTYPE html>
<html>
  <body style="font-family: -apple-system, 'Segoe UI', Roboto, sans-serif; color: #333;">
    <h2>Hi {full_name},</h2>
    <p>Use the code below to verify your email address.</p>
    <p style="font-size: 32px; font-weight: bold; letter-spacing: 8px;">{otp}</p>
    <p>This code expires in {ttl} minutes. If you did not request it, you can ignore this email.</p>
    <p>The {app_name} team</p>
  </body>
</html>
"""

OTP_TEXT = """\
Hi {full_name},

Your {app_name} verification code is {otp}.
It expires in {ttl} minutes. If you did not request it, you can ignore this email.
"""

WELCOME_HTML = """\
<!DOCTYPE html>
<html>
  <body style="font-family: -apple-system, 'Segoe UI', Roboto, sans-serif; color: #333;">
    <h2>Welcome to {app_name}, {full_name}!</h2>
    <p>Your account is ready. Sign in with your email and PIN to start tracking
    your credits and expenses.</p>
  </body>
</html>
"""

WELCOME_TEXT = """\
Welcome to {app_name}, {full_name}!

Your account is ready. Sign in with your email and PIN to start tracking
your credits and expenses.
"""


class EmailService:
    def __init__(self, settings: Settings):
        self.settings = settings

    def send_otp(self, email: str, full_name: str, otp: str) -> None:
        context = {
            "full_name": full_name,
            "otp": otp,
            "ttl": self.settings.OTP_TTL_MINUTES,
            "app_name": self.settings.MAIL_FROM_NAME,
        }
        self._send(
            to=email,
            subject=f"Your {self.settings.MAIL_FROM_NAME} verification code",
            text=OTP_TEXT.format(**context),
            html=OTP_HTML.format(**context),
        )

    def send_welcome_email(self, email: str, full_name: str) -> None:
        context = {"full_name": full_name, "app_name": self.settings.MAIL_FROM_NAME}
        self._send(
            to=email,
            subject=f"Welcome to {self.settings.MAIL_FROM_NAME}",
            text=WELCOME_TEXT.format(**context),
            html=WELCOME_HTML.format(**context),
        )

    def _build_message(self, to: str, subject: str, text: str, html: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = formataddr(
            (self.settings.MAIL_FROM_NAME, self.settings.MAIL_FROM)
        )
        message["To"] = to
        message["Subject"] = subject
        message.set_content(text)
        message.add_alternative(html, subtype="html")
        return message

    def _send(self, to: str, subject: str, text: str, html: str) -> None:
        message = self._build_message(to, subject, text, html)

        if self.settings.MAIL_BACKEND == "console":
            logger.info(
                "Email (console backend)",
                extra={"to": to, "subject": subject, "body": text},
            )
            return

        if not self.settings.SMTP_HOST:
            logger.error("SMTP host is not configured", extra={"to": to})
            raise EmailDeliveryError()

        try:
            with smtplib.SMTP(
                self.settings.SMTP_HOST, self.settings.SMTP_PORT, timeout=10
            ) as smtp:
                if self.settings.SMTP_USE_TLS:
                    smtp.starttls()
                if self.settings.SMTP_USERNAME:
                    smtp.login(self.settings.SMTP_USERNAME, self.settings.SMTP_PASSWORD)
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error(
                "Email delivery failed",
                extra={"to": to, "subject": subject, "error_type": type(exc).__name__},
            )
            raise EmailDeliveryError() from exc

        logger.info("Email sent", extra={"to": to, "subject": subject})
