# Overview: Service-layer operations for email; SMTP delivery of shortage alerts.

from __future__ import annotations

import logging
import smtplib
import threading
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape

from flask import current_app

logger = logging.getLogger(__name__)


class EmailService:
    """Transactional email over SMTP (implicit TLS on 465, STARTTLS otherwise)."""

    def __init__(
        self,
        smtp_host: str | None = None,
        smtp_port: int = 465,
        smtp_user: str | None = None,
        smtp_password: str | None = None,
        from_email: str | None = None,
        from_name: str = "Stockroom",
    ):
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.smtp_user = smtp_user
        self.smtp_password = smtp_password
        self.from_email = from_email or smtp_user
        self.from_name = from_name

    @classmethod
    def from_config(cls, config) -> "EmailService":
        return cls(
            smtp_host=config.get("SMTP_HOST"),
            smtp_port=int(config.get("SMTP_PORT") or 465),
            smtp_user=config.get("SMTP_USER"),
            smtp_password=config.get("SMTP_PASSWORD"),
            from_name=config.get("MAIL_FROM_NAME") or "Stockroom",
        )

    @property
    def configured(self) -> bool:
        return bool(self.smtp_host and self.smtp_user and self.smtp_password)

    def send_email(self, to_email: str, subject: str, html_content: str, text_content: str | None = None) -> bool:
        """
        Send one email.

        Returns True on success. Failures are logged and reported as
        False; they never raise.
        """
        if not self.configured:
            logger.warning("Email not configured. SMTP settings missing.")
            return False

        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"{self.from_name} <{self.from_email}>"
        msg["To"] = to_email
        if text_content:
            msg.attach(MIMEText(text_content, "plain"))
        msg.attach(MIMEText(html_content, "html"))

        try:
            if self.smtp_port == 465:
                server = smtplib.SMTP_SSL(self.smtp_host, self.smtp_port, timeout=10)
            else:
                server = smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=10)
            with server:
                if self.smtp_port != 465:
                    server.starttls()
                server.login(self.smtp_user, self.smtp_password)
                server.sendmail(self.from_email, to_email, msg.as_string())
        except smtplib.SMTPAuthenticationError:
            logger.error("SMTP authentication failed. Check email credentials.")
            return False
        except smtplib.SMTPException as e:
            logger.error("SMTP error: %s", e)
            return False
        except OSError as e:
            logger.error("Network error sending email: %s", e)
            return False

        logger.info("Email sent to %s", to_email)
        return True


def render_shortage_alert(*, full_name: str | None, product_name: str, message: str, plan: str) -> tuple[str, str]:
    """Subject and HTML body for an AI shortage alert."""
    subject = "AI inventory shortage alert"
    html = (
        f"<p>Hello {escape(full_name or '')},</p>"
        f"<p>The product <strong>{escape(product_name)}</strong> will run short soon:</p>"
        f"<p><strong>{escape(message)}</strong></p>"
        f"<p><strong>Replenishment plan:</strong> {escape(plan)}</p>"
        "<p>Please check your dashboard for details.</p>"
    )
    return subject, html


def send_email(to_email: str, subject: str, html_content: str) -> bool:
    """Send with the application's SMTP settings."""
    return EmailService.from_config(current_app.config).send_email(to_email, subject, html_content)


def run_in_background(func, *args) -> threading.Thread:
    """
    Run func(*args) on a daemon thread inside an app context.

    The request that triggers an email never waits on SMTP.
    """
    app = current_app._get_current_object()

    def runner():
        with app.app_context():
            func(*args)

    thread = threading.Thread(target=runner, name="email-dispatch", daemon=True)
    thread.start()
    return thread
