from __future__ import annotations

import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from flask import Flask, current_app


class Mailer:
    """SMTP delivery for account emails.

    ``send`` never raises: delivery problems are logged and reported through
    the return value so callers can decide whether they matter.
    """

    def __init__(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        from_email: str,
        timeout: int = 10,
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.from_email = from_email
        self.timeout = timeout

    @classmethod
    def from_config(cls, config) -> "Mailer":
        return cls(
            host=config.get("SMTP_HOST", ""),
            port=int(config.get("SMTP_PORT", 587)),
            username=config.get("SMTP_USERNAME", ""),
            password=config.get("SMTP_PASSWORD", ""),
            from_email=config.get("MAIL_FROM", ""),
        )

    @property
    def configured(self) -> bool:
        return bool(self.host and self.from_email)

    def send(self, to: str, subject: str, body_text: str, body_html: str | None = None) -> bool:
        if not self.configured:
            current_app.logger.warning("[MAIL] SMTP not configured; skipped '%s' to %s", subject, to)
            return False
        message = MIMEMultipart("alternative")
        message["Subject"] = subject
        message["From"] = self.from_email
        message["To"] = to
        message.attach(MIMEText(body_text, "plain", "utf-8"))
        if body_html:
            message.attach(MIMEText(body_html, "html", "utf-8"))
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
                smtp.starttls()
                if self.username:
                    smtp.login(self.username, self.password)
                smtp.sendmail(self.from_email, [to], message.as_string())
        except (smtplib.SMTPException, OSError) as exc:
            current_app.logger.warning("[MAIL] delivery of '%s' to %s failed: %s", subject, to, exc)
            return False
        current_app.logger.info("[MAIL] sent '%s' to %s", subject, to)
        return True


def init_mailer(app: Flask, mailer: Mailer | None = None) -> Mailer:
    instance = mailer or Mailer.from_config(app.config)
    app.extensions["mailer"] = instance
    return instance


def get_mailer() -> Mailer:
    return current_app.extensions["mailer"]


def verification_code_email(full_name: str, code: str) -> tuple[str, str, str]:
    subject = "Your EMI Verify Account Verification Code"
    text = (
        f"Hello {full_name},\n\n"
        "Thank you for signing up for EMI Verify.\n"
        f"Your verification code is: {code}\n\n"
        "This code will expire in 30 minutes. If you did not request this, please ignore this email.\n\n"
        "Regards,\nEMI Verify Team"
    )
    html = (
        f"<p>Hello {full_name},</p>"
        "<p>Thank you for signing up for EMI Verify.</p>"
        f"<p>Your verification code is: <strong>{code}</strong></p>"
        "<p>This code will expire in 30 minutes. If you did not request this, please ignore this email.</p>"
        "<p>Regards,<br>EMI Verify Team</p>"
    )
    return subject, text, html


def password_reset_email(full_name: str, reset_link: str) -> tuple[str, str, str]:
    subject = "Reset Your EMI Verify Password"
    text = (
        f"Hello {full_name},\n\n"
        "We received a request to reset your EMI Verify account password.\n"
        f"Use the link below to choose a new one:\n{reset_link}\n\n"
        "This link will expire in 30 minutes. If you did not request this, please ignore this email.\n\n"
        "Regards,\nEMI Verify Team"
    )
    html = (
        f"<p>Hello {full_name},</p>"
        "<p>We received a request to reset your EMI Verify account password.</p>"
        f'<p><a href="{reset_link}">Reset Password</a></p>'
        "<p>This link will expire in 30 minutes. If you did not request this, please ignore this email.</p>"
        "<p>Regards,<br>EMI Verify Team</p>"
    )
    return subject, text, html
