"""Email utility — sends transactional emails via SMTP (TLS)."""
from __future__ import annotations

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Protocol

from homestock.core.config import settings

logger = logging.getLogger(__name__)


def _build_smtp_connection(timeout: float) -> smtplib.SMTP:
    """Open an authenticated SMTP TLS connection."""
    conn = smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=timeout)
    conn.ehlo()
    conn.starttls()
    conn.ehlo()
    if settings.SMTP_USER:
        conn.login(settings.SMTP_USER, settings.SMTP_PASS)
    return conn


def send_email(
    to: str,
    subject: str,
    html_body: str,
    plain_body: str = "",
    timeout: float = None,
) -> bool:
    """
    Send a transactional email. Returns True on success, False on failure.
    """
    try:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"HomeStock <{settings.EMAIL_FROM}>"
        msg["To"] = to

        if plain_body:
            msg.attach(MIMEText(plain_body, "plain", "utf-8"))
        msg.attach(MIMEText(html_body, "html", "utf-8"))

        with _build_smtp_connection(timeout or settings.SMTP_TIMEOUT_SECONDS) as conn:
            conn.sendmail(settings.EMAIL_FROM, [to], msg.as_string())

        logger.info(f"[Email] Sent '{subject}' → {to}")
        return True

    except (smtplib.SMTPException, OSError) as exc:
        logger.error(f"[Email] Failed to send '{subject}' to {to}: {exc}")
        return False


# ── Convenience senders ───────────────────────────────────────────────────────

def send_password_reset_otp_email(to: str, otp: str, expires_minutes: int = 5) -> bool:
    """Send the password-reset OTP."""
    subject = "Password Reset OTP"
    html_body = f"""
<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <style>
    body {{ font-family: Arial, sans-serif; background: #f4f4f4; margin: 0; padding: 0; }}
    .container {{ max-width: 500px; margin: 40px auto; background: #fff;
                  border-radius: 8px; padding: 32px; box-shadow: 0 2px 8px rgba(0,0,0,.1); }}
    .logo {{ font-size: 26px; font-weight: 700; color: #0f766e; margin-bottom: 24px; }}
    .otp {{ font-size: 40px; font-weight: 800; letter-spacing: 10px; color: #0f766e;
            background: #f0fdfa; padding: 16px 24px; border-radius: 8px;
            display: inline-block; margin: 16px 0; }}
    .footer {{ margin-top: 24px; font-size: 12px; color: #9ca3af; }}
  </style>
</head>
<body>
  <div class="container">
    <div class="logo">HomeStock</div>
    <p>Your OTP for password reset is:</p>
    <div class="otp">{otp}</div>
    <p>This OTP will expire in <strong>{expires_minutes} minutes</strong>.</p>
    <p>If you did not request a password reset, please ignore this email.</p>
    <div class="footer">&copy; HomeStock</div>
  </div>
</body>
</html>
"""
    plain_body = (
        f"Your OTP for password reset is: {otp}. "
        f"This OTP will expire in {expires_minutes} minutes."
    )
    return send_email(to, subject, html_body, plain_body)


class Mailer(Protocol):
    def send_password_reset_otp(self, to: str, otp: str, expires_minutes: int) -> bool: ...


class SmtpMailer:
    """Mail transport used by the auth flows."""

    def send_password_reset_otp(self, to: str, otp: str, expires_minutes: int) -> bool:
        return send_password_reset_otp_email(to, otp, expires_minutes)
