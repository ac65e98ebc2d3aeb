# backend/emails.py
# Outgoing mail: password reset template and SMTP delivery

from __future__ import annotations

import html
import smtplib
from email.message import EmailMessage

try:
    from backend import config
except ModuleNotFoundError:
    import config


RESET_SUBJECT = "Password Reset Request"

_RESET_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8" />
  <title>Password Reset Request</title>
</head>
<body style="font-family: sans-serif; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
  <h1 style="color: #5B86E5;">Reset Your Password</h1>
  <p><strong>Hello {name},</strong></p>
  <p>We received a request to reset the password for your RentWise account.
     If you made this request, use the button below to choose a new password.</p>
  <p style="text-align: center; margin: 30px 0;">
    <a href="{client_url}" style="background: #5B86E5; color: white; text-decoration: none;
       padding: 14px 40px; border-radius: 50px; font-weight: 600;">Reset Password</a>
  </p>
  <p>If you didn't request a password reset, you can ignore this email.
     Your password will remain unchanged.</p>
  <p style="font-size: 14px; color: #777;">This link will expire in 1 hour for security reasons.</p>
  <p style="font-size: 14px; color: #777;">If the button doesn't work, paste this link into your browser:</p>
  <p style="word-wrap: break-word; color: #5B86E5;">{client_url}</p>
  <p>Best regards,<br>The RentWise Team</p>
</body>
</html>
"""


def render_password_reset_email(name: str, client_url: str) -> str:
    """Render the reset email body with both values HTML-escaped."""
    return _RESET_TEMPLATE.format(
        name=html.escape(name or ""),
        client_url=html.escape(client_url or "", quote=True),
    )


def send_email(to_email: str, subject: str, html_body: str) -> bool:
    """
    Send an HTML email through the configured SMTP server.

    If SMTP_HOST is empty the message is not sent; a summary line is printed
    instead. Delivery failures are printed and reported as False.

    Returns:
        True when the SMTP server accepted the message.
    """
    if not config.SMTP_HOST:
        print(f"[EMAIL] Not sent (SMTP not configured): to={to_email}, subject={subject!r}")
        return False

    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = config.MAIL_FROM
    msg["To"] = to_email
    msg.set_content("This message requires an HTML-capable mail client.")
    msg.add_alternative(html_body, subtype="html")

    try:
        with smtplib.SMTP(config.SMTP_HOST, config.SMTP_PORT, timeout=15) as smtp:
            if config.SMTP_USE_TLS:
                smtp.starttls()
            if config.SMTP_USERNAME:
                smtp.login(config.SMTP_USERNAME, config.SMTP_PASSWORD)
            smtp.send_message(msg)
    except (smtplib.SMTPException, OSError) as e:
        print(f"[EMAIL] Delivery failed: to={to_email}, error={type(e).__name__}: {e}")
        return False

    if config.IS_DEV:
        print(f"[EMAIL] Sent: to={to_email}, subject={subject!r}")
    return True


def send_password_reset_email(to_email: str, name: str, client_url: str) -> bool:
    return send_email(to_email, RESET_SUBJECT, render_password_reset_email(name, client_url))
