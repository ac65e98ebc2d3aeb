"""
backend/test_emails.py

Password reset template and SMTP delivery (smtplib is mocked).

Run:
    pytest backend/test_emails.py -v
"""

import smtplib
from unittest.mock import MagicMock, patch

from backend import config, emails


class TestTemplate:
    def test_interpolates_name_and_link(self):
        html = emails.render_password_reset_email("Dana", "https://app.example.com/reset-password?token=abc")
        assert "Hello Dana," in html
        assert html.count("https://app.example.com/reset-password?token=abc") == 2
        assert "expire in 1 hour" in html

    def test_escapes_values(self):
        html = emails.render_password_reset_email("<script>x</script>", 'https://x.test/?a=1&b="2"')
        assert "<script>" not in html
        assert "&lt;script&gt;" in html
        assert "a=1&amp;b=&quot;2&quot;" in html


class TestSend:
    def test_not_configured_returns_false(self, monkeypatch):
        monkeypatch.setattr(config, "SMTP_HOST", "")
        with patch("backend.emails.smtplib.SMTP") as smtp:
            assert emails.send_email("a@example.com", "Hi", "<p>hi</p>") is False
        smtp.assert_not_called()

    def test_delivers_through_smtp(self, monkeypatch):
        monkeypatch.setattr(config, "SMTP_HOST", "smtp.example.com")
        monkeypatch.setattr(config, "SMTP_PORT", 2525)
        monkeypatch.setattr(config, "SMTP_USE_TLS", True)
        monkeypatch.setattr(config, "SMTP_USERNAME", "mailer")
        monkeypatch.setattr(config, "SMTP_PASSWORD", "pw")

        server = MagicMock()
        with patch("backend.emails.smtplib.SMTP") as smtp:
            smtp.return_value.__enter__.return_value = server
            assert emails.send_password_reset_email("a@example.com", "Dana", "https://x.test/r") is True

        smtp.assert_called_once_with("smtp.example.com", 2525, timeout=15)
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("mailer", "pw")
        sent = server.send_message.call_args[0][0]
        assert sent["To"] == "a@example.com"
        assert sent["Subject"] == emails.RESET_SUBJECT

    def test_failure_is_reported_not_raised(self, monkeypatch):
        monkeypatch.setattr(config, "SMTP_HOST", "smtp.example.com")
        with patch("backend.emails.smtplib.SMTP", side_effect=smtplib.SMTPConnectError(421, "busy")):
            assert emails.send_email("a@example.com", "Hi", "<p>hi</p>") is False
