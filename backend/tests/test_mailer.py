"""
Unit tests for the SMTP mail transport.
aiosmtplib.send is patched; no SMTP server is contacted.
"""

import os
import pytest
from unittest.mock import AsyncMock, patch

from app.errors import DeliveryFailed
from app.services.mailer import MailSettings, SmtpMailTransport, build_message


class TestMailSettings:

    def test_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            settings = MailSettings.from_env()

        assert settings.host == "localhost"
        assert settings.port == 587
        assert settings.user is None
        assert settings.start_tls is True
        assert settings.use_tls is False

    def test_reads_environment(self):
        env = {
            "SMTP_HOST": "smtp.example.com",
            "SMTP_PORT": "2525",
            "SMTP_USER": "mailer@example.com",
            "SMTP_PASSWORD": "secret",
            "SMTP_TIMEOUT": "5",
            "MAIL_FROM": "News <news@example.com>",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = MailSettings.from_env()

        assert settings.host == "smtp.example.com"
        assert settings.port == 2525
        assert settings.password == "secret"
        assert settings.timeout == 5.0
        assert settings.sender == "News <news@example.com>"

    def test_malformed_numbers_fall_back_to_defaults(self):
        with patch.dict(os.environ, {"SMTP_PORT": "smtp", "SMTP_TIMEOUT": "ten"}, clear=True):
            settings = MailSettings.from_env()

        assert settings.port == 587
        assert settings.timeout == 10.0

    def test_sender_defaults_to_user(self):
        with patch.dict(os.environ, {"SMTP_USER": "mailer@example.com"}, clear=True):
            assert MailSettings.from_env().sender == "mailer@example.com"

    def test_direct_tls_disables_starttls(self):
        with patch.dict(os.environ, {"SMTP_USE_TLS": "true", "SMTP_START_TLS": "true"}, clear=True):
            settings = MailSettings.from_env()

        assert settings.use_tls is True
        assert settings.start_tls is False


class TestBuildMessage:

    def test_html_message_headers(self):
        msg = build_message("news@example.com", "a@example.com", "Weekly digest", "<h1>Hi</h1>")

        assert msg["From"] == "news@example.com"
        assert msg["To"] == "a@example.com"
        assert msg["Subject"] == "Weekly digest"
        assert msg.get_content_type() == "text/html"
        assert "<h1>Hi</h1>" in msg.get_content()


class TestSmtpMailTransport:

    @pytest.mark.asyncio
    async def test_send_submits_one_message(self):
        settings = MailSettings(host="smtp.example.com", port=2525, user="u", password="p", sender="news@example.com")
        transport = SmtpMailTransport(settings)

        with patch("app.services.mailer.aiosmtplib.send", new_callable=AsyncMock) as mock_send:
            await transport.send("a@example.com", "Subject", "<p>Body</p>")

        mock_send.assert_awaited_once()
        message = mock_send.call_args[0][0]
        kwargs = mock_send.call_args[1]
        assert message["To"] == "a@example.com"
        assert kwargs["hostname"] == "smtp.example.com"
        assert kwargs["port"] == 2525
        assert kwargs["username"] == "u"

    @pytest.mark.asyncio
    async def test_smtp_error_raises_delivery_failed(self):
        transport = SmtpMailTransport(MailSettings(sender="news@example.com"))

        with patch("app.services.mailer.aiosmtplib.send", new_callable=AsyncMock) as mock_send:
            mock_send.side_effect = ConnectionRefusedError("connection refused")

            with pytest.raises(DeliveryFailed) as exc_info:
                await transport.send("a@example.com", "Subject", "<p>Body</p>")

        assert exc_info.value.recipient == "a@example.com"
        assert "connection refused" in str(exc_info.value)
