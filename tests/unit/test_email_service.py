"""Unit tests for EmailService and mail texts."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch

import pytest

from authserver.models.token import TokenKind, TokenRecord
from authserver.models.user import User
from authserver.services import mail_templates
from authserver.services.email_service import EmailService


@pytest.fixture
def service():
    return EmailService()


@pytest.fixture
def user():
    return User(id=3, username="alice", email="alice@example.com", password="hash")


class TestSendEmail:
    async def test_sends_email_successfully(self, service, mock_settings):
        with patch("authserver.services.email_service.get_settings") as get_settings:
            get_settings.return_value = mock_settings

            with patch("aiosmtplib.send", new_callable=AsyncMock) as mock_send:
                result = await service.send_email("user@example.com", "Subject", "Body")

        assert result is True
        mock_send.assert_awaited_once()
        kwargs = mock_send.call_args.kwargs
        assert kwargs["recipients"] == ["user@example.com"]
        assert kwargs["hostname"] == "smtp.test.local"
        assert "Subject: Subject" in mock_send.call_args.args[0]

    async def test_returns_false_on_failure(self, service, mock_settings):
        with patch("authserver.services.email_service.get_settings") as get_settings:
            get_settings.return_value = mock_settings

            with patch("aiosmtplib.send", new_callable=AsyncMock) as mock_send:
                mock_send.side_effect = ConnectionRefusedError("smtp down")
                result = await service.send_email("user@example.com", "Subject", "Body")

        assert result is False

    async def test_disabled_does_not_send(self, service, mock_settings):
        mock_settings.email_enabled = False

        with patch("authserver.services.email_service.get_settings") as get_settings:
            get_settings.return_value = mock_settings

            with patch("aiosmtplib.send", new_callable=AsyncMock) as mock_send:
                result = await service.send_email("user@example.com", "Subject", "Body")

        assert result is False
        mock_send.assert_not_called()


class TestMailTemplates:
    def test_verification_link(self, user, mock_settings):
        token = TokenRecord(
            token_id=12,
            user=user,
            token="abc123",
            expiration_date=datetime.now(timezone.utc) + timedelta(hours=1),
            kind=TokenKind.CONFIRMATION,
        )

        with patch("authserver.services.mail_templates.get_settings") as get_settings:
            get_settings.return_value = mock_settings
            text = mail_templates.verification_mail_text(user, token)

        assert "Dear alice" in text
        assert "http://localhost:3000/confirm/12/abc123" in text

    def test_new_password_text(self, user):
        text = mail_templates.new_password_mail_text(user, "N3w!passw0rd")
        assert "N3w!passw0rd" in text

    def test_password_changed_text(self):
        assert "password was changed" in mail_templates.password_changed_mail_text()
