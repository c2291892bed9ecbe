"""
Tests for notifiers
"""
from unittest.mock import MagicMock, patch

import pytest

from email_otp.core.errors import DeliveryError
from email_otp.schemas.user import UserRecord
from email_otp.services.notifier import ConsoleNotifier, SmtpNotifier, build_body, build_subject


def test_subject_uses_realm_name():
    assert build_subject("Acme Corp") == "Acme Corp access code"


def test_body_contains_code_and_username(user):
    body = build_body(user, "004821")
    assert "004821" in body
    assert "alice" in body


@pytest.mark.asyncio
async def test_console_notifier_logs(user, caplog):
    with caplog.at_level("INFO"):
        await ConsoleNotifier().send(user, "004821", "Acme Corp")
    assert "alice@example.com" in caplog.text


@pytest.mark.asyncio
async def test_smtp_incomplete_settings_is_delivery_error(user):
    notifier = SmtpNotifier(server="smtp.example.com", username="u", password="p", from_email=None)
    notifier.from_email = None

    with pytest.raises(DeliveryError):
        await notifier.send(user, "004821", "Acme Corp")


@pytest.mark.asyncio
async def test_smtp_sends_message(user):
    notifier = SmtpNotifier(server="smtp.example.com", port=2525, username="u", password="p", from_email="no-reply@example.com")
    server = MagicMock()

    with patch("email_otp.services.notifier.smtplib.SMTP") as smtp_cls:
        smtp_cls.return_value.__enter__.return_value = server
        await notifier.send(user, "004821", "Acme Corp")

    smtp_cls.assert_called_once_with("smtp.example.com", 2525, timeout=20)
    server.login.assert_called_once_with("u", "p")
    message = server.send_message.call_args.args[0]
    assert message["To"] == "alice@example.com"
    assert message["Subject"] == "Acme Corp access code"


@pytest.mark.asyncio
async def test_smtp_transport_error_is_delivery_error(user):
    notifier = SmtpNotifier(server="smtp.example.com", username="u", password="p", from_email="no-reply@example.com")

    with patch("email_otp.services.notifier.smtplib.SMTP", side_effect=OSError("connection refused")):
        with pytest.raises(DeliveryError):
            await notifier.send(user, "004821", "Acme Corp")


@pytest.mark.asyncio
async def test_smtp_unexpected_error_is_delivery_error(user):
    notifier = SmtpNotifier(server="smtp.example.com", username="u", password="pässwörd", from_email="no-reply@example.com")
    server = MagicMock()
    server.login.side_effect = UnicodeEncodeError("ascii", "pässwörd", 1, 2, "ordinal not in range(128)")

    with patch("email_otp.services.notifier.smtplib.SMTP") as smtp_cls:
        smtp_cls.return_value.__enter__.return_value = server
        with pytest.raises(DeliveryError):
            await notifier.send(user, "004821", "Acme Corp")


def test_body_escapes_username():
    user = UserRecord(id=5, username="<b>eve</b>", email="eve@example.com")

    body = build_body(user, "123456")

    assert "<b>eve</b>" not in body
    assert "&lt;b&gt;eve&lt;/b&gt;" in body
