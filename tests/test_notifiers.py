import smtplib

import pytest

from fitness_platform.core.config import Settings
from fitness_platform.models import OTPChannel
from fitness_platform.services.exceptions import OTPDeliveryFailed
from fitness_platform.services.notifiers import (
    EmailOTPNotifier,
    LoggingOTPNotifier,
    build_notifier,
    resolve_channel,
)


class _RecordingSMTP:
    sent = []

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False

    def starttls(self):
        pass

    def login(self, username, password):
        pass

    def send_message(self, message):
        _RecordingSMTP.sent.append(message)


class _RefusingSMTP(_RecordingSMTP):
    def send_message(self, message):
        raise smtplib.SMTPRecipientsRefused({message["To"]: (550, b"no such user")})


def _email_notifier():
    return EmailOTPNotifier(host="smtp.test", port=587, sender="noreply@gym.test", subject="Your code")


def test_channel_follows_target_shape():
    assert resolve_channel("a@example.com") is OTPChannel.EMAIL
    assert resolve_channel("+15550001111") is OTPChannel.PHONE


def test_dry_run_notifier_logs_instead_of_sending(caplog):
    caplog.set_level("INFO", logger="fitness_platform.otp_delivery")

    result = LoggingOTPNotifier().send_code(target="+15550001111", code="123456", message="Code 123456")

    assert result.channel is OTPChannel.PHONE
    assert result.provider == "dry-run"
    assert "code=123456" in caplog.text


def test_email_notifier_sends_message(monkeypatch):
    _RecordingSMTP.sent = []
    monkeypatch.setattr(smtplib, "SMTP", _RecordingSMTP)

    result = _email_notifier().send_code(target="a@example.com", code="654321", message="Code 654321")

    assert result.channel is OTPChannel.EMAIL
    [message] = _RecordingSMTP.sent
    assert message["To"] == "a@example.com"
    assert "654321" in message.get_content()


def test_email_notifier_wraps_smtp_failures(monkeypatch):
    monkeypatch.setattr(smtplib, "SMTP", _RefusingSMTP)

    with pytest.raises(OTPDeliveryFailed):
        _email_notifier().send_code(target="a@example.com", code="654321", message="Code 654321")


def test_email_notifier_rejects_phone_targets():
    with pytest.raises(OTPDeliveryFailed):
        _email_notifier().send_code(target="+15550001111", code="1", message="1")


def test_build_notifier_selection():
    assert isinstance(build_notifier(Settings(OTP_DELIVERY_DRY_RUN=True)), LoggingOTPNotifier)
    assert build_notifier(Settings(OTP_DELIVERY_DRY_RUN=False, SMTP_HOST=None)) is None
    assert isinstance(
        build_notifier(Settings(OTP_DELIVERY_DRY_RUN=False, SMTP_HOST="smtp.test")),
        EmailOTPNotifier,
    )
