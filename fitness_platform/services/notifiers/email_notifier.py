from __future__ import annotations

from email.message import EmailMessage
import logging
import smtplib

from fitness_platform.models import OTPChannel

from ..exceptions import OTPDeliveryFailed
from .base import BaseOTPNotifier, DeliveryResult, resolve_channel

logger = logging.getLogger(__name__)


class EmailOTPNotifier(BaseOTPNotifier):
    """SMTP implementation; phone targets are rejected."""

    name = "smtp"

    def __init__(
        self,
        *,
        host: str,
        port: int,
        sender: str,
        subject: str,
        username: str | None = None,
        password: str | None = None,
        use_tls: bool = True,
        timeout: float = 10.0,
    ):
        self._host = host
        self._port = port
        self._sender = sender
        self._subject = subject
        self._username = username
        self._password = password
        self._use_tls = use_tls
        self._timeout = timeout

    def send_code(self, *, target: str, code: str, message: str) -> DeliveryResult:
        if resolve_channel(target) is not OTPChannel.EMAIL:
            raise OTPDeliveryFailed("SMS provider is not configured")

        email = EmailMessage()
        email["From"] = self._sender
        email["To"] = target
        email["Subject"] = self._subject
        email.set_content(message)

        logger.debug("Sending OTP email | to=%s", target)
        try:
            with smtplib.SMTP(self._host, self._port, timeout=self._timeout) as smtp:
                if self._use_tls:
                    smtp.starttls()
                if self._username:
                    smtp.login(self._username, self._password or "")
                smtp.send_message(email)
        except (smtplib.SMTPException, OSError) as exc:
            logger.exception("OTP email sending failed | to=%s", target)
            raise OTPDeliveryFailed("Could not deliver the verification email") from exc

        return DeliveryResult(
            target=target,
            channel=OTPChannel.EMAIL,
            provider=self.name,
            provider_message_id=email.get("Message-ID"),
        )
