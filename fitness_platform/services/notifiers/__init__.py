from fitness_platform.core.config import Settings

from .base import BaseOTPNotifier, DeliveryResult, resolve_channel
from .email_notifier import EmailOTPNotifier
from .logging_notifier import LoggingOTPNotifier


def build_notifier(settings: Settings) -> BaseOTPNotifier | None:
    if settings.OTP_DELIVERY_DRY_RUN:
        return LoggingOTPNotifier()
    if not settings.SMTP_HOST:
        return None
    return EmailOTPNotifier(
        host=settings.SMTP_HOST,
        port=settings.SMTP_PORT,
        sender=settings.SMTP_FROM or settings.SMTP_USER or "",
        subject=settings.OTP_EMAIL_SUBJECT,
        username=settings.SMTP_USER,
        password=settings.SMTP_PASSWORD,
        use_tls=settings.SMTP_USE_TLS,
    )


__all__ = [
    "BaseOTPNotifier",
    "DeliveryResult",
    "EmailOTPNotifier",
    "LoggingOTPNotifier",
    "build_notifier",
    "resolve_channel",
]
