from __future__ import annotations

import logging

from fitness_platform.core.logging import OTP_DELIVERY_LOGGER

from .base import BaseOTPNotifier, DeliveryResult, resolve_channel

delivery_logger = logging.getLogger(OTP_DELIVERY_LOGGER)


class LoggingOTPNotifier(BaseOTPNotifier):
    """Dry-run sink: writes the message to the delivery log instead of sending it."""

    name = "dry-run"

    def send_code(self, *, target: str, code: str, message: str) -> DeliveryResult:
        channel = resolve_channel(target)
        delivery_logger.info(
            "DRY-RUN OTP | channel=%s | target=%s | code=%s | message=\"%s\"",
            channel.value,
            target,
            code,
            message,
        )
        return DeliveryResult(target=target, channel=channel, provider=self.name)
