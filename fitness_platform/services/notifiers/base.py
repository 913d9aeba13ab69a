from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

from fitness_platform.models import OTPChannel


def resolve_channel(target: str) -> OTPChannel:
    """Pick the delivery channel for a contact address."""
    return OTPChannel.EMAIL if "@" in target else OTPChannel.PHONE


@dataclass(slots=True)
class DeliveryResult:
    """Normalized outcome returned by OTP notifiers."""

    target: str
    channel: OTPChannel
    provider: str
    provider_message_id: Optional[str] = None
    meta: Optional[dict[str, Any]] = None


class BaseOTPNotifier(ABC):
    """Interface all OTP delivery sinks must implement."""

    name: str

    @abstractmethod
    def send_code(self, *, target: str, code: str, message: str) -> DeliveryResult:
        """Deliver ``message`` carrying ``code`` to ``target``."""
        raise NotImplementedError
