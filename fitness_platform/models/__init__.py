from .auth_log import AuthLog
from .base import Base
from .customer import Customer
from .enums import AuthAction, OTPChannel, TargetType
from .gym_owner import GymOwner
from .otp_record import OTPRecord
from .trainer import Trainer

__all__ = [
    "AuthLog",
    "Base",
    "Customer",
    "GymOwner",
    "OTPRecord",
    "Trainer",
    "AuthAction",
    "OTPChannel",
    "TargetType",
]
