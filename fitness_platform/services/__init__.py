from .account_service import AccountActivator
from .auth_service import AuthService
from .otp_record_store import OTPRecordStore
from .otp_service import OTPService
from .rate_limiter import RateLimiter

__all__ = [
    "AccountActivator",
    "AuthService",
    "OTPRecordStore",
    "OTPService",
    "RateLimiter",
]
