from .account import AccountRead
from .auth import LoginRequest, LoginResponse, ProfileResponse, RefreshRequest, RegisterRequest, RegisterResponse
from .common import TokenResponse
from .otp import SendOTPRequest, SendOTPResponse, VerifyOTPRequest, VerifyOTPResponse

__all__ = [
    "AccountRead",
    "LoginRequest",
    "LoginResponse",
    "ProfileResponse",
    "RefreshRequest",
    "RegisterRequest",
    "RegisterResponse",
    "SendOTPRequest",
    "SendOTPResponse",
    "TokenResponse",
    "VerifyOTPRequest",
    "VerifyOTPResponse",
]
