from typing import Optional

from pydantic import BaseModel, Field, field_validator

from fitness_platform.models import TargetType

from .common import TokenResponse


class SendOTPRequest(BaseModel):
    target: str = Field(..., min_length=3, max_length=320, description="Email address, phone number or account id")
    target_type: TargetType

    @field_validator("target")
    @classmethod
    def strip_target(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError("target cannot be blank")
        return normalized


class SendOTPResponse(BaseModel):
    message: str = "OTP sent successfully"
    expires_in: int
    # Only populated outside production.
    otp: Optional[str] = None


class VerifyOTPRequest(BaseModel):
    target: str = Field(..., min_length=3, max_length=320)
    target_type: TargetType
    otp: str = Field(..., min_length=1, max_length=16)


class VerifyOTPResponse(BaseModel):
    message: str = "OTP verified successfully"
    user_id: str
    user_type: TargetType
    is_active: bool
    tokens: TokenResponse
