from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from fitness_platform.models import TargetType

from .account import AccountRead
from .common import TokenResponse


class RegisterRequest(BaseModel):
    user_type: TargetType
    email: str = Field(..., pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$", max_length=320)
    phone: str = Field(..., pattern=r"^\+?\d{7,15}$")
    password: str = Field(..., min_length=8)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    gym_owner_id: Optional[str] = Field(default=None, max_length=36)
    specialization: Optional[str] = Field(default=None, max_length=150)
    gym_name: Optional[str] = Field(default=None, max_length=150)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()

    @model_validator(mode="after")
    def check_role_fields(self) -> "RegisterRequest":
        if self.user_type is TargetType.GYM_OWNER and self.gym_owner_id:
            raise ValueError("gym_owner_id is not allowed for gym owners")
        if self.user_type is not TargetType.TRAINER and self.specialization:
            raise ValueError("specialization is only allowed for trainers")
        if self.user_type is not TargetType.GYM_OWNER and self.gym_name:
            raise ValueError("gym_name is only allowed for gym owners")
        return self


class RegisterResponse(BaseModel):
    account: AccountRead
    user_type: TargetType
    expires_in: int
    otp: Optional[str] = None


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=320, description="Email address or phone number")
    password: str = Field(..., min_length=1)
    user_type: TargetType


class LoginResponse(BaseModel):
    account: AccountRead
    user_type: TargetType
    tokens: TokenResponse


class RefreshRequest(BaseModel):
    refresh_token: str


class ProfileResponse(BaseModel):
    type: TargetType
    profile: AccountRead
