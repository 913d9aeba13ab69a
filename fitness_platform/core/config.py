from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import AnyHttpUrl, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parent.parent.parent
ENV_FILE = BASE_DIR / ".env"


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    PROJECT_NAME: str = "Fitness Platform API"
    API_V1_PREFIX: str = "/api/v1"

    DATABASE_URL: str
    REDIS_URL: Optional[str] = None
    REDIS_SOCKET_TIMEOUT: float = Field(default=2.0, gt=0)

    JWT_SECRET_KEY: str
    JWT_REFRESH_SECRET_KEY: str
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(default=60, ge=1)
    REFRESH_TOKEN_EXPIRE_DAYS: int = Field(default=14, ge=1)

    OTP_LENGTH: int = Field(default=6, ge=4, le=8)
    OTP_EXPIRATION_MINUTES: int = Field(default=5, ge=1)
    OTP_RATE_LIMIT_WINDOW_SECONDS: int = Field(default=60, ge=1)
    OTP_RATE_LIMIT_MAX_REQUESTS: int = Field(default=1, ge=1)
    # Fixed code returned instead of a random one; development and tests only.
    OTP_STATIC_CODE: Optional[str] = None
    OTP_PERSIST_RECORDS: bool = True
    OTP_REQUEST_TIMEOUT_SECONDS: int = Field(default=10, ge=1)
    OTP_DELIVERY_DRY_RUN: bool = True
    OTP_EMAIL_SUBJECT: str = "Your verification code"
    OTP_MESSAGE_TEMPLATE: str = "Your verification code is {code}. It expires in {minutes} minutes."

    SMTP_HOST: Optional[str] = None
    SMTP_PORT: int = 587
    SMTP_USER: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    SMTP_FROM: Optional[str] = None
    SMTP_USE_TLS: bool = True

    LOG_LEVEL: str = "INFO"
    LOG_FILE_PATH: Optional[str] = None
    ENVIRONMENT: str = "development"

    CORS_ORIGINS: list[AnyHttpUrl] | list[str] = Field(default_factory=list)

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v: str | list[str]) -> list[str]:
        if isinstance(v, str):
            v = v.strip().strip('"\'')
            if v == "*":
                return ["*"]
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @field_validator("OTP_STATIC_CODE", mode="before")
    @classmethod
    def normalize_static_code(cls, v: str | None) -> str | None:
        if v is None:
            return None
        value = str(v).strip()
        if not value:
            return None
        if not value.isdigit():
            raise ValueError("OTP_STATIC_CODE must contain digits only")
        return value

    @model_validator(mode="after")
    def forbid_static_code_in_production(self) -> "Settings":
        if self.OTP_STATIC_CODE and self.is_production:
            raise ValueError("OTP_STATIC_CODE must not be set in production")
        return self

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.strip().lower() == "production"


load_dotenv(ENV_FILE)


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()
