from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import jwt
from passlib.context import CryptContext

from .config import get_settings

ALGORITHM = "HS256"
REFRESH_SCOPE = "refresh"

password_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def create_password_hash(password: str) -> str:
    return password_context.hash(password)


def verify_password(password: str, hashed_password: str) -> bool:
    return password_context.verify(password, hashed_password)


def _encode(
    *,
    subject: str,
    account_type: str,
    secret: str,
    lifetime: timedelta,
    scope: str | None = None,
    claims: Dict[str, Any] | None = None,
) -> str:
    payload: Dict[str, Any] = dict(claims or {})
    payload.update(
        {
            "sub": str(subject),
            "account_type": account_type,
            "exp": datetime.now(tz=timezone.utc) + lifetime,
        }
    )
    if scope:
        payload["scope"] = scope
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def create_access_token(*, subject: str, account_type: str, claims: Dict[str, Any] | None = None) -> str:
    settings = get_settings()
    return _encode(
        subject=subject,
        account_type=account_type,
        secret=settings.JWT_SECRET_KEY,
        lifetime=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
        claims=claims,
    )


def create_refresh_token(*, subject: str, account_type: str, claims: Dict[str, Any] | None = None) -> str:
    settings = get_settings()
    return _encode(
        subject=subject,
        account_type=account_type,
        secret=settings.JWT_REFRESH_SECRET_KEY,
        lifetime=timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
        scope=REFRESH_SCOPE,
        claims=claims,
    )


def issue_token_pair(*, subject: str, account_type: str) -> dict[str, str]:
    return {
        "access": create_access_token(subject=subject, account_type=account_type),
        "refresh": create_refresh_token(subject=subject, account_type=account_type),
    }


def decode_access_token(token: str) -> Dict[str, Any]:
    return jwt.decode(token, get_settings().JWT_SECRET_KEY, algorithms=[ALGORITHM])


def decode_refresh_token(token: str) -> Dict[str, Any]:
    payload = jwt.decode(token, get_settings().JWT_REFRESH_SECRET_KEY, algorithms=[ALGORITHM])
    if payload.get("scope") != REFRESH_SCOPE:
        raise jwt.InvalidTokenError("Token is not a refresh token")
    return payload
