from datetime import datetime, timedelta, timezone
from typing import Generator

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jwt import InvalidTokenError
from sqlalchemy.orm import Session

from fitness_platform.core import security
from fitness_platform.core.cache import CacheBackend, cache_manager
from fitness_platform.core.config import get_settings
from fitness_platform.core.db import get_db_session


bearer_scheme = HTTPBearer(auto_error=False)


def get_db() -> Generator[Session, None, None]:
    yield from get_db_session()


def get_cache() -> CacheBackend:
    return cache_manager.get_backend()


def get_request_deadline() -> datetime:
    """Absolute UTC deadline handed to OTP operations for this request."""
    timeout = get_settings().OTP_REQUEST_TIMEOUT_SECONDS
    return datetime.now(tz=timezone.utc) + timedelta(seconds=timeout)


def _get_token(credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme)) -> str:
    if credentials is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    if credentials.scheme.lower() != "bearer":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid authentication scheme")
    return credentials.credentials


def get_token_payload(token: str = Depends(_get_token)) -> dict:
    try:
        payload = security.decode_access_token(token)
    except InvalidTokenError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token") from exc
    if "sub" not in payload or "account_type" not in payload:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    return payload
