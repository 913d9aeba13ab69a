from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from fitness_platform.core.cache import CacheBackend
from fitness_platform.core.config import get_settings
from fitness_platform.core.dependencies import get_cache, get_db, get_request_deadline, get_token_payload
from fitness_platform.models import TargetType
from fitness_platform.schemas import (
    AccountRead,
    LoginRequest,
    LoginResponse,
    ProfileResponse,
    RefreshRequest,
    RegisterRequest,
    RegisterResponse,
    TokenResponse,
)
from fitness_platform.services import AuthService
from fitness_platform.services import exceptions as service_exceptions

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", status_code=status.HTTP_201_CREATED, response_model=RegisterResponse)
def register(
    payload: RegisterRequest,
    request: Request,
    db: Session = Depends(get_db),
    cache: CacheBackend = Depends(get_cache),
    deadline: datetime = Depends(get_request_deadline),
) -> RegisterResponse:
    settings = get_settings()
    service = AuthService(db, cache=cache)
    try:
        account, code = service.register(
            account_type=payload.user_type,
            email=payload.email,
            phone=payload.phone,
            password=payload.password,
            first_name=payload.first_name,
            last_name=payload.last_name,
            gym_owner_id=payload.gym_owner_id,
            specialization=payload.specialization,
            gym_name=payload.gym_name,
            ip=getattr(request.state, "ip", None),
            user_agent=getattr(request.state, "user_agent", None),
            deadline=deadline,
        )
    except service_exceptions.ConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except service_exceptions.NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except service_exceptions.RateLimitExceeded as exc:
        raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail=str(exc)) from exc
    except service_exceptions.StorageUnavailable as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except service_exceptions.OTPDeliveryFailed as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    except service_exceptions.DeadlineExceeded as exc:
        raise HTTPException(status_code=status.HTTP_504_GATEWAY_TIMEOUT, detail=str(exc)) from exc

    return RegisterResponse(
        account=AccountRead.model_validate(account),
        user_type=payload.user_type,
        expires_in=settings.OTP_EXPIRATION_MINUTES * 60,
        otp=None if settings.is_production else code,
    )


@router.post("/login", response_model=LoginResponse)
def login(
    payload: LoginRequest,
    request: Request,
    db: Session = Depends(get_db),
    cache: CacheBackend = Depends(get_cache),
) -> LoginResponse:
    service = AuthService(db, cache=cache)
    try:
        account, tokens = service.login(
            username=payload.username,
            password=payload.password,
            account_type=payload.user_type,
            ip=getattr(request.state, "ip", None),
            user_agent=getattr(request.state, "user_agent", None),
        )
    except service_exceptions.AuthenticationError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc
    except service_exceptions.AuthorizationError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc

    return LoginResponse(
        account=AccountRead.model_validate(account),
        user_type=payload.user_type,
        tokens=TokenResponse.from_pair(tokens),
    )


@router.post("/refresh", response_model=TokenResponse)
def refresh_tokens(
    payload: RefreshRequest,
    db: Session = Depends(get_db),
    cache: CacheBackend = Depends(get_cache),
) -> TokenResponse:
    if not payload.refresh_token:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="refresh_token is required")
    service = AuthService(db, cache=cache)
    try:
        tokens = service.refresh_tokens(refresh_token=payload.refresh_token)
    except (service_exceptions.AuthenticationError, service_exceptions.NotFoundError) as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc
    return TokenResponse.from_pair(tokens)


@router.get("/me", response_model=ProfileResponse)
def read_profile(
    payload: dict = Depends(get_token_payload),
    db: Session = Depends(get_db),
    cache: CacheBackend = Depends(get_cache),
) -> ProfileResponse:
    try:
        account_type = TargetType(payload["account_type"])
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unknown account type") from exc

    service = AuthService(db, cache=cache)
    try:
        account = service.get_account(account_type=account_type, account_id=str(payload["sub"]))
    except service_exceptions.NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return ProfileResponse(type=account_type, profile=AccountRead.model_validate(account))
