from datetime import datetime
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from fitness_platform.core.cache import CacheBackend
from fitness_platform.core.config import get_settings
from fitness_platform.core.dependencies import get_cache, get_db, get_request_deadline
from fitness_platform.schemas import SendOTPRequest, SendOTPResponse, TokenResponse, VerifyOTPRequest, VerifyOTPResponse
from fitness_platform.services import AuthService
from fitness_platform.services import exceptions as service_exceptions

router = APIRouter(prefix="/otp", tags=["otp"])
logger = logging.getLogger(__name__)


@router.post("/send", response_model=SendOTPResponse)
def send_otp(
    payload: SendOTPRequest,
    request: Request,
    db: Session = Depends(get_db),
    cache: CacheBackend = Depends(get_cache),
    deadline: datetime = Depends(get_request_deadline),
) -> SendOTPResponse:
    settings = get_settings()
    service = AuthService(db, cache=cache)
    try:
        code = service.request_otp(
            target=payload.target,
            target_type=payload.target_type,
            ip=getattr(request.state, "ip", None),
            user_agent=getattr(request.state, "user_agent", None),
            deadline=deadline,
        )
    except service_exceptions.ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except service_exceptions.RateLimitExceeded as exc:
        raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail=str(exc)) from exc
    except service_exceptions.StorageUnavailable as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except service_exceptions.OTPDeliveryFailed as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    except service_exceptions.DeadlineExceeded as exc:
        raise HTTPException(status_code=status.HTTP_504_GATEWAY_TIMEOUT, detail=str(exc)) from exc

    return SendOTPResponse(
        expires_in=settings.OTP_EXPIRATION_MINUTES * 60,
        otp=None if settings.is_production else code,
    )


@router.post("/verify", response_model=VerifyOTPResponse)
def verify_otp(
    payload: VerifyOTPRequest,
    request: Request,
    db: Session = Depends(get_db),
    cache: CacheBackend = Depends(get_cache),
    deadline: datetime = Depends(get_request_deadline),
) -> VerifyOTPResponse:
    service = AuthService(db, cache=cache)
    try:
        account, tokens = service.verify_otp(
            target=payload.target,
            target_type=payload.target_type,
            code=payload.otp,
            ip=getattr(request.state, "ip", None),
            user_agent=getattr(request.state, "user_agent", None),
            deadline=deadline,
        )
    except service_exceptions.OTPExpired as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="OTP has expired") from exc
    except (service_exceptions.OTPInvalid, service_exceptions.ValidationError) as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid OTP") from exc
    except service_exceptions.ActivationFailed as exc:
        logger.error("OTP verified but activation failed | type=%s | target=%s", payload.target_type.value, payload.target)
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except service_exceptions.StorageUnavailable as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except service_exceptions.DeadlineExceeded as exc:
        raise HTTPException(status_code=status.HTTP_504_GATEWAY_TIMEOUT, detail=str(exc)) from exc

    return VerifyOTPResponse(
        user_id=account.id,
        user_type=payload.target_type,
        is_active=account.is_active,
        tokens=TokenResponse.from_pair(tokens),
    )
