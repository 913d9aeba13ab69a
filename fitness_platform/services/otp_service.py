from datetime import datetime, timedelta, timezone
import hmac
import logging
import secrets
from typing import Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fitness_platform.core.cache import CacheBackend, CacheError
from fitness_platform.core.config import Settings, get_settings
from fitness_platform.models import OTPRecord, TargetType

from . import exceptions
from .account_service import AccountActivator
from .otp_record_store import OTPRecordStore
from .rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

OTP_NAMESPACE = "otp"


def build_otp_key(target_type: TargetType, target: str) -> str:
    return f"{OTP_NAMESPACE}:{TargetType(target_type).value}:{target}"


def build_rate_limit_key(target: str) -> str:
    return f"{OTP_NAMESPACE}:ratelimit:{target}"


def normalize_target(target: str | None) -> str:
    cleaned = (target or "").strip()
    if "@" in cleaned:
        return cleaned.lower()
    return cleaned.replace(" ", "")


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


class OTPService:
    """Issues and verifies one-time codes.

    The cache holds the live code and is the primary verification path. A
    durable ``OTPRecord`` mirrors every issuance and is consulted when the
    cache has no entry. Consumption is at-most-once: the Redis DEL result or
    the conditional ``used`` update decides which of two racing verifications
    wins.
    """

    def __init__(
        self,
        db: Session,
        *,
        cache: CacheBackend,
        rate_limiter: RateLimiter | None = None,
        records: OTPRecordStore | None = None,
        activator: AccountActivator | None = None,
        settings: Settings | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.db = db
        self.cache = cache
        self.settings = settings or get_settings()
        self.rate_limiter = rate_limiter or RateLimiter(
            cache,
            limit=self.settings.OTP_RATE_LIMIT_MAX_REQUESTS,
            window_seconds=self.settings.OTP_RATE_LIMIT_WINDOW_SECONDS,
        )
        self.records = records or OTPRecordStore(db)
        self.activator = activator or AccountActivator(db)
        self._clock = clock or _utcnow

    @property
    def expiry_seconds(self) -> int:
        return self.settings.OTP_EXPIRATION_MINUTES * 60

    def generate_otp(self, *, target: str, target_type: TargetType | str, deadline: datetime | None = None) -> str:
        target = normalize_target(target)
        target_type = self._coerce_target_type(target_type)
        if not target:
            raise exceptions.ValidationError("OTP target must not be empty")

        rate_limit_key = build_rate_limit_key(target)
        if not self.rate_limiter.is_allowed(rate_limit_key):
            logger.info("OTP issuance rate limited | type=%s | target=%s", target_type.value, target)
            raise exceptions.RateLimitExceeded(
                f"Too many OTP requests. Try again in {self.settings.OTP_RATE_LIMIT_WINDOW_SECONDS} seconds."
            )

        self._check_deadline(deadline, "generate")

        code = self._generate_code()
        otp_key = build_otp_key(target_type, target)
        try:
            self.cache.set(otp_key, code, self.expiry_seconds)
        except CacheError as exc:
            logger.error("Failed to store OTP in cache | key=%s | error=%s", otp_key, exc)
            raise exceptions.StorageUnavailable("OTP storage is unavailable") from exc

        self.rate_limiter.increment(rate_limit_key)

        if self.settings.OTP_PERSIST_RECORDS:
            self._persist_record(target=target, target_type=target_type, code=code)

        logger.info("OTP issued | type=%s | target=%s", target_type.value, target)
        return code

    def verify_otp(
        self,
        *,
        target: str,
        target_type: TargetType | str,
        code: str,
        deadline: datetime | None = None,
    ) -> bool:
        target = normalize_target(target)
        target_type = self._coerce_target_type(target_type)
        submitted = (code or "").strip()
        if not target or not self._is_well_formed(submitted):
            logger.info("Malformed OTP submission | type=%s | target=%s", target_type.value, target)
            raise exceptions.OTPInvalid("Invalid OTP code")

        self._check_deadline(deadline, "verify")

        otp_key = build_otp_key(target_type, target)
        cached_code = self._read_cached_code(otp_key)

        if cached_code is not None:
            if not hmac.compare_digest(cached_code, submitted):
                logger.info("OTP mismatch | type=%s | target=%s", target_type.value, target)
                raise exceptions.OTPInvalid("Invalid OTP code")
            self._check_deadline(deadline, "verify")
            self._consume_cached(otp_key, target=target, target_type=target_type, code=submitted)
        else:
            self._find_durable_match(target=target, target_type=target_type, code=submitted)
            self._check_deadline(deadline, "verify")
            self._consume_durable(otp_key, target=target, target_type=target_type, code=submitted)

        self.activator.activate(target_type, target)
        return True

    def _generate_code(self) -> str:
        if self.settings.OTP_STATIC_CODE:
            return self.settings.OTP_STATIC_CODE
        return "".join(secrets.choice("0123456789") for _ in range(self.settings.OTP_LENGTH))

    def _expected_length(self) -> int:
        if self.settings.OTP_STATIC_CODE:
            return len(self.settings.OTP_STATIC_CODE)
        return self.settings.OTP_LENGTH

    def _is_well_formed(self, code: str) -> bool:
        return code.isascii() and code.isdigit() and len(code) == self._expected_length()

    @staticmethod
    def _coerce_target_type(target_type: TargetType | str) -> TargetType:
        try:
            return TargetType(target_type)
        except ValueError as exc:
            raise exceptions.ValidationError(f"Unknown target type: {target_type}") from exc

    def _check_deadline(self, deadline: datetime | None, step: str) -> None:
        if deadline is not None and self._clock() >= deadline:
            logger.warning("OTP %s abandoned, deadline passed", step)
            raise exceptions.DeadlineExceeded("Request deadline exceeded")

    def _persist_record(self, *, target: str, target_type: TargetType, code: str) -> None:
        expires_at = self._clock() + timedelta(seconds=self.expiry_seconds)
        try:
            self.records.insert(target=target, target_type=target_type, code=code, expires_at=expires_at)
        except SQLAlchemyError:
            logger.exception(
                "Durable OTP record not saved, cache copy only | type=%s | target=%s",
                target_type.value,
                target,
            )

    def _read_cached_code(self, otp_key: str) -> str | None:
        try:
            return self.cache.get(otp_key)
        except CacheError as exc:
            logger.warning("OTP cache read failed, using durable store | key=%s | error=%s", otp_key, exc)
            return None

    def _find_durable_match(self, *, target: str, target_type: TargetType, code: str) -> OTPRecord:
        try:
            candidates = self.records.find_unused(target=target, target_type=target_type, code=code)
        except SQLAlchemyError as exc:
            logger.error("Durable OTP lookup failed | type=%s | target=%s", target_type.value, target)
            raise exceptions.StorageUnavailable("OTP storage is unavailable") from exc

        now = self._clock()
        for record in candidates:
            if not record.is_expired(now):
                return record
        if candidates:
            logger.info("Expired OTP submitted | type=%s | target=%s", target_type.value, target)
            raise exceptions.OTPExpired("OTP has expired")
        logger.info("No live OTP record | type=%s | target=%s", target_type.value, target)
        raise exceptions.OTPInvalid("Invalid OTP code")

    def _consume_cached(self, otp_key: str, *, target: str, target_type: TargetType, code: str) -> None:
        try:
            existed = self.cache.delete(otp_key)
        except CacheError as exc:
            logger.warning("OTP cache delete failed | key=%s | error=%s", otp_key, exc)
            existed = None
        if existed is False:
            logger.info("OTP already consumed by a concurrent request | key=%s", otp_key)
            raise exceptions.OTPInvalid("Invalid OTP code")

        try:
            record = self.records.find_valid(target=target, target_type=target_type, code=code, now=self._clock())
        except SQLAlchemyError:
            logger.exception("Durable OTP lookup failed after cache match | key=%s", otp_key)
            return
        if record is None:
            return
        flipped = self._mark_used(target=target, target_type=target_type, code=code)
        if flipped == 0 and existed is None:
            # Cache could not arbitrate, so the durable flag decides.
            raise exceptions.OTPInvalid("Invalid OTP code")

    def _consume_durable(self, otp_key: str, *, target: str, target_type: TargetType, code: str) -> None:
        flipped = self._mark_used(target=target, target_type=target_type, code=code)
        if flipped == 0:
            logger.info("OTP records already used by a concurrent request | key=%s", otp_key)
            raise exceptions.OTPInvalid("Invalid OTP code")
        try:
            self.cache.delete(otp_key)
        except CacheError as exc:
            logger.warning("OTP cache delete failed | key=%s | error=%s", otp_key, exc)

    def _mark_used(self, *, target: str, target_type: TargetType, code: str) -> int | None:
        try:
            return self.records.mark_used(target=target, target_type=target_type, code=code)
        except SQLAlchemyError:
            logger.exception("Failed to mark OTP records used | type=%s | target=%s", target_type.value, target)
            return None
