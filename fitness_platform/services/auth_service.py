from datetime import datetime
import logging

from jwt import InvalidTokenError
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from fitness_platform.core import security
from fitness_platform.core.cache import CacheBackend
from fitness_platform.core.config import get_settings
from fitness_platform.models import AuthAction, GymOwner, TargetType
from fitness_platform.models.account import AccountMixin

from . import exceptions
from .account_service import account_model
from .auth_log_service import log_auth_event
from .notifiers import BaseOTPNotifier, build_notifier, resolve_channel
from .otp_service import OTPService, normalize_target

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(
        self,
        db: Session,
        *,
        cache: CacheBackend,
        notifier: BaseOTPNotifier | None = None,
        otp_service: OTPService | None = None,
    ):
        self.db = db
        self.settings = get_settings()
        self.otp_service = otp_service or OTPService(db, cache=cache)
        self.notifier = notifier or build_notifier(self.settings)

    def register(
        self,
        *,
        account_type: TargetType,
        email: str,
        phone: str,
        password: str,
        first_name: str,
        last_name: str,
        gym_owner_id: str | None = None,
        specialization: str | None = None,
        gym_name: str | None = None,
        ip: str | None = None,
        user_agent: str | None = None,
        deadline: datetime | None = None,
    ) -> tuple[AccountMixin, str]:
        model = account_model(account_type)
        email = normalize_target(email)
        phone = phone.strip()

        duplicate = (
            self.db.query(model.id)
            .filter(or_(model.email == email, model.phone == phone))
            .first()
        )
        if duplicate:
            raise exceptions.ConflictError(f"A {account_type.value} with this email or phone already exists")

        fields: dict = {
            "email": email,
            "phone": phone,
            "password_hash": security.create_password_hash(password),
            "first_name": first_name,
            "last_name": last_name,
            "is_active": False,
        }
        if account_type is TargetType.GYM_OWNER:
            fields["gym_name"] = gym_name
        else:
            if gym_owner_id and not self.db.get(GymOwner, gym_owner_id):
                raise exceptions.NotFoundError("Gym owner not found")
            fields["gym_owner_id"] = gym_owner_id
            if account_type is TargetType.TRAINER:
                fields["specialization"] = specialization

        account = model(**fields)
        self.db.add(account)
        try:
            self.db.flush()
            log_auth_event(
                db=self.db,
                actor_type=account_type,
                action=AuthAction.REGISTER,
                actor_id=account.id,
                target=email,
                ip=ip,
                user_agent=user_agent,
            )
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise exceptions.ConflictError(f"A {account_type.value} with this email or phone already exists") from exc

        try:
            code = self.request_otp(
                target=email,
                target_type=account_type,
                ip=ip,
                user_agent=user_agent,
                deadline=deadline,
            )
        except exceptions.ServiceError:
            self._discard_unverified(account)
            raise
        return account, code

    def _discard_unverified(self, account: AccountMixin) -> None:
        """Drop an account whose first code was never issued or delivered, so registration can be retried."""
        self.db.rollback()
        account_id = account.id
        self.db.delete(account)
        self.db.commit()
        logger.info("Registration rolled back, no OTP issued | account_id=%s", account_id)

    def request_otp(
        self,
        *,
        target: str,
        target_type: TargetType,
        ip: str | None = None,
        user_agent: str | None = None,
        deadline: datetime | None = None,
    ) -> str:
        target = normalize_target(target)
        code = self.otp_service.generate_otp(target=target, target_type=target_type, deadline=deadline)
        self._deliver(target=target, code=code)
        log_auth_event(
            db=self.db,
            actor_type=target_type,
            action=AuthAction.OTP_REQUEST,
            target=target,
            ip=ip,
            user_agent=user_agent,
            meta={"channel": resolve_channel(target).value},
        )
        self.db.commit()
        return code

    def verify_otp(
        self,
        *,
        target: str,
        target_type: TargetType,
        code: str,
        ip: str | None = None,
        user_agent: str | None = None,
        deadline: datetime | None = None,
    ) -> tuple[AccountMixin, dict[str, str]]:
        target = normalize_target(target)
        self.otp_service.verify_otp(target=target, target_type=target_type, code=code, deadline=deadline)

        account = self.otp_service.activator.resolve(target_type, target)
        if account is None:
            raise exceptions.ActivationFailed("Account could not be activated")
        tokens = security.issue_token_pair(subject=account.id, account_type=target_type.value)

        log_auth_event(
            db=self.db,
            actor_type=target_type,
            action=AuthAction.OTP_VERIFICATION,
            actor_id=account.id,
            target=target,
            ip=ip,
            user_agent=user_agent,
        )
        self.db.commit()
        return account, tokens

    def login(
        self,
        *,
        username: str,
        password: str,
        account_type: TargetType,
        ip: str | None = None,
        user_agent: str | None = None,
    ) -> tuple[AccountMixin, dict[str, str]]:
        model = account_model(account_type)
        identifier = normalize_target(username)
        account = (
            self.db.query(model)
            .filter(or_(model.email == identifier, model.phone == identifier))
            .first()
        )
        if not account or not security.verify_password(password, account.password_hash):
            log_auth_event(
                db=self.db,
                actor_type=account_type,
                action=AuthAction.FAILED_LOGIN,
                target=identifier,
                ip=ip,
                user_agent=user_agent,
            )
            self.db.commit()
            raise exceptions.AuthenticationError("Invalid credentials")

        if not account.is_active:
            raise exceptions.AuthorizationError("Account is not activated. Verify the OTP sent to you first.")

        tokens = security.issue_token_pair(subject=account.id, account_type=account_type.value)
        log_auth_event(
            db=self.db,
            actor_type=account_type,
            action=AuthAction.LOGIN,
            actor_id=account.id,
            target=identifier,
            ip=ip,
            user_agent=user_agent,
        )
        self.db.commit()
        return account, tokens

    def refresh_tokens(self, *, refresh_token: str) -> dict[str, str]:
        try:
            payload = security.decode_refresh_token(refresh_token)
        except InvalidTokenError as exc:
            raise exceptions.AuthenticationError("Invalid refresh token") from exc

        try:
            account_type = TargetType(payload.get("account_type"))
        except ValueError as exc:
            raise exceptions.AuthenticationError("Invalid token account type") from exc

        account = self.get_account(account_type=account_type, account_id=str(payload.get("sub")))
        if not account.is_active:
            raise exceptions.AuthenticationError("Account is not active")
        return security.issue_token_pair(subject=account.id, account_type=account_type.value)

    def get_account(self, *, account_type: TargetType, account_id: str) -> AccountMixin:
        account = self.db.get(account_model(account_type), account_id)
        if account is None:
            raise exceptions.NotFoundError(f"{account_type.value.replace('_', ' ').capitalize()} not found")
        return account

    def _deliver(self, *, target: str, code: str) -> None:
        if self.notifier is None:
            logger.error("OTP delivery is not configured | target=%s", target)
            raise exceptions.OTPDeliveryFailed("OTP delivery is not configured")
        message = self.settings.OTP_MESSAGE_TEMPLATE.format(
            code=code,
            minutes=self.settings.OTP_EXPIRATION_MINUTES,
        )
        result = self.notifier.send_code(target=target, code=code, message=message)
        logger.info(
            "OTP delivered | target=%s | channel=%s | provider=%s",
            target,
            result.channel.value,
            result.provider,
        )
