import logging

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fitness_platform.models import Customer, GymOwner, TargetType, Trainer
from fitness_platform.models.account import AccountMixin

from . import exceptions

logger = logging.getLogger(__name__)

ACCOUNT_MODELS: dict[TargetType, type] = {
    TargetType.GYM_OWNER: GymOwner,
    TargetType.TRAINER: Trainer,
    TargetType.CUSTOMER: Customer,
}


def account_model(target_type: TargetType) -> type:
    return ACCOUNT_MODELS[TargetType(target_type)]


class AccountActivator:
    def __init__(self, db: Session):
        self.db = db

    def resolve(self, target_type: TargetType, target: str) -> AccountMixin | None:
        """Find the account an OTP target refers to: its id, email or phone."""
        model = account_model(target_type)
        return (
            self.db.query(model)
            .filter(or_(model.id == target, model.email == target, model.phone == target))
            .first()
        )

    def activate(self, target_type: TargetType, target: str) -> AccountMixin:
        try:
            account = self.resolve(target_type, target)
        except SQLAlchemyError as exc:
            logger.error("Account lookup failed during activation | type=%s | target=%s", target_type.value, target)
            raise exceptions.ActivationFailed("Account could not be activated") from exc
        if account is None:
            logger.error("No %s account for verified target %s", target_type.value, target)
            raise exceptions.ActivationFailed("Account could not be activated")

        if account.is_active:
            return account

        account.is_active = True
        self.db.add(account)
        try:
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Persisting activation failed | type=%s | account_id=%s", target_type.value, account.id)
            raise exceptions.ActivationFailed("Account could not be activated") from exc
        logger.info("Account activated | type=%s | account_id=%s", target_type.value, account.id)
        return account
