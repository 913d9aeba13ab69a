from __future__ import annotations

from typing import Optional, TYPE_CHECKING

from sqlalchemy import ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .account import AccountMixin
from .base import Base

if TYPE_CHECKING:  # pragma: no cover
    from .gym_owner import GymOwner
    from .trainer import Trainer


class Customer(AccountMixin, Base):
    __tablename__ = "customers"

    gym_owner_id: Mapped[Optional[str]] = mapped_column(ForeignKey("gym_owners.id"), nullable=True, index=True)
    trainer_id: Mapped[Optional[str]] = mapped_column(ForeignKey("trainers.id"), nullable=True, index=True)

    gym_owner: Mapped[Optional["GymOwner"]] = relationship("GymOwner", back_populates="customers")
    trainer: Mapped[Optional["Trainer"]] = relationship("Trainer", back_populates="customers")
