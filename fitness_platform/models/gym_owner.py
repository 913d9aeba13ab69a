from __future__ import annotations

from typing import Optional, TYPE_CHECKING

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .account import AccountMixin
from .base import Base

if TYPE_CHECKING:  # pragma: no cover
    from .customer import Customer
    from .trainer import Trainer


class GymOwner(AccountMixin, Base):
    __tablename__ = "gym_owners"

    gym_name: Mapped[Optional[str]] = mapped_column(String(150), nullable=True)

    trainers: Mapped[list["Trainer"]] = relationship("Trainer", back_populates="gym_owner")
    customers: Mapped[list["Customer"]] = relationship("Customer", back_populates="gym_owner")
