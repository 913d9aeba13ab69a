from __future__ import annotations

from typing import Optional, TYPE_CHECKING

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .account import AccountMixin
from .base import Base

if TYPE_CHECKING:  # pragma: no cover
    from .customer import Customer
    from .gym_owner import GymOwner


class Trainer(AccountMixin, Base):
    __tablename__ = "trainers"

    gym_owner_id: Mapped[Optional[str]] = mapped_column(ForeignKey("gym_owners.id"), nullable=True, index=True)
    specialization: Mapped[Optional[str]] = mapped_column(String(150), nullable=True)

    gym_owner: Mapped[Optional["GymOwner"]] = relationship("GymOwner", back_populates="trainers")
    customers: Mapped[list["Customer"]] = relationship("Customer", back_populates="trainer")
