from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Enum, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin, new_uuid
from .enums import TargetType


class OTPRecord(TimestampMixin, Base):
    """Durable copy of an issued code. Rows are insert-only apart from the ``used`` flag."""

    __tablename__ = "otp_records"
    __table_args__ = (Index("ix_otp_records_lookup", "target", "target_type", "code"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    target: Mapped[str] = mapped_column(String(320))
    target_type: Mapped[TargetType] = mapped_column(Enum(TargetType, name="otp_target_type"))
    code: Mapped[str] = mapped_column(String(10))
    used: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)

    def is_expired(self, now: datetime) -> bool:
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return now >= expires_at
