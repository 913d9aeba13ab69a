from contextlib import contextmanager
from datetime import datetime

from sqlalchemy import delete, or_, update
from sqlalchemy.orm import Session

from fitness_platform.models import OTPRecord, TargetType


class OTPRecordStore:
    """Durable OTP rows backing the cache.

    Writes commit their own unit of work and every failure rolls the session
    back, so a failed mirror write never poisons the request session.
    """

    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def _unit_of_work(self):
        try:
            yield
        except Exception:
            self.db.rollback()
            raise

    def insert(
        self,
        *,
        target: str,
        target_type: TargetType,
        code: str,
        expires_at: datetime,
    ) -> OTPRecord:
        record = OTPRecord(
            target=target,
            target_type=target_type,
            code=code,
            expires_at=expires_at,
            used=False,
        )
        with self._unit_of_work():
            self.db.add(record)
            self.db.commit()
        return record

    def find_unused(self, *, target: str, target_type: TargetType, code: str) -> list[OTPRecord]:
        """Unused rows matching the triple, newest first, expired ones included."""
        with self._unit_of_work():
            return (
                self.db.query(OTPRecord)
                .filter(
                    OTPRecord.target == target,
                    OTPRecord.target_type == target_type,
                    OTPRecord.code == code,
                    OTPRecord.used.is_(False),
                )
                .order_by(OTPRecord.created_at.desc())
                .all()
            )

    def find_valid(self, *, target: str, target_type: TargetType, code: str, now: datetime) -> OTPRecord | None:
        for record in self.find_unused(target=target, target_type=target_type, code=code):
            if not record.is_expired(now):
                return record
        return None

    def mark_used(self, *, target: str, target_type: TargetType, code: str) -> int:
        """Flip ``used`` on every unused row holding this code; return how many this call flipped.

        Re-issuing the same code (static override or a random collision) leaves
        several rows per triple, and all of them are spent together. Zero means
        a concurrent consumer got there first.
        """
        with self._unit_of_work():
            result = self.db.execute(
                update(OTPRecord)
                .where(
                    OTPRecord.target == target,
                    OTPRecord.target_type == target_type,
                    OTPRecord.code == code,
                    OTPRecord.used.is_(False),
                )
                .values(used=True)
                .execution_options(synchronize_session=False)
            )
            self.db.commit()
        return result.rowcount or 0

    def delete_reclaimable(self, now: datetime) -> int:
        """Purge used or expired rows. Run from the external reclaim job."""
        with self._unit_of_work():
            result = self.db.execute(
                delete(OTPRecord)
                .where(or_(OTPRecord.used.is_(True), OTPRecord.expires_at < now))
                .execution_options(synchronize_session=False)
            )
            self.db.commit()
        return result.rowcount or 0
