"""Delete used or expired OTP records. Meant to run from cron or a scheduler."""

from datetime import datetime, timezone
import logging
from pathlib import Path
import sys

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from fitness_platform.core.db import session_scope
from fitness_platform.core.logging import configure_logging
from fitness_platform.core.observability import correlation_context, new_correlation_id
from fitness_platform.services import OTPRecordStore

logger = logging.getLogger("fitness_platform.scripts.purge_otp_records")


def main() -> int:
    configure_logging()
    with correlation_context(new_correlation_id("purge")):
        now = datetime.now(tz=timezone.utc)
        with session_scope() as session:
            purged = OTPRecordStore(session).delete_reclaimable(now)
        logger.info("Purged %s used or expired OTP records", purged)
    return purged


if __name__ == "__main__":
    main()
