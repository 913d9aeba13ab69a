import logging
from pathlib import Path
import sys

from .config import BASE_DIR, get_settings
from .observability import CorrelationIdFilter

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] [%(correlation_id)s] %(message)s"
OTP_DELIVERY_LOGGER = "fitness_platform.otp_delivery"


def _resolve_log_path(raw_path: str) -> Path:
    path = Path(raw_path)
    if not path.is_absolute():
        path = BASE_DIR / path
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def configure_logging() -> None:
    """Install stdout (and optional file) handlers tagged with the request correlation id."""
    settings = get_settings()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if settings.LOG_FILE_PATH:
        handlers.append(logging.FileHandler(_resolve_log_path(settings.LOG_FILE_PATH), encoding="utf-8"))

    correlation_filter = CorrelationIdFilter()
    formatter = logging.Formatter(LOG_FORMAT)
    for handler in handlers:
        handler.addFilter(correlation_filter)
        handler.setFormatter(formatter)

    root = logging.getLogger()
    if not any(isinstance(f, CorrelationIdFilter) for h in root.handlers for f in h.filters):
        for handler in handlers:
            root.addHandler(handler)
    root.setLevel(settings.LOG_LEVEL)

    # Dry-run deliveries are logged at INFO regardless of LOG_LEVEL.
    logging.getLogger(OTP_DELIVERY_LOGGER).setLevel(logging.INFO)
