from typing import Any

from sqlalchemy.orm import Session

from fitness_platform.models import AuthAction, AuthLog, TargetType


def log_auth_event(
    *,
    db: Session,
    actor_type: TargetType,
    action: AuthAction,
    actor_id: str | None = None,
    target: str | None = None,
    ip: str | None = None,
    user_agent: str | None = None,
    meta: dict[str, Any] | None = None,
) -> AuthLog:
    """Stage an audit row; the caller owns the commit."""
    entry = AuthLog(
        actor_type=actor_type,
        action=action,
        actor_id=actor_id,
        target=target,
        ip=ip,
        user_agent=(user_agent or "")[:255] or None,
        meta=meta,
    )
    db.add(entry)
    db.flush()
    return entry
