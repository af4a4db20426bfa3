"""
services/audit_service.py - Best-effort audit trail.

An audit write must never block the request it describes. The insert runs
inside a SAVEPOINT: if it fails, only the savepoint is rolled back, the
failure is logged, and the caller's unit of work carries on untouched.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from collabhub.app.models.audit_log import AuditLog

logger = logging.getLogger(__name__)

MAX_LIST_LIMIT = 200
DEFAULT_LIST_LIMIT = 50


def record(
        session: Session,
        *,
        actor_id: int | None,
        action: str,
        entity_type: str,
        entity_id: int | str | None = None,
        metadata: dict | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
) -> AuditLog | None:
    """
    Appends one audit row. Returns the row, or None if the write failed.
    Commit is the route's responsibility.
    """
    entry = AuditLog(
        actor_id=actor_id,
        action=action,
        entity_type=entity_type,
        entity_id=str(entity_id) if entity_id is not None else None,
        details=metadata,
        ip_address=ip_address,
        user_agent=(user_agent or "")[:512] or None,
    )
    try:
        with session.begin_nested():
            session.add(entry)
    except SQLAlchemyError:
        logger.warning("Audit write failed for action=%s entity=%s:%s",
                       action, entity_type, entity_id, exc_info=True)
        return None
    return entry


def list_recent(session: Session, limit: int | None = None) -> list[dict]:
    """Newest audit rows first. `limit` is clamped to 1..200 (default 50)."""
    if not limit:
        limit = DEFAULT_LIST_LIMIT
    limit = max(1, min(MAX_LIST_LIMIT, limit))

    rows = session.execute(
        select(AuditLog)
        .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
        .limit(limit)
    ).scalars().all()

    return [
        {
            "id": row.id,
            "actor_id": row.actor_id,
            "action": row.action,
            "entity_type": row.entity_type,
            "entity_id": row.entity_id,
            "metadata": row.details,
            "ip_address": row.ip_address,
            "user_agent": row.user_agent,
            "created_at": row.created_at.isoformat(),
        }
        for row in rows
    ]
