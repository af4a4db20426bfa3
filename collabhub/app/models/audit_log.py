"""
models/audit_log.py - AuditLog table definition.

Append-only. Rows are written by services/audit_service.py and read by the
admin audit-log endpoint. `actor_id` is deliberately not a foreign key so a
log line survives deletion of the user it mentions.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from collabhub.app.extensions import db


class AuditLog(db.Model):
    __tablename__ = "audit_logs"

    id: Mapped[int] = mapped_column(primary_key=True)

    actor_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)

    # Dotted verb, e.g. "campaign.create", "auth.refresh".
    action: Mapped[str] = mapped_column(String(100), nullable=False, index=True)

    entity_type: Mapped[str] = mapped_column(String(50), nullable=False)
    entity_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    # "metadata" is reserved on declarative classes; the column keeps the name.
    details: Mapped[dict | None] = mapped_column("metadata", JSON, nullable=True)

    ip_address: Mapped[str | None] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(512), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<AuditLog id={self.id} action={self.action!r} actor={self.actor_id}>"
