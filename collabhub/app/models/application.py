"""
models/application.py - Application table definition.

An influencer applies to an OPEN campaign; the owning brand approves or
rejects, and the influencer may withdraw while the application is pending.
Allowed status moves live in services/policy.py.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, String, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from collabhub.app.extensions import db


class ApplicationStatus:
    PENDING   = "PENDING"
    APPROVED  = "APPROVED"
    REJECTED  = "REJECTED"
    WITHDRAWN = "WITHDRAWN"

    ALL = (PENDING, APPROVED, REJECTED, WITHDRAWN)


class Application(db.Model):
    __tablename__ = "applications"

    __table_args__ = (
        # An influencer applies to a campaign at most once.
        UniqueConstraint(
            "campaign_id",
            "influencer_id",
            name="uq_applications_campaign_influencer",
        ),
        CheckConstraint(
            "status IN ('PENDING', 'APPROVED', 'REJECTED', 'WITHDRAWN')",
            name="ck_applications_status",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    campaign_id: Mapped[int] = mapped_column(
        ForeignKey("campaigns.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    influencer_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    proposal_message: Mapped[str] = mapped_column(Text, nullable=False)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=ApplicationStatus.PENDING,
        server_default=ApplicationStatus.PENDING,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    # ── Relationships ──────────────────────────────────────────────────────

    campaign: Mapped["Campaign"] = relationship("Campaign")  # noqa: F821
    influencer: Mapped["User"] = relationship("User")  # noqa: F821

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Application id={self.id} status={self.status}>"
