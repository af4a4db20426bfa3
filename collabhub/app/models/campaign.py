"""
models/campaign.py - Campaign table definition.

A campaign is posted by a brand and is open for matches and applications
until the brand (or an admin) closes it.

FK policy: brand_id ON DELETE RESTRICT - a brand with campaigns cannot be
deleted.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from collabhub.app.extensions import db


class CampaignStatus:
    OPEN   = "OPEN"
    CLOSED = "CLOSED"


class Campaign(db.Model):
    __tablename__ = "campaigns"

    __table_args__ = (
        CheckConstraint("budget > 0", name="ck_campaigns_budget_positive"),
        CheckConstraint("status IN ('OPEN', 'CLOSED')", name="ck_campaigns_status"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    brand_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    title: Mapped[str] = mapped_column(String(120), nullable=False)

    description: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="",
        server_default="",
    )

    # Whole currency units.
    budget: Mapped[int] = mapped_column(Integer, nullable=False)

    target_niche: Mapped[str | None] = mapped_column(String(80), nullable=True)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=CampaignStatus.OPEN,
        server_default=CampaignStatus.OPEN,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    # ── Relationships ──────────────────────────────────────────────────────

    brand: Mapped["User"] = relationship(  # noqa: F821
        "User",
        back_populates="campaigns",
    )

    matches: Mapped[list["Match"]] = relationship(  # noqa: F821
        "Match",
        back_populates="campaign",
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Campaign id={self.id} brand_id={self.brand_id} status={self.status}>"
