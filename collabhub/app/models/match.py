"""
models/match.py - Match table definition.

A match pairs one influencer with one campaign. It is created either by the
brand directly (invitation) or implicitly when the brand approves an
application. Proposals hang off a match.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from collabhub.app.extensions import db


class Match(db.Model):
    __tablename__ = "matches"

    __table_args__ = (
        # One match per (campaign, influencer) pair.
        UniqueConstraint("campaign_id", "influencer_id", name="uq_matches_campaign_influencer"),
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

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    # ── Relationships ──────────────────────────────────────────────────────

    campaign: Mapped["Campaign"] = relationship(  # noqa: F821
        "Campaign",
        back_populates="matches",
    )

    influencer: Mapped["User"] = relationship("User")  # noqa: F821

    proposals: Mapped[list["Proposal"]] = relationship(  # noqa: F821
        "Proposal",
        back_populates="match",
    )

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<Match id={self.id} "
            f"campaign_id={self.campaign_id} "
            f"influencer_id={self.influencer_id}>"
        )
