"""
models/proposal.py - Proposal table definition.

A priced offer of deliverables attached to a match. The influencer drafts
and sends; the brand accepts or rejects. Only an ACCEPTED proposal can back
an escrow transaction.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from collabhub.app.extensions import db


class ProposalStatus:
    DRAFT    = "DRAFT"
    SENT     = "SENT"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"

    ALL = (DRAFT, SENT, ACCEPTED, REJECTED)


class Proposal(db.Model):
    __tablename__ = "proposals"

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_proposals_amount_positive"),
        CheckConstraint(
            "status IN ('DRAFT', 'SENT', 'ACCEPTED', 'REJECTED')",
            name="ck_proposals_status",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    match_id: Mapped[int] = mapped_column(
        ForeignKey("matches.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    deliverables: Mapped[str] = mapped_column(String(500), nullable=False)

    amount: Mapped[int] = mapped_column(Integer, nullable=False)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=ProposalStatus.DRAFT,
        server_default=ProposalStatus.DRAFT,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    # ── Relationships ──────────────────────────────────────────────────────

    match: Mapped["Match"] = relationship(  # noqa: F821
        "Match",
        back_populates="proposals",
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Proposal id={self.id} match_id={self.match_id} status={self.status}>"
