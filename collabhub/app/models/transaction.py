"""
models/transaction.py - Escrow transaction table definition.

A transaction is created HELD by the paying brand and ends either RELEASED
(paid out to the influencer, `released_at` set) or REFUNDED.

FK policy: proposal_id ON DELETE SET NULL - the money record outlives the
proposal that justified it.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from collabhub.app.extensions import db


class TransactionStatus:
    HELD     = "HELD"
    RELEASED = "RELEASED"
    REFUNDED = "REFUNDED"


class Transaction(db.Model):
    __tablename__ = "transactions"

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_transactions_amount_positive"),
        CheckConstraint(
            "status IN ('HELD', 'RELEASED', 'REFUNDED')",
            name="ck_transactions_status",
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

    proposal_id: Mapped[int | None] = mapped_column(
        ForeignKey("proposals.id", ondelete="SET NULL"),
        nullable=True,
    )

    amount: Mapped[int] = mapped_column(Integer, nullable=False)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=TransactionStatus.HELD,
        server_default=TransactionStatus.HELD,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    released_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # ── Relationships ──────────────────────────────────────────────────────

    campaign: Mapped["Campaign"] = relationship("Campaign")  # noqa: F821
    influencer: Mapped["User"] = relationship("User")  # noqa: F821
    proposal: Mapped["Proposal"] = relationship("Proposal")  # noqa: F821

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<Transaction id={self.id} "
            f"campaign_id={self.campaign_id} "
            f"amount={self.amount} "
            f"status={self.status}>"
        )
