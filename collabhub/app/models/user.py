"""
models/user.py - User table definition.

One table for all three account kinds; `role` decides which columns are
meaningful. The influencer metrics (niche, followers, engagement_rate,
follower_quality_score) stay NULL/zero for brands and admins.
No business logic. No imports from services or routes.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, Float, Integer, String, false, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from collabhub.app.extensions import db


class Role:
    BRAND      = "BRAND"
    INFLUENCER = "INFLUENCER"
    ADMIN      = "ADMIN"

    ALL        = (BRAND, INFLUENCER, ADMIN)
    # Roles a visitor may pick at signup. ADMIN accounts are provisioned directly.
    SELF_SERVE = (BRAND, INFLUENCER)


class User(db.Model):
    __tablename__ = "users"

    __table_args__ = (
        CheckConstraint(
            "role IN ('BRAND', 'INFLUENCER', 'ADMIN')",
            name="ck_users_role",
        ),
        CheckConstraint("email LIKE '%@%'", name="ck_users_email_format"),
        CheckConstraint("followers >= 0", name="ck_users_followers_nonnegative"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    name: Mapped[str] = mapped_column(String(80), nullable=False)

    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
    )

    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    role: Mapped[str] = mapped_column(String(20), nullable=False, index=True)

    # ── Influencer profile ─────────────────────────────────────────────────
    niche: Mapped[str | None] = mapped_column(String(80), nullable=True)

    followers: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default="0",
    )

    # Percent, 0–100.
    engagement_rate: Mapped[float] = mapped_column(
        Float,
        nullable=False,
        default=0.0,
        server_default="0",
    )

    # 0–100. NULL means "never assessed"; consumers pick their own fallback.
    follower_quality_score: Mapped[float | None] = mapped_column(Float, nullable=True)

    is_fraud_flagged: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=false(),
    )

    profile_views: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default="0",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    # ── Relationships ──────────────────────────────────────────────────────

    refresh_tokens: Mapped[list["RefreshToken"]] = relationship(  # noqa: F821
        "RefreshToken",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    campaigns: Mapped[list["Campaign"]] = relationship(  # noqa: F821
        "Campaign",
        back_populates="brand",
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<User id={self.id} email={self.email!r} role={self.role}>"
