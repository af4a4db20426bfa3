"""
models/media_asset.py - MediaAsset table definition.

Metadata for a file already uploaded to external storage (the upload itself
happens client-side; only the resulting URL and storage id are recorded).
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from collabhub.app.extensions import db


class MediaAsset(db.Model):
    __tablename__ = "media_assets"

    __table_args__ = (
        CheckConstraint(
            "resource_type IN ('image', 'video', 'raw')",
            name="ck_media_assets_resource_type",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    campaign_id: Mapped[int | None] = mapped_column(
        ForeignKey("campaigns.id", ondelete="SET NULL"),
        nullable=True,
    )

    url: Mapped[str] = mapped_column(String(1000), nullable=False)
    public_id: Mapped[str] = mapped_column(String(255), nullable=False)
    resource_type: Mapped[str] = mapped_column(String(10), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    campaign: Mapped["Campaign"] = relationship("Campaign")  # noqa: F821

    def __repr__(self) -> str:  # pragma: no cover
        return f"<MediaAsset id={self.id} user_id={self.user_id} type={self.resource_type}>"
