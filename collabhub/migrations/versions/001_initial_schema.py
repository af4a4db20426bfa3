"""Initial schema - all tables, constraints, and indexes.

Revision: 001_initial_schema
Created:  2026-10-17

Creates the complete CollabHub v1 schema.

Append-only:
  This file must NEVER be edited after it has been applied to any database.
  If a schema change is required, create a NEW migration file.

Status and role columns are VARCHAR + CHECK rather than PostgreSQL enum
types, so the same schema runs on SQLite for tests.

Creation order (FK dependencies):
  users → refresh_tokens, campaigns → matches, applications → proposals
  → transactions, media_assets; audit_logs has no FKs.

ON DELETE policies:
  refresh_tokens.user_id               → CASCADE   (tokens owned by user)
  refresh_tokens.replaced_by_token_id  → SET NULL
  campaigns.brand_id                   → RESTRICT
  matches.*, applications.*            → RESTRICT
  proposals.match_id                   → CASCADE   (proposals owned by match)
  transactions.campaign_id/influencer  → RESTRICT
  transactions.proposal_id             → SET NULL
  media_assets.user_id                 → CASCADE
  media_assets.campaign_id             → SET NULL
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# ── Alembic revision identifiers ──────────────────────────────────────────
revision: str = "001_initial_schema"
down_revision: str | None = None      # first migration - no parent
branch_labels: tuple | None = None
depends_on: tuple | None = None


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.func.now(),
    )


def upgrade() -> None:

    # ── users ──────────────────────────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(80), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column("niche", sa.String(80), nullable=True),
        sa.Column("followers", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("engagement_rate", sa.Float(), nullable=False, server_default="0"),
        sa.Column("follower_quality_score", sa.Float(), nullable=True),
        sa.Column("is_fraud_flagged", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("profile_views", sa.Integer(), nullable=False, server_default="0"),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("email", name="uq_users_email"),
        sa.CheckConstraint("role IN ('BRAND', 'INFLUENCER', 'ADMIN')", name="ck_users_role"),
        sa.CheckConstraint("email LIKE '%@%'", name="ck_users_email_format"),
        sa.CheckConstraint("followers >= 0", name="ck_users_followers_nonnegative"),
    )
    op.create_index("idx_users_role", "users", ["role"])

    # ── refresh_tokens ─────────────────────────────────────────────────────
    # Only the SHA-256 hex digest of each token is stored.
    op.create_table(
        "refresh_tokens",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE", name="fk_refresh_tokens_user"),
            nullable=False,
        ),
        sa.Column("token_hash", sa.String(255), nullable=False),
        sa.Column(
            "issued_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "replaced_by_token_id",
            sa.Integer(),
            sa.ForeignKey(
                "refresh_tokens.id",
                ondelete="SET NULL",
                name="fk_refresh_tokens_replaced_by",
            ),
            nullable=True,
        ),
        sa.PrimaryKeyConstraint("id", name="pk_refresh_tokens"),
        sa.UniqueConstraint("token_hash", name="uq_refresh_tokens_hash"),
    )
    op.create_index("idx_refresh_tokens_user", "refresh_tokens", ["user_id"])

    # ── campaigns ──────────────────────────────────────────────────────────
    op.create_table(
        "campaigns",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column(
            "brand_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="RESTRICT", name="fk_campaigns_brand"),
            nullable=False,
        ),
        sa.Column("title", sa.String(120), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("budget", sa.Integer(), nullable=False),
        sa.Column("target_niche", sa.String(80), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="OPEN"),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_campaigns"),
        sa.CheckConstraint("budget > 0", name="ck_campaigns_budget_positive"),
        sa.CheckConstraint("status IN ('OPEN', 'CLOSED')", name="ck_campaigns_status"),
    )
    op.create_index("idx_campaigns_brand", "campaigns", ["brand_id"])

    # ── matches ────────────────────────────────────────────────────────────
    op.create_table(
        "matches",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column(
            "campaign_id",
            sa.Integer(),
            sa.ForeignKey("campaigns.id", ondelete="RESTRICT", name="fk_matches_campaign"),
            nullable=False,
        ),
        sa.Column(
            "influencer_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="RESTRICT", name="fk_matches_influencer"),
            nullable=False,
        ),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_matches"),
        sa.UniqueConstraint(
            "campaign_id", "influencer_id", name="uq_matches_campaign_influencer",
        ),
    )
    op.create_index("idx_matches_campaign", "matches", ["campaign_id"])
    op.create_index("idx_matches_influencer", "matches", ["influencer_id"])

    # ── applications ───────────────────────────────────────────────────────
    op.create_table(
        "applications",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column(
            "campaign_id",
            sa.Integer(),
            sa.ForeignKey("campaigns.id", ondelete="RESTRICT", name="fk_applications_campaign"),
            nullable=False,
        ),
        sa.Column(
            "influencer_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="RESTRICT", name="fk_applications_influencer"),
            nullable=False,
        ),
        sa.Column("proposal_message", sa.Text(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="PENDING"),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_applications"),
        sa.UniqueConstraint(
            "campaign_id", "influencer_id", name="uq_applications_campaign_influencer",
        ),
        sa.CheckConstraint(
            "status IN ('PENDING', 'APPROVED', 'REJECTED', 'WITHDRAWN')",
            name="ck_applications_status",
        ),
    )
    op.create_index("idx_applications_campaign", "applications", ["campaign_id"])
    op.create_index("idx_applications_influencer", "applications", ["influencer_id"])

    # ── proposals ──────────────────────────────────────────────────────────
    op.create_table(
        "proposals",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column(
            "match_id",
            sa.Integer(),
            sa.ForeignKey("matches.id", ondelete="CASCADE", name="fk_proposals_match"),
            nullable=False,
        ),
        sa.Column("deliverables", sa.String(500), nullable=False),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="DRAFT"),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_proposals"),
        sa.CheckConstraint("amount > 0", name="ck_proposals_amount_positive"),
        sa.CheckConstraint(
            "status IN ('DRAFT', 'SENT', 'ACCEPTED', 'REJECTED')",
            name="ck_proposals_status",
        ),
    )
    op.create_index("idx_proposals_match", "proposals", ["match_id"])

    # ── transactions ───────────────────────────────────────────────────────
    op.create_table(
        "transactions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column(
            "campaign_id",
            sa.Integer(),
            sa.ForeignKey("campaigns.id", ondelete="RESTRICT", name="fk_transactions_campaign"),
            nullable=False,
        ),
        sa.Column(
            "influencer_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="RESTRICT", name="fk_transactions_influencer"),
            nullable=False,
        ),
        sa.Column(
            "proposal_id",
            sa.Integer(),
            sa.ForeignKey("proposals.id", ondelete="SET NULL", name="fk_transactions_proposal"),
            nullable=True,
        ),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="HELD"),
        _created_at(),
        sa.Column("released_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_transactions"),
        sa.CheckConstraint("amount > 0", name="ck_transactions_amount_positive"),
        sa.CheckConstraint(
            "status IN ('HELD', 'RELEASED', 'REFUNDED')",
            name="ck_transactions_status",
        ),
    )
    op.create_index("idx_transactions_campaign", "transactions", ["campaign_id"])
    op.create_index("idx_transactions_influencer", "transactions", ["influencer_id"])

    # ── media_assets ───────────────────────────────────────────────────────
    op.create_table(
        "media_assets",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE", name="fk_media_assets_user"),
            nullable=False,
        ),
        sa.Column(
            "campaign_id",
            sa.Integer(),
            sa.ForeignKey("campaigns.id", ondelete="SET NULL", name="fk_media_assets_campaign"),
            nullable=True,
        ),
        sa.Column("url", sa.String(1000), nullable=False),
        sa.Column("public_id", sa.String(255), nullable=False),
        sa.Column("resource_type", sa.String(10), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_media_assets"),
        sa.CheckConstraint(
            "resource_type IN ('image', 'video', 'raw')",
            name="ck_media_assets_resource_type",
        ),
    )
    op.create_index("idx_media_assets_user", "media_assets", ["user_id"])

    # ── audit_logs ─────────────────────────────────────────────────────────
    # actor_id is deliberately not a FK: audit rows outlive deleted users.
    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("actor_id", sa.Integer(), nullable=True),
        sa.Column("action", sa.String(100), nullable=False),
        sa.Column("entity_type", sa.String(50), nullable=False),
        sa.Column("entity_id", sa.String(64), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column("ip_address", sa.String(64), nullable=True),
        sa.Column("user_agent", sa.String(512), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_audit_logs"),
    )
    op.create_index("idx_audit_logs_actor", "audit_logs", ["actor_id"])
    op.create_index("idx_audit_logs_action", "audit_logs", ["action"])
    op.create_index("idx_audit_logs_created", "audit_logs", ["created_at"])


def downgrade() -> None:
    """
    Drop everything created in upgrade(), in reverse dependency order.
    For local development resets only; prefer corrective migrations.
    """
    op.drop_index("idx_audit_logs_created", table_name="audit_logs")
    op.drop_index("idx_audit_logs_action", table_name="audit_logs")
    op.drop_index("idx_audit_logs_actor", table_name="audit_logs")
    op.drop_table("audit_logs")

    op.drop_index("idx_media_assets_user", table_name="media_assets")
    op.drop_table("media_assets")

    op.drop_index("idx_transactions_influencer", table_name="transactions")
    op.drop_index("idx_transactions_campaign", table_name="transactions")
    op.drop_table("transactions")

    op.drop_index("idx_proposals_match", table_name="proposals")
    op.drop_table("proposals")

    op.drop_index("idx_applications_influencer", table_name="applications")
    op.drop_index("idx_applications_campaign", table_name="applications")
    op.drop_table("applications")

    op.drop_index("idx_matches_influencer", table_name="matches")
    op.drop_index("idx_matches_campaign", table_name="matches")
    op.drop_table("matches")

    op.drop_index("idx_campaigns_brand", table_name="campaigns")
    op.drop_table("campaigns")

    op.drop_index("idx_refresh_tokens_user", table_name="refresh_tokens")
    op.drop_table("refresh_tokens")

    op.drop_index("idx_users_role", table_name="users")
    op.drop_table("users")
