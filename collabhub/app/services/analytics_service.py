"""
services/analytics_service.py - Dashboard metrics for brands and influencers.

Brand estimates are derived from the audience of every influencer with an
ACCEPTED proposal on the brand's campaigns:

  estimated_reach        = Σ followers
  estimated_engagements  = Σ followers × engagement_rate / 100
  estimated_conversions  = round(estimated_engagements × 0.04)
  estimated_revenue      = estimated_conversions × 45
  roi_percent            = (revenue − released_spend) / released_spend × 100
  conversion_rate        = conversions / reach × 100
  cost_per_engagement    = released_spend / engagements

Ratios with a zero denominator are reported as 0. Every ratio is rounded to
two decimal places. ADMIN sees platform-wide figures.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from collabhub.app.models.campaign import Campaign
from collabhub.app.models.match import Match
from collabhub.app.models.proposal import Proposal, ProposalStatus
from collabhub.app.models.transaction import Transaction, TransactionStatus
from collabhub.app.models.user import Role, User
from collabhub.app.services.policy import Actor

CONVERSION_RATE = 0.04
REVENUE_PER_CONVERSION = 45


def _ratio(numerator: float, denominator: float, scale: float = 1) -> float:
    if denominator <= 0:
        return 0
    return round(numerator / denominator * scale, 2)


def _round_half_up(value: float) -> int:
    """2.5 → 3, where round() would give 2."""
    return int(value + 0.5) if value >= 0 else -int(-value + 0.5)


def brand_summary(actor: Actor, session: Session) -> dict:
    campaign_stmt = select(Campaign.id, Campaign.budget)
    if actor.role != Role.ADMIN:
        campaign_stmt = campaign_stmt.where(Campaign.brand_id == actor.user_id)
    campaigns = session.execute(campaign_stmt).all()
    campaign_ids = [row.id for row in campaigns]

    audiences = session.execute(
        select(User.followers, User.engagement_rate)
        .select_from(Proposal)
        .join(Match, Proposal.match_id == Match.id)
        .join(User, Match.influencer_id == User.id)
        .where(
            Proposal.status == ProposalStatus.ACCEPTED,
            Match.campaign_id.in_(campaign_ids),
        )
    ).all() if campaign_ids else []

    transactions = session.execute(
        select(Transaction.amount, Transaction.status)
        .where(Transaction.campaign_id.in_(campaign_ids))
    ).all() if campaign_ids else []

    released_spend = sum(t.amount for t in transactions if t.status == TransactionStatus.RELEASED)
    held_spend = sum(t.amount for t in transactions if t.status == TransactionStatus.HELD)

    reach = sum(a.followers or 0 for a in audiences)
    engagements = sum((a.followers or 0) * (a.engagement_rate or 0) / 100 for a in audiences)
    conversions = _round_half_up(engagements * CONVERSION_RATE)
    revenue = conversions * REVENUE_PER_CONVERSION

    return {
        "totals": {
            "campaigns": len(campaigns),
            "accepted_proposals": len(audiences),
            "total_budget": sum(c.budget for c in campaigns),
            "held_spend": held_spend,
            "released_spend": released_spend,
        },
        "metrics": {
            "estimated_reach": reach,
            "estimated_engagements": _round_half_up(engagements),
            "estimated_conversions": conversions,
            "estimated_revenue": revenue,
            "roi_percent": _ratio(revenue - released_spend, released_spend, 100),
            "conversion_rate": _ratio(conversions, reach, 100),
            "cost_per_engagement": _ratio(released_spend, engagements),
        },
    }


def influencer_summary(actor: Actor, session: Session) -> dict:
    is_admin = actor.role == Role.ADMIN

    tx_stmt = select(Transaction.amount, Transaction.status)
    proposal_stmt = select(Proposal.amount, Proposal.status)
    if not is_admin:
        tx_stmt = tx_stmt.where(Transaction.influencer_id == actor.user_id)
        proposal_stmt = proposal_stmt.join(Match, Proposal.match_id == Match.id).where(
            Match.influencer_id == actor.user_id
        )
    transactions = session.execute(tx_stmt).all()
    proposals = session.execute(proposal_stmt).all()

    profile_views = 0
    if not is_admin:
        profile_views = session.execute(
            select(User.profile_views).where(User.id == actor.user_id)
        ).scalar_one_or_none() or 0

    accepted = [p for p in proposals if p.status == ProposalStatus.ACCEPTED]
    # A proposal counts as sent once it has left DRAFT for SENT or ACCEPTED.
    sent_count = sum(
        1 for p in proposals
        if p.status in (ProposalStatus.SENT, ProposalStatus.ACCEPTED)
    )

    return {
        "totals": {
            "released_earnings": sum(
                t.amount for t in transactions if t.status == TransactionStatus.RELEASED
            ),
            "pending_earnings": sum(
                t.amount for t in transactions if t.status == TransactionStatus.HELD
            ),
            "proposals": len(proposals),
            "accepted_proposals": len(accepted),
            "profile_views": profile_views,
        },
        "metrics": {
            "acceptance_rate": _ratio(len(accepted), sent_count, 100),
            "average_deal_size": _ratio(sum(p.amount for p in accepted), len(accepted)),
        },
    }
