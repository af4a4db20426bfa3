"""
services/scoring.py - Influencer heuristics.

Pure functions shared by the profile update, the admin fraud scan and the
match recommendations. No Flask, no database.
"""

from __future__ import annotations

# Fraud heuristic thresholds.
LARGE_AUDIENCE_FOLLOWERS = 50_000
LOW_ENGAGEMENT_RATE      = 0.5   # percent
POOR_QUALITY_SCORE       = 20

# Recommendation weights.
ENGAGEMENT_WEIGHT        = 0.5
RELEVANCE_WEIGHT         = 0.3
FOLLOWER_QUALITY_WEIGHT  = 0.2
FRAUD_PENALTY            = 25
DEFAULT_FOLLOWER_QUALITY = 40

SCORE_FORMULA = (
    "match_score = engagement*0.5 + relevance*0.3 + follower_quality*0.2 - fraud_penalty"
)


def looks_fraudulent(
        followers: int | None,
        engagement_rate: float | None,
        follower_quality_score: float | None,
) -> bool:
    """
    Flags a large audience that barely engages, or a poor follower-quality
    score. An unassessed quality score counts as perfect (100).
    """
    low_engagement = (
        (followers or 0) >= LARGE_AUDIENCE_FOLLOWERS
        and (engagement_rate or 0) < LOW_ENGAGEMENT_RATE
    )
    quality = 100 if follower_quality_score is None else follower_quality_score
    return low_engagement or quality < POOR_QUALITY_SCORE


def _clamp(value: float, low: float = 0, high: float = 100) -> float:
    return max(low, min(high, value))


def niche_relevance(target_niche: str | None, niche: str | None) -> int:
    target = (target_niche or "").strip().lower()
    if not target:
        return 50
    candidate = (niche or "").strip().lower()
    if not candidate:
        return 20
    if candidate == target:
        return 100
    if candidate in target or target in candidate:
        return 75
    return 30


def match_score(
        *,
        engagement_rate: float | None,
        niche: str | None,
        target_niche: str | None,
        follower_quality_score: float | None,
        is_fraud_flagged: bool,
) -> dict:
    """Returns the score and its components, all on a 0–100 scale."""
    engagement = _clamp(float(engagement_rate or 0))
    relevance = niche_relevance(target_niche, niche)
    quality = _clamp(float(
        DEFAULT_FOLLOWER_QUALITY if follower_quality_score is None else follower_quality_score
    ))
    base = (
        engagement * ENGAGEMENT_WEIGHT
        + relevance * RELEVANCE_WEIGHT
        + quality * FOLLOWER_QUALITY_WEIGHT
    )
    penalty = FRAUD_PENALTY if is_fraud_flagged else 0
    return {
        "engagement": engagement,
        "relevance": relevance,
        "follower_quality": quality,
        "match_score": max(0.0, round(base - penalty, 2)),
    }
