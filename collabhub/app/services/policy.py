"""
services/policy.py - Authorization policy and status state machines.

Every ownership/role decision in the domain services goes through
authorize()/require() instead of inline role checks, so one table answers
"may this actor do this to that resource?".

Rules:
  - ADMIN may perform every action.
  - BRAND may act when it owns the campaign involved (`brand_id`).
  - INFLUENCER may act when it is the influencer involved (`influencer_id`).
  - Some actions are closed to one of the two roles entirely, and status
    transitions are further limited to the statuses that role may set.

The state machines are checked separately (check_transition) because a
legal actor can still request an illegal move (e.g. ACCEPTED → DRAFT).

Pure Python: no Flask, no database.
"""

from __future__ import annotations

from dataclasses import dataclass

from collabhub.app.errors import AppError, ErrorCode
from collabhub.app.models.application import ApplicationStatus
from collabhub.app.models.proposal import ProposalStatus
from collabhub.app.models.transaction import TransactionStatus
from collabhub.app.models.user import Role


@dataclass(frozen=True)
class Actor:
    user_id: int
    role: str


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: str = ""


ALLOW = Decision(True)


# action → roles (other than ADMIN) that may attempt it, and which ownership
# key each role must satisfy.
_OWNERSHIP_RULES: dict[str, dict[str, str]] = {
    "campaign.manage":        {Role.BRAND: "brand_id"},
    "match.create":           {Role.BRAND: "brand_id"},
    "match.recommend":        {Role.BRAND: "brand_id"},
    "proposal.create":        {Role.BRAND: "brand_id", Role.INFLUENCER: "influencer_id"},
    "proposal.transition":    {Role.BRAND: "brand_id", Role.INFLUENCER: "influencer_id"},
    "application.transition": {Role.BRAND: "brand_id", Role.INFLUENCER: "influencer_id"},
    "transaction.manage":     {Role.BRAND: "brand_id"},
    "transaction.view":       {Role.BRAND: "brand_id", Role.INFLUENCER: "influencer_id"},
    "media.attach":           {Role.BRAND: "brand_id", Role.INFLUENCER: "influencer_id"},
}

# Statuses each role may request, per transition action.
_TRANSITION_TARGETS: dict[str, dict[str, tuple[str, ...]]] = {
    "proposal.transition": {
        Role.INFLUENCER: (ProposalStatus.DRAFT, ProposalStatus.SENT),
        Role.BRAND:      (ProposalStatus.ACCEPTED, ProposalStatus.REJECTED),
    },
    "application.transition": {
        Role.INFLUENCER: (ApplicationStatus.WITHDRAWN,),
        Role.BRAND:      (ApplicationStatus.APPROVED, ApplicationStatus.REJECTED),
    },
}


def authorize(
        actor: Actor,
        action: str,
        *,
        brand_id: int | None = None,
        influencer_id: int | None = None,
        next_status: str | None = None,
) -> Decision:
    """
    Decides whether `actor` may perform `action` on a resource owned by
    `brand_id` (campaign owner) and/or involving `influencer_id`.
    `next_status` is required for the *.transition actions.
    """
    if action not in _OWNERSHIP_RULES:
        raise ValueError(f"Unknown policy action: {action!r}")

    if actor.role == Role.ADMIN:
        return ALLOW

    ownership_key = _OWNERSHIP_RULES[action].get(actor.role)
    if ownership_key is None:
        return Decision(False, f"{actor.role} accounts cannot perform {action}.")

    owner = brand_id if ownership_key == "brand_id" else influencer_id
    if owner != actor.user_id:
        return Decision(False, "You do not own this resource.")

    targets = _TRANSITION_TARGETS.get(action)
    if targets is not None:
        allowed = targets.get(actor.role, ())
        if next_status not in allowed:
            return Decision(
                False,
                f"{actor.role} may only set status to {' or '.join(allowed)}.",
            )

    return ALLOW


def require(actor: Actor, action: str, **resource) -> None:
    """authorize() that raises AppError(FORBIDDEN, 403) on deny."""
    decision = authorize(actor, action, **resource)
    if not decision.allowed:
        raise AppError(ErrorCode.FORBIDDEN, decision.reason, 403)


def require_role(actor: Actor, *roles: str) -> None:
    if actor.role not in roles:
        raise AppError(
            ErrorCode.FORBIDDEN,
            "Your account role does not permit this action.",
            403,
        )


# ── State machines ─────────────────────────────────────────────────────────

PROPOSAL_TRANSITIONS: dict[str, frozenset[str]] = {
    ProposalStatus.DRAFT:    frozenset({ProposalStatus.SENT}),
    ProposalStatus.SENT:     frozenset({
        ProposalStatus.ACCEPTED,
        ProposalStatus.REJECTED,
        ProposalStatus.DRAFT,
    }),
    ProposalStatus.ACCEPTED: frozenset(),
    ProposalStatus.REJECTED: frozenset(),
}

APPLICATION_TRANSITIONS: dict[str, frozenset[str]] = {
    ApplicationStatus.PENDING:   frozenset({
        ApplicationStatus.APPROVED,
        ApplicationStatus.REJECTED,
        ApplicationStatus.WITHDRAWN,
    }),
    ApplicationStatus.APPROVED:  frozenset(),
    ApplicationStatus.REJECTED:  frozenset(),
    ApplicationStatus.WITHDRAWN: frozenset(),
}

TRANSACTION_TRANSITIONS: dict[str, frozenset[str]] = {
    TransactionStatus.HELD:     frozenset({TransactionStatus.RELEASED, TransactionStatus.REFUNDED}),
    TransactionStatus.RELEASED: frozenset(),
    TransactionStatus.REFUNDED: frozenset(),
}


def check_transition(
        machine: dict[str, frozenset[str]],
        current: str,
        next_status: str,
        entity: str,
) -> None:
    """Raises AppError(INVALID_TRANSITION, 409) unless current → next_status is allowed."""
    if next_status not in machine.get(current, frozenset()):
        raise AppError(
            ErrorCode.INVALID_TRANSITION,
            f"A {entity} cannot move from {current} to {next_status}.",
            409,
            field="status",
        )
