"""
Signal aggregation: turns raw relationship/action/email records into the
inputs the classifiers read.

Two outputs share one pass over the records:
- DecisionState: consumed by the lane classifier and scorer
- RelationshipSignals: consumed by the urgency/value classifier (display only)

Everything here is a pure function of its arguments. "Today" is always
passed in; nothing reads the wall clock.
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Iterable

from ..models.action import Action, ActionState
from ..models.decision_state import DecisionState
from ..models.relationship import (
    Cadence,
    EmailSignal,
    Relationship,
    RelationshipStage,
    RelationshipTier,
)
from ..models.snapshot import UserSnapshot

CADENCE_DAYS: dict[Cadence, int] = {
    Cadence.FREQUENT: 7,
    Cadence.MODERATE: 14,
    Cadence.INFREQUENT: 30,
    Cadence.AD_HOC: 90,
}

# Stand-in for "never contacted" in the urgency/value input
UNKNOWN_DAYS_SINCE_CONTACT = 999

DEFAULT_EMAIL_LOOKBACK_DAYS = 30

_RESPONSE_RATE_STATES = frozenset({ActionState.DONE, ActionState.REPLIED, ActionState.SENT})


@dataclass(frozen=True)
class RelationshipSignals:
    """Input to the urgency/value classifier for one relationship."""

    relationship_id: str
    days_since_last_interaction: int
    overdue_actions_count: int
    has_urgent_email_sentiment: bool
    has_open_loops: bool
    tier: RelationshipTier | None
    response_rate: float  # 0-1, share of touched actions that got a reply
    has_deal_potential: bool


@dataclass
class AggregatedSignals:
    """Per-relationship outputs of one aggregation pass over a snapshot."""

    decision_states: dict[str, DecisionState] = field(default_factory=dict)
    signals: dict[str, RelationshipSignals] = field(default_factory=dict)


def resolve_cadence_days(relationship: Relationship) -> int | None:
    """Explicit cadence_days wins; otherwise map the cadence enum."""
    if relationship.cadence_days:
        return relationship.cadence_days
    if relationship.cadence is not None:
        return CADENCE_DAYS.get(relationship.cadence, 30)
    return None


def last_contact_date(relationship: Relationship, actions: Iterable[Action]) -> date | None:
    """
    Date of the last interaction.

    Falls back to the most recent completion among terminal actions when the
    relationship carries no last_interaction_at.
    """
    if relationship.last_interaction_at is not None:
        return relationship.last_interaction_at.date()

    completed = [
        a.completed_at for a in actions if a.is_terminal and a.completed_at is not None
    ]
    if not completed:
        return None
    return max(completed).date()


def _days_between(earlier: date | None, today: date) -> int | None:
    if earlier is None:
        return None
    return max((today - earlier).days, 0)


def _own_actions(relationship: Relationship, actions: Iterable[Action]) -> list[Action]:
    return [a for a in actions if a.relationship_id == relationship.id]


def aggregate_decision_state(
    relationship: Relationship,
    actions: Iterable[Action],
    today: date,
) -> DecisionState:
    """
    Precompute the decision state for one relationship.

    Args:
        relationship: The relationship record
        actions: Actions for this relationship (any state; others are ignored)
        today: Reference day

    Returns:
        DecisionState with counts, flags and cadence resolved
    """
    own = _own_actions(relationship, actions)
    pending = [a for a in own if a.is_pending]

    return DecisionState(
        relationship_id=relationship.id,
        user_id=relationship.user_id,
        days_since_last_interaction=_days_between(last_contact_date(relationship, own), today),
        pending_actions_count=len(pending),
        overdue_actions_count=sum(1 for a in pending if a.due_date < today),
        awaiting_response=any(a.state == ActionState.SENT for a in pending),
        earliest_relevant_insight_date=relationship.earliest_relevant_insight_date,
        cadence_days=resolve_cadence_days(relationship),
        tier=relationship.tier,
        next_touch_due_at=relationship.next_touch_due_at,
        momentum_score=relationship.momentum_score,
        momentum_trend=relationship.momentum_trend,
        next_move_action_id=relationship.next_move_action_id,
    )


def response_rate(actions: Iterable[Action]) -> float:
    """Replied actions over actions that were sent, replied to or done."""
    touched = [a for a in actions if a.state in _RESPONSE_RATE_STATES]
    if not touched:
        return 0.0
    replied = sum(1 for a in touched if a.state == ActionState.REPLIED)
    return replied / len(touched)


def aggregate_signals(
    relationship: Relationship,
    actions: Iterable[Action],
    email_signals: Iterable[EmailSignal],
    today: date,
    email_lookback_days: int = DEFAULT_EMAIL_LOOKBACK_DAYS,
) -> RelationshipSignals:
    """
    Collect the urgency/value input for one relationship.

    Email signals older than ``email_lookback_days`` are ignored.
    """
    own = _own_actions(relationship, actions)
    cutoff = today - timedelta(days=email_lookback_days)
    recent_emails = [
        s
        for s in email_signals
        if s.relationship_id == relationship.id and s.received_at.date() >= cutoff
    ]

    days_since = _days_between(last_contact_date(relationship, own), today)

    return RelationshipSignals(
        relationship_id=relationship.id,
        days_since_last_interaction=(
            days_since if days_since is not None else UNKNOWN_DAYS_SINCE_CONTACT
        ),
        overdue_actions_count=sum(1 for a in own if a.is_pending and a.due_date < today),
        has_urgent_email_sentiment=any(
            (s.sentiment or '').lower() == 'urgent' for s in recent_emails
        ),
        has_open_loops=any(bool(s.open_loops) for s in recent_emails),
        tier=relationship.tier,
        response_rate=response_rate(own),
        has_deal_potential=relationship.relationship_state == RelationshipStage.OPPORTUNITY,
    )


def aggregate_snapshot(
    snapshot: UserSnapshot,
    today: date,
    email_lookback_days: int = DEFAULT_EMAIL_LOOKBACK_DAYS,
) -> AggregatedSignals:
    """Aggregate decision states and urgency/value signals for every relationship."""
    actions_by_rel = snapshot.actions_by_relationship()
    emails_by_rel = snapshot.signals_by_relationship()

    result = AggregatedSignals()
    for relationship in snapshot.relationships:
        actions = actions_by_rel.get(relationship.id, [])
        result.decision_states[relationship.id] = aggregate_decision_state(
            relationship, actions, today
        )
        result.signals[relationship.id] = aggregate_signals(
            relationship,
            actions,
            emails_by_rel.get(relationship.id, []),
            today,
            email_lookback_days=email_lookback_days,
        )
    return result
