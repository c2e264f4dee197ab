"""
Urgency/value classifier for the 2x2 relationship matrix.

Produces a qualitative label such as "High urgency, high value relationship".
The label is informational: nothing in lane assignment or action scoring
reads it.
"""

from dataclasses import dataclass
from enum import Enum

from ..models.relationship import RelationshipTier
from .signals import RelationshipSignals

# Score at or above which a dimension is "high"
HIGH_THRESHOLD = 50

# (days strictly greater than, points), checked top-down
_DAYS_SINCE_CONTACT_POINTS = (
    (30, 50),
    (14, 40),
    (7, 30),
    (3, 20),
    (0, 10),
)

_TIER_POINTS = {
    RelationshipTier.INNER: 40,
    RelationshipTier.ACTIVE: 30,
    RelationshipTier.WARM: 20,
    RelationshipTier.BACKGROUND: 10,
}
_UNSET_TIER_POINTS = 15


class Level(str, Enum):
    LOW = 'low'
    HIGH = 'high'


class Quadrant(str, Enum):
    HIGH_HIGH = 'high-high'
    HIGH_LOW = 'high-low'
    LOW_HIGH = 'low-high'
    LOW_LOW = 'low-low'


@dataclass(frozen=True)
class UrgencyValueResult:
    """Classification of one relationship on the urgency/value matrix."""

    relationship_id: str
    urgency: Level
    value: Level
    urgency_score: float  # 0-100, for debugging
    value_score: float  # 0-100, for debugging
    quadrant: Quadrant
    label: str

    def to_dict(self) -> dict:
        return {
            'relationship_id': self.relationship_id,
            'urgency': self.urgency.value,
            'value': self.value.value,
            'urgency_score': self.urgency_score,
            'value_score': self.value_score,
            'quadrant': self.quadrant.value,
            'label': self.label,
        }


def urgency_score(signals: RelationshipSignals) -> float:
    """
    Urgency points (0-100).

    - Days since last interaction: 0-50
    - Overdue actions: 10 each, capped at 30
    - Urgent email sentiment: 15; open loops: 5
    """
    score = 0.0
    for days, points in _DAYS_SINCE_CONTACT_POINTS:
        if signals.days_since_last_interaction > days:
            score += points
            break

    score += min(signals.overdue_actions_count * 10, 30)

    if signals.has_urgent_email_sentiment:
        score += 15
    if signals.has_open_loops:
        score += 5
    return score


def value_score(signals: RelationshipSignals) -> float:
    """
    Value points (0-100).

    - Tier: 10-40 (15 when unset)
    - Response rate: 0-30
    - Deal potential: 30
    """
    score = float(_TIER_POINTS.get(signals.tier, _UNSET_TIER_POINTS))
    score += min(max(signals.response_rate, 0.0), 1.0) * 30
    if signals.has_deal_potential:
        score += 30
    return score


def classify_urgency(signals: RelationshipSignals) -> Level:
    return Level.HIGH if urgency_score(signals) >= HIGH_THRESHOLD else Level.LOW


def classify_value(signals: RelationshipSignals) -> Level:
    return Level.HIGH if value_score(signals) >= HIGH_THRESHOLD else Level.LOW


def classify_urgency_value(signals: RelationshipSignals) -> UrgencyValueResult:
    """Classify a relationship into a quadrant with a human-readable label."""
    u_score = urgency_score(signals)
    v_score = value_score(signals)
    urgency = Level.HIGH if u_score >= HIGH_THRESHOLD else Level.LOW
    value = Level.HIGH if v_score >= HIGH_THRESHOLD else Level.LOW

    quadrant = Quadrant(f'{urgency.value}-{value.value}')
    label = f'{urgency.value.capitalize()} urgency, {value.value} value relationship'

    return UrgencyValueResult(
        relationship_id=signals.relationship_id,
        urgency=urgency,
        value=value,
        urgency_score=u_score,
        value_score=v_score,
        quadrant=quadrant,
        label=label,
    )
