"""
Next-move scoring.

Each action gets four sub-scores, all fractions in [0, 1]:
- urgency: how soon the action is due
- stall_risk: whether the relationship is cooling off
- value: how important the relationship is
- effort_bias: preference for quick wins

The breakdown holds each sub-score multiplied by its configured weight, and
``total`` is their sum. With the default weights the total runs 0-100.

Scores are recomputed per request and never persisted as the system of
record.
"""

from dataclasses import dataclass
from datetime import date
from typing import Any, Mapping

from ..models.action import Action, ActionLane
from ..models.decision_state import DecisionState, ScoringWeights
from ..models.relationship import MomentumTrend, RelationshipTier
from .lanes import assign_relationship_lane, coerce_decision_state

DEFAULT_WEIGHTS = ScoringWeights()

# Urgency by days until due
URGENCY_OVERDUE = 1.0
URGENCY_DUE_SOON = 0.75  # <= 2 days
URGENCY_DUE_THIS_WEEK = 0.5  # <= 7 days
URGENCY_FAR_OUT = 0.125

# Stall risk contributions, capped at 1.0
STALL_DECLINING_MOMENTUM = 0.6
STALL_PAST_CADENCE = 0.4

TIER_VALUE: dict[RelationshipTier, float] = {
    RelationshipTier.INNER: 1.0,
    RelationshipTier.ACTIVE: 0.5,
    RelationshipTier.WARM: 0.25,
    RelationshipTier.BACKGROUND: 0.25,
}
DEFAULT_VALUE = 0.25

# Effort bias by estimated minutes
EFFORT_QUICK = 1.0  # <= 30 min
EFFORT_MEDIUM = 2 / 3  # <= 120 min
EFFORT_LONG = 1 / 3  # longer, or no estimate

# Thresholds for the human-readable reason
_HIGH_URGENCY = URGENCY_DUE_SOON
_HIGH_VALUE = 0.5
_LOW_EFFORT = EFFORT_MEDIUM


@dataclass(frozen=True)
class ScoreBreakdown:
    """Weighted sub-scores of one action and their sum."""

    urgency: float
    stall_risk: float
    value: float
    effort_bias: float
    total: float

    def to_dict(self) -> dict[str, float]:
        return {
            'urgency': self.urgency,
            'stall_risk': self.stall_risk,
            'value': self.value,
            'effort_bias': self.effort_bias,
            'total': self.total,
        }


@dataclass(frozen=True)
class RelationshipScore:
    """
    Lane and relationship-level sub-scores (fractions) for one relationship.

    ``degraded`` is set when the decision state was missing or incomplete.
    """

    relationship_id: str | None
    lane: ActionLane
    lane_reason: str
    stall_risk: float
    value: float
    degraded: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            'relationship_id': self.relationship_id,
            'lane': self.lane.value,
            'lane_reason': self.lane_reason,
            'stall_risk': self.stall_risk,
            'value': self.value,
            'degraded': self.degraded,
        }


def urgency_subscore(due_date: date, today: date) -> float:
    days_until_due = (due_date - today).days
    if days_until_due < 0:
        return URGENCY_OVERDUE
    if days_until_due <= 2:
        return URGENCY_DUE_SOON
    if days_until_due <= 7:
        return URGENCY_DUE_THIS_WEEK
    return URGENCY_FAR_OUT


def stall_risk_subscore(state: DecisionState | None) -> float:
    if state is None:
        return 0.0
    score = 0.0
    if state.momentum_trend == MomentumTrend.DECLINING:
        score += STALL_DECLINING_MOMENTUM
    if state.past_cadence:
        score += STALL_PAST_CADENCE
    return min(score, 1.0)


def value_subscore(state: DecisionState | None) -> float:
    if state is None or state.tier is None:
        return DEFAULT_VALUE
    return TIER_VALUE.get(state.tier, DEFAULT_VALUE)


def effort_bias_subscore(estimated_minutes: int | None) -> float:
    if not estimated_minutes:
        return EFFORT_LONG
    if estimated_minutes <= 30:
        return EFFORT_QUICK
    if estimated_minutes <= 120:
        return EFFORT_MEDIUM
    return EFFORT_LONG


def classify_and_score(
    state: DecisionState | Mapping[str, Any] | None,
    today: date,
) -> RelationshipScore:
    """
    Assign a lane and compute relationship-level sub-scores.

    Never raises on bad input: a missing or malformed state yields ON_DECK
    with the default low value and no stall risk.

    Args:
        state: Decision state (model or raw mapping), or None
        today: Reference day

    Returns:
        RelationshipScore
    """
    parsed = coerce_decision_state(state)
    assignment = assign_relationship_lane(parsed, today)

    if assignment.degraded:
        return RelationshipScore(
            relationship_id=parsed.relationship_id if parsed else None,
            lane=assignment.lane,
            lane_reason=assignment.reason,
            stall_risk=0.0,
            value=DEFAULT_VALUE,
            degraded=True,
        )

    return RelationshipScore(
        relationship_id=parsed.relationship_id,
        lane=assignment.lane,
        lane_reason=assignment.reason,
        stall_risk=stall_risk_subscore(parsed),
        value=value_subscore(parsed),
    )


def score_action(
    action: Action,
    relationship_score: RelationshipScore | None,
    today: date,
    weights: ScoringWeights | None = None,
) -> ScoreBreakdown:
    """
    Compute the weighted score breakdown for an action.

    Args:
        action: The pending action
        relationship_score: Output of classify_and_score for the action's
            relationship, or None for unattached actions
        today: Reference day
        weights: Sub-score weights (defaults to 40/25/20/15)

    Returns:
        ScoreBreakdown with weighted sub-scores and total
    """
    w = weights or DEFAULT_WEIGHTS

    urgency = urgency_subscore(action.due_date, today) * w.urgency
    stall_risk = (relationship_score.stall_risk if relationship_score else 0.0) * w.stall_risk
    value = (relationship_score.value if relationship_score else DEFAULT_VALUE) * w.value
    effort_bias = effort_bias_subscore(action.estimated_minutes) * w.effort_bias

    urgency, stall_risk, value, effort_bias = (
        round(urgency, 2),
        round(stall_risk, 2),
        round(value, 2),
        round(effort_bias, 2),
    )
    return ScoreBreakdown(
        urgency=urgency,
        stall_risk=stall_risk,
        value=value,
        effort_bias=effort_bias,
        total=round(urgency + stall_risk + value + effort_bias, 2),
    )


def _fraction(points: float, weight: float) -> float:
    return points / weight if weight else 0.0


def score_reason(breakdown: ScoreBreakdown, weights: ScoringWeights | None = None) -> str:
    """Human-readable explanation, e.g. 'Score: 85 (high urgency, low effort)'."""
    w = weights or DEFAULT_WEIGHTS
    reasons = []
    # Small tolerance: breakdown values are rounded to 2 places
    if _fraction(breakdown.urgency, w.urgency) >= _HIGH_URGENCY - 1e-3:
        reasons.append('high urgency')
    if breakdown.stall_risk > 0:
        reasons.append('stall risk')
    if _fraction(breakdown.value, w.value) >= _HIGH_VALUE - 1e-3:
        reasons.append('high value relationship')
    if _fraction(breakdown.effort_bias, w.effort_bias) >= _LOW_EFFORT - 1e-3:
        reasons.append('low effort')

    total = f'{breakdown.total:g}'
    if reasons:
        return f"Score: {total} ({', '.join(reasons)})"
    return f'Score: {total}'
