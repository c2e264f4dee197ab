"""
Decision state and scoring weight models.

DecisionState is the precomputed per-relationship snapshot the lane
classifier and scorer read. It is refreshed whenever relationship signals
change and is never mutated by the scoring components.
"""

from datetime import date

from pydantic import BaseModel, Field

from .relationship import MomentumTrend, RelationshipTier


class DecisionState(BaseModel):
    """
    Precomputed signals for one relationship.

    The pending and overdue counts are required for a confident lane
    decision. When either is missing the state is treated as incomplete and
    the relationship is classified into the lowest-priority lane.
    """

    relationship_id: str
    user_id: str | None = None

    # Precomputed metrics
    days_since_last_interaction: int | None = Field(default=None, ge=0)
    pending_actions_count: int | None = Field(default=None, ge=0)
    overdue_actions_count: int | None = Field(default=None, ge=0)
    awaiting_response: bool = False
    earliest_relevant_insight_date: date | None = None

    # Relationship metadata
    cadence_days: int | None = Field(default=None, ge=1)
    tier: RelationshipTier | None = None
    next_touch_due_at: date | None = None
    momentum_score: float | None = None
    momentum_trend: MomentumTrend = MomentumTrend.UNKNOWN

    next_move_action_id: str | None = None

    @property
    def is_complete(self) -> bool:
        """True when the counts needed for lane assignment are present."""
        return self.pending_actions_count is not None and self.overdue_actions_count is not None

    @property
    def past_cadence(self) -> bool:
        """True when the last contact is older than the cadence allows."""
        return (
            self.days_since_last_interaction is not None
            and self.cadence_days is not None
            and self.days_since_last_interaction > self.cadence_days
        )


class ScoringWeights(BaseModel):
    """
    Maximum points each sub-score contributes to an action's total.

    Sub-scores are fractions in [0, 1]; the weighted sum is the total.
    """

    urgency: float = Field(default=40.0, ge=0)
    stall_risk: float = Field(default=25.0, ge=0)
    value: float = Field(default=20.0, ge=0)
    effort_bias: float = Field(default=15.0, ge=0)

    @property
    def max_total(self) -> float:
        return self.urgency + self.stall_risk + self.value + self.effort_bias
