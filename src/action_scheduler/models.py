"""
Proposal and placement models for the Action Scheduler.

ProposedAction is what the caller wants to schedule; ScheduledAction is where
it landed. A batch result keeps the input order, one placement per proposal.
"""

from datetime import date
from typing import Any

from pydantic import BaseModel, Field

from decision_engine.models.action import ActionType


class ProposedAction(BaseModel):
    """A new action the caller wants placed on the calendar."""

    proposed_date: date = Field(..., description='Preferred due date')
    action_type: ActionType = Field(default=ActionType.FOLLOW_UP)
    description: str | None = Field(default=None)
    estimated_minutes: int | None = Field(default=None, ge=0)


class ScheduledAction(BaseModel):
    """Where one proposal was placed."""

    scheduled_date: date
    proposed_date: date
    fell_back: bool = Field(
        default=False,
        description='True when no day within the horizon had capacity',
    )
    action_id: str | None = Field(
        default=None, description='Set when the action was persisted'
    )


class ScheduleResult(BaseModel):
    """Outcome of one batch for one relationship."""

    user_id: str
    relationship_id: str
    max_actions_per_day: int
    horizon_days: int
    scheduled: list[ScheduledAction] = Field(default_factory=list)
    created: bool = False

    @property
    def fallback_count(self) -> int:
        return sum(1 for s in self.scheduled if s.fell_back)

    def to_dict(self) -> dict[str, Any]:
        return {
            'user_id': self.user_id,
            'relationship_id': self.relationship_id,
            'max_actions_per_day': self.max_actions_per_day,
            'horizon_days': self.horizon_days,
            'created': self.created,
            'fallback_count': self.fallback_count,
            'scheduled': [s.model_dump(mode='json') for s in self.scheduled],
        }
