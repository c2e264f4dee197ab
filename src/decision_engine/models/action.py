"""
Action model: a unit of outreach work tied to a relationship.

Actions are created by upstream producers (manual entry, nurture job,
meeting-note extraction) and their state transitions are owned by the
surrounding product. The engine only reads, ranks and schedules them.
"""

from datetime import date, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class ActionType(str, Enum):
    """Kind of outreach work."""

    OUTREACH = 'outreach'
    FOLLOW_UP = 'follow_up'
    NURTURE = 'nurture'
    CALL_PREP = 'call_prep'
    POST_CALL = 'post_call'
    CONTENT = 'content'
    FAST_WIN = 'fast_win'


class ActionState(str, Enum):
    """Lifecycle state of an action."""

    NEW = 'new'
    SENT = 'sent'
    SNOOZED = 'snoozed'
    REPLIED = 'replied'
    DONE = 'done'


class ActionLane(str, Enum):
    """Coarse priority bucket."""

    PRIORITY = 'priority'
    IN_MOTION = 'in_motion'
    ON_DECK = 'on_deck'


PENDING_STATES = frozenset({ActionState.NEW, ActionState.SENT, ActionState.SNOOZED})
TERMINAL_STATES = frozenset({ActionState.REPLIED, ActionState.DONE})


class Action(BaseModel):
    """
    A pending or completed piece of outreach work.

    Only actions in a pending state (new, sent, snoozed) take part in
    scoring and scheduling.
    """

    # Identity
    id: str = Field(..., description='Action identifier')
    user_id: str = Field(..., description='Owning user')
    relationship_id: str | None = Field(
        default=None, description='Relationship this action is tied to, if any'
    )

    # Content
    action_type: ActionType = Field(default=ActionType.OUTREACH)
    state: ActionState = Field(default=ActionState.NEW)
    description: str | None = Field(default=None)

    # Timing
    due_date: date = Field(..., description='Day the action is due (no time component)')
    estimated_minutes: int | None = Field(
        default=None,
        ge=0,
        description='Estimated effort. Absent estimates never pass a duration filter.',
    )
    completed_at: datetime | None = Field(default=None)
    snooze_until: date | None = Field(default=None)

    # Provenance
    auto_created: bool = Field(default=False)
    created_at: datetime | None = Field(default=None)

    attributes: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_pending(self) -> bool:
        return self.state in PENDING_STATES

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES
