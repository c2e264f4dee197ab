"""
Relationship and email signal models.

A Relationship is a tracked contact. Its lane is derived on demand by the
lane classifier and is never stored here as a source of truth.
"""

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, Field


class RelationshipTier(str, Enum):
    """Ordinal importance: inner > active > warm > background."""

    INNER = 'inner'
    ACTIVE = 'active'
    WARM = 'warm'
    BACKGROUND = 'background'


class Cadence(str, Enum):
    """Desired contact rhythm."""

    FREQUENT = 'frequent'
    MODERATE = 'moderate'
    INFREQUENT = 'infrequent'
    AD_HOC = 'ad_hoc'


class MomentumTrend(str, Enum):
    INCREASING = 'increasing'
    STABLE = 'stable'
    DECLINING = 'declining'
    UNKNOWN = 'unknown'


class RelationshipStage(str, Enum):
    """Conversation stage of a relationship. OPPORTUNITY marks an open deal."""

    UNENGAGED = 'unengaged'
    ACTIVE_CONVERSATION = 'active_conversation'
    OPPORTUNITY = 'opportunity'
    WARM_BUT_PASSIVE = 'warm_but_passive'
    DORMANT = 'dormant'


class Relationship(BaseModel):
    """A tracked contact owned by one user."""

    id: str = Field(..., description='Relationship identifier')
    user_id: str = Field(..., description='Owning user')
    name: str = Field(default='')

    tier: RelationshipTier | None = Field(default=None)
    cadence: Cadence | None = Field(default=None)
    cadence_days: int | None = Field(
        default=None, ge=1, description='Explicit cadence length, overrides cadence'
    )

    last_interaction_at: datetime | None = Field(default=None)
    next_touch_due_at: date | None = Field(default=None)
    earliest_relevant_insight_date: date | None = Field(
        default=None, description='Date a time-sensitive insight becomes relevant'
    )

    # Derived, informational
    momentum_score: float | None = Field(default=None)
    momentum_trend: MomentumTrend = Field(default=MomentumTrend.UNKNOWN)
    relationship_state: RelationshipStage | None = Field(default=None)

    next_move_action_id: str | None = Field(default=None)


class EmailSignal(BaseModel):
    """Per-email signal extracted upstream (sentiment, open loops)."""

    relationship_id: str
    sentiment: str | None = None
    open_loops: list[str] = Field(default_factory=list)
    received_at: datetime
