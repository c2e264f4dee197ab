"""
Data models for the Decision Engine.

All records are plain data handed to the engine by the calling layer.
"""

from .action import (
    Action,
    ActionLane,
    ActionState,
    ActionType,
    PENDING_STATES,
    TERMINAL_STATES,
)
from .relationship import (
    Cadence,
    EmailSignal,
    MomentumTrend,
    Relationship,
    RelationshipStage,
    RelationshipTier,
)
from .decision_state import DecisionState, ScoringWeights
from .snapshot import UserSnapshot

__all__ = [
    'Action',
    'ActionLane',
    'ActionState',
    'ActionType',
    'PENDING_STATES',
    'TERMINAL_STATES',
    'Cadence',
    'EmailSignal',
    'MomentumTrend',
    'Relationship',
    'RelationshipStage',
    'RelationshipTier',
    'DecisionState',
    'ScoringWeights',
    'UserSnapshot',
]
