"""
Pure decision core: signal aggregation, lanes, scoring and selection.

Nothing in this package performs I/O or reads the clock; every function takes
``today`` explicitly.
"""

from .engine import DecisionEngine, DecisionEngineResult
from .lanes import (
    LaneAssignment,
    assign_action_lane,
    assign_relationship_lane,
    business_days_between,
)
from .scoring import (
    DEFAULT_WEIGHTS,
    RelationshipScore,
    ScoreBreakdown,
    classify_and_score,
    score_action,
    score_reason,
)
from .selector import (
    BestActionResult,
    RankedAction,
    filter_by_duration,
    rank_actions,
    recommend_next_move,
    select_best_action,
)
from .signals import (
    AggregatedSignals,
    RelationshipSignals,
    aggregate_decision_state,
    aggregate_signals,
    aggregate_snapshot,
)
from .urgency_value import Level, Quadrant, UrgencyValueResult, classify_urgency_value

__all__ = [
    'DecisionEngine',
    'DecisionEngineResult',
    'LaneAssignment',
    'assign_action_lane',
    'assign_relationship_lane',
    'business_days_between',
    'DEFAULT_WEIGHTS',
    'RelationshipScore',
    'ScoreBreakdown',
    'classify_and_score',
    'score_action',
    'score_reason',
    'BestActionResult',
    'RankedAction',
    'filter_by_duration',
    'rank_actions',
    'recommend_next_move',
    'select_best_action',
    'AggregatedSignals',
    'RelationshipSignals',
    'aggregate_decision_state',
    'aggregate_signals',
    'aggregate_snapshot',
    'Level',
    'Quadrant',
    'UrgencyValueResult',
    'classify_urgency_value',
]
