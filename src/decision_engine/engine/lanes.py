"""
Lane assignment: Priority / In Motion / On Deck.

Relationships get a lane from their decision state; each action then gets a
lane from its own due date and type plus its relationship's lane. Both are
deterministic threshold rules evaluated in order, first match wins.

Incomplete or unparseable decision state never promotes a relationship: it
lands in ON_DECK with ``degraded=True``.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Mapping

from pydantic import ValidationError

from ..logging import get_logger
from ..models.action import Action, ActionLane, ActionState, ActionType
from ..models.decision_state import DecisionState
from ..models.relationship import MomentumTrend

logger = get_logger(__name__)

INSIGHT_WINDOW_BUSINESS_DAYS = 5
AWAITING_RESPONSE_DAYS = 7
NEXT_TOUCH_WINDOW_DAYS = 7

ACTION_PRIORITY_DUE_DAYS = 2
ACTION_IN_MOTION_DUE_DAYS = 14
HIGH_PRIORITY_ACTION_TYPES = frozenset(
    {ActionType.FOLLOW_UP, ActionType.CALL_PREP, ActionType.POST_CALL}
)
_ACTIVE_ACTION_STATES = frozenset({ActionState.NEW, ActionState.SENT})


@dataclass(frozen=True)
class LaneAssignment:
    lane: ActionLane
    reason: str
    degraded: bool = False


def business_days_between(start: date, end: date) -> int:
    """Count weekdays from start to end, both inclusive. Zero if end < start."""
    if end < start:
        return 0
    total_days = (end - start).days + 1
    full_weeks, remainder = divmod(total_days, 7)
    count = full_weeks * 5
    for offset in range(remainder):
        if (start + timedelta(days=full_weeks * 7 + offset)).weekday() < 5:
            count += 1
    return count


def coerce_decision_state(
    state: DecisionState | Mapping[str, Any] | None,
) -> DecisionState | None:
    """
    Accept a DecisionState, a raw mapping, or None.

    Returns None when the input cannot be parsed into a DecisionState.
    """
    if state is None or isinstance(state, DecisionState):
        return state
    try:
        return DecisionState.model_validate(state)
    except ValidationError as e:
        logger.warning(
            'lanes.decision_state_invalid',
            relationship_id=state.get('relationship_id') if isinstance(state, Mapping) else None,
            error_count=e.error_count(),
        )
        return None


def assign_relationship_lane(
    state: DecisionState | Mapping[str, Any] | None,
    today: date,
) -> LaneAssignment:
    """
    Assign a lane to a relationship from its decision state.

    Args:
        state: Decision state (model or raw mapping); None when unavailable
        today: Reference day

    Returns:
        LaneAssignment with the lane and a human-readable reason
    """
    parsed = coerce_decision_state(state)
    if parsed is None:
        return LaneAssignment(ActionLane.ON_DECK, 'Decision state unavailable', degraded=True)
    if not parsed.is_complete:
        return LaneAssignment(ActionLane.ON_DECK, 'Decision state incomplete', degraded=True)

    # Priority: requires attention now
    if parsed.overdue_actions_count > 0:
        return LaneAssignment(
            ActionLane.PRIORITY,
            f'Has {parsed.overdue_actions_count} overdue action(s)',
        )

    if parsed.earliest_relevant_insight_date is not None:
        business_days = business_days_between(today, parsed.earliest_relevant_insight_date)
        if business_days <= INSIGHT_WINDOW_BUSINESS_DAYS:
            return LaneAssignment(
                ActionLane.PRIORITY,
                f'Relevant insight due within {business_days} business days',
            )

    if parsed.momentum_trend == MomentumTrend.DECLINING and parsed.past_cadence:
        return LaneAssignment(
            ActionLane.PRIORITY,
            f'Momentum declining and {parsed.days_since_last_interaction} days since last '
            f'interaction (cadence: {parsed.cadence_days} days)',
        )

    if (
        parsed.awaiting_response
        and parsed.days_since_last_interaction is not None
        and parsed.days_since_last_interaction > AWAITING_RESPONSE_DAYS
    ):
        return LaneAssignment(
            ActionLane.PRIORITY,
            f'Awaiting response and {parsed.days_since_last_interaction} days since last interaction',
        )

    # In Motion: open thread within cadence
    if parsed.pending_actions_count > 0:
        return LaneAssignment(
            ActionLane.IN_MOTION,
            f'Has {parsed.pending_actions_count} pending action(s)',
        )

    if parsed.next_touch_due_at is not None:
        if parsed.next_touch_due_at <= today + timedelta(days=NEXT_TOUCH_WINDOW_DAYS):
            when = 'now' if parsed.next_touch_due_at <= today else 'soon'
            return LaneAssignment(ActionLane.IN_MOTION, f'Next touch due {when}')

    return LaneAssignment(ActionLane.ON_DECK, 'No pending actions, low-touch relationship')


def assign_action_lane(
    action: Action,
    relationship_lane: ActionLane,
    today: date,
) -> LaneAssignment:
    """
    Assign a lane to an action from its due date, type and relationship lane.

    Args:
        action: The pending action
        relationship_lane: Lane of the action's relationship (ON_DECK if none)
        today: Reference day

    Returns:
        LaneAssignment for the action
    """
    days_until_due = (action.due_date - today).days

    if days_until_due <= ACTION_PRIORITY_DUE_DAYS:
        when = 'overdue' if days_until_due <= 0 else f'{days_until_due} day(s) away'
        return LaneAssignment(
            ActionLane.PRIORITY,
            f'Due within {ACTION_PRIORITY_DUE_DAYS} days ({when})',
        )

    if action.action_type in HIGH_PRIORITY_ACTION_TYPES and action.state in _ACTIVE_ACTION_STATES:
        return LaneAssignment(
            ActionLane.PRIORITY,
            f'High priority action type ({action.action_type.value}) in {action.state.value} state',
        )

    if days_until_due <= ACTION_IN_MOTION_DUE_DAYS and relationship_lane in (
        ActionLane.PRIORITY,
        ActionLane.IN_MOTION,
    ):
        return LaneAssignment(
            ActionLane.IN_MOTION,
            f'Due within {ACTION_IN_MOTION_DUE_DAYS} days and relationship is {relationship_lane.value}',
        )

    return LaneAssignment(ActionLane.ON_DECK, 'Long-range or low-priority action')
