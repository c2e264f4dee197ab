"""
Best-action selection.

Ordering: lane first (priority, in_motion, on_deck), then total score
descending, then action ID ascending so ties resolve identically on every
call. An optional duration ceiling keeps only actions whose estimate is known
and fits.
"""

from dataclasses import dataclass
from typing import Any, Iterable, Sequence

from ..models.action import Action, ActionLane
from .scoring import ScoreBreakdown

LANE_ORDER: dict[str, int] = {
    ActionLane.PRIORITY.value: 0,
    ActionLane.IN_MOTION.value: 1,
    ActionLane.ON_DECK.value: 2,
}
UNKNOWN_LANE_RANK = 99


@dataclass(frozen=True)
class RankedAction:
    """An action annotated with its lane and score."""

    action: Action
    lane: ActionLane | str | None
    score: ScoreBreakdown | None = None
    reason: str = ''

    @property
    def action_id(self) -> str:
        return self.action.id

    @property
    def total(self) -> float:
        return self.score.total if self.score is not None else 0.0

    @property
    def lane_value(self) -> str | None:
        if isinstance(self.lane, ActionLane):
            return self.lane.value
        return self.lane

    def to_dict(self) -> dict[str, Any]:
        return {
            'action': self.action.model_dump(mode='json'),
            'lane': self.lane_value,
            'next_move_score': self.score.total if self.score is not None else None,
            'score_breakdown': self.score.to_dict() if self.score is not None else None,
            'reason': self.reason,
        }


@dataclass(frozen=True)
class BestActionResult:
    """Answer to "what should I do now": one action, or none with a reason."""

    action: RankedAction | None
    reason: str

    @property
    def found(self) -> bool:
        return self.action is not None

    def to_dict(self) -> dict[str, Any]:
        if self.action is None:
            return {'action': None, 'reason': self.reason}
        return {
            'action': self.action.action.model_dump(mode='json'),
            'lane': self.action.lane_value,
            'score': self.action.total,
            'score_breakdown': self.action.score.to_dict() if self.action.score else None,
            'reason': self.reason,
        }


def lane_rank(lane: ActionLane | str | None) -> int:
    """Sort rank of a lane. A missing lane counts as on_deck; unknown values sort last."""
    if lane is None:
        return LANE_ORDER[ActionLane.ON_DECK.value]
    value = lane.value if isinstance(lane, ActionLane) else lane
    return LANE_ORDER.get(value, UNKNOWN_LANE_RANK)


def _sort_key(item: RankedAction) -> tuple[int, float, str]:
    return (lane_rank(item.lane), -item.total, item.action_id)


def filter_by_duration(
    actions: Iterable[RankedAction],
    max_duration_minutes: int,
) -> list[RankedAction]:
    """Keep actions with a known estimate that fits the ceiling."""
    return [
        a
        for a in actions
        if a.action.estimated_minutes is not None
        and a.action.estimated_minutes <= max_duration_minutes
    ]


def rank_actions(
    actions: Iterable[RankedAction],
    max_duration_minutes: int | None = None,
) -> list[RankedAction]:
    """
    Return a new list in selection order. The input is not modified.

    Args:
        actions: Actions annotated with lane and score
        max_duration_minutes: Optional ceiling on estimated minutes

    Returns:
        Sorted list (lane, score descending, action ID)
    """
    candidates = (
        filter_by_duration(actions, max_duration_minutes)
        if max_duration_minutes is not None
        else list(actions)
    )
    return sorted(candidates, key=_sort_key)


def select_best_action(
    actions: Sequence[RankedAction],
    max_duration_minutes: int | None = None,
) -> RankedAction | None:
    """
    Pick the single best action.

    Returns None when no action is eligible; that is a normal outcome.
    """
    ranked = rank_actions(actions, max_duration_minutes)
    return ranked[0] if ranked else None


def recommend_next_move(
    actions: Sequence[RankedAction],
    max_duration_minutes: int | None = None,
) -> BestActionResult:
    """Select the best action and explain the choice."""
    best = select_best_action(actions, max_duration_minutes)
    if best is None:
        if max_duration_minutes is not None and actions:
            reason = f'No actions fit within {max_duration_minutes} minutes'
        else:
            reason = 'No actions available'
        return BestActionResult(action=None, reason=reason)
    return BestActionResult(action=best, reason=best.reason or f'Score: {best.total:g}')
