"""
Decision engine orchestrator.

Runs the pure stages over one pre-fetched UserSnapshot:
1. Aggregate per-relationship signals (decision state + urgency/value input)
2. Classify each relationship into a lane and compute its sub-scores
3. Classify each relationship on the urgency/value matrix (display only)
4. Assign a lane to every pending action and score it
5. Rank all pending actions and select the best one

No I/O happens here; loading and persisting belong to DecisionService.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Any

from ..logging import get_logger
from ..models.action import ActionLane
from ..models.decision_state import DecisionState, ScoringWeights
from ..models.snapshot import UserSnapshot
from .lanes import assign_action_lane
from .scoring import (
    DEFAULT_WEIGHTS,
    RelationshipScore,
    classify_and_score,
    score_action,
    score_reason,
)
from .selector import BestActionResult, RankedAction, rank_actions, recommend_next_move
from .signals import DEFAULT_EMAIL_LOOKBACK_DAYS, aggregate_snapshot
from .urgency_value import UrgencyValueResult, classify_urgency_value

logger = get_logger(__name__)

TOP_ACTIONS_LOGGED = 5


@dataclass
class DecisionEngineResult:
    """Everything one engine run produced for a user."""

    user_id: str
    today: date
    best: BestActionResult
    ranked_actions: list[RankedAction] = field(default_factory=list)
    relationship_scores: dict[str, RelationshipScore] = field(default_factory=dict)
    urgency_value: dict[str, UrgencyValueResult] = field(default_factory=dict)
    decision_states: dict[str, DecisionState] = field(default_factory=dict)

    def actions_by_lane(self) -> dict[str, list[RankedAction]]:
        """Ranked actions grouped by lane, each group in selection order."""
        grouped: dict[str, list[RankedAction]] = {lane.value: [] for lane in ActionLane}
        for ranked in self.ranked_actions:
            grouped.setdefault(ranked.lane_value or ActionLane.ON_DECK.value, []).append(ranked)
        return grouped

    def to_dict(self) -> dict[str, Any]:
        return {
            'user_id': self.user_id,
            'today': self.today.isoformat(),
            'best': self.best.to_dict(),
            'ranked_actions': [r.to_dict() for r in self.ranked_actions],
            'relationship_scores': {
                k: v.to_dict() for k, v in self.relationship_scores.items()
            },
            'urgency_value': {k: v.to_dict() for k, v in self.urgency_value.items()},
        }


class DecisionEngine:
    """
    Lane classification, scoring and best-action selection over a snapshot.

    Usage:
        engine = DecisionEngine()
        result = engine.evaluate(snapshot, today=date(2025, 1, 6))
        result.best.action
    """

    def __init__(
        self,
        weights: ScoringWeights | None = None,
        email_lookback_days: int = DEFAULT_EMAIL_LOOKBACK_DAYS,
    ):
        """
        Initialize the engine.

        Args:
            weights: Score weights (defaults to 40/25/20/15)
            email_lookback_days: Age limit for email signals feeding the matrix
        """
        self.weights = weights or DEFAULT_WEIGHTS
        self.email_lookback_days = email_lookback_days

    def score_relationships(
        self,
        decision_states: dict[str, DecisionState],
        today: date,
    ) -> dict[str, RelationshipScore]:
        return {
            rel_id: classify_and_score(state, today)
            for rel_id, state in decision_states.items()
        }

    def rank(
        self,
        snapshot: UserSnapshot,
        relationship_scores: dict[str, RelationshipScore],
        today: date,
    ) -> list[RankedAction]:
        """Assign lanes to and score every pending action in the snapshot."""
        ranked = []
        for action in snapshot.actions:
            if not action.is_pending:
                continue

            rel_score = (
                relationship_scores.get(action.relationship_id)
                if action.relationship_id
                else None
            )
            rel_lane = rel_score.lane if rel_score else ActionLane.ON_DECK
            lane = assign_action_lane(action, rel_lane, today)
            breakdown = score_action(action, rel_score, today, self.weights)

            ranked.append(
                RankedAction(
                    action=action,
                    lane=lane.lane,
                    score=breakdown,
                    reason=score_reason(breakdown, self.weights),
                )
            )
        return rank_actions(ranked)

    def evaluate(
        self,
        snapshot: UserSnapshot,
        today: date,
        max_duration_minutes: int | None = None,
    ) -> DecisionEngineResult:
        """
        Run every stage over a snapshot.

        Args:
            snapshot: Pre-fetched relationships, actions and email signals
            today: Reference day
            max_duration_minutes: Optional ceiling for the best-action pick

        Returns:
            DecisionEngineResult
        """
        aggregated = aggregate_snapshot(
            snapshot, today, email_lookback_days=self.email_lookback_days
        )
        relationship_scores = self.score_relationships(aggregated.decision_states, today)
        urgency_value = {
            rel_id: classify_urgency_value(signals)
            for rel_id, signals in aggregated.signals.items()
        }

        ranked = self.rank(snapshot, relationship_scores, today)
        best = recommend_next_move(ranked, max_duration_minutes)

        degraded = [rid for rid, s in relationship_scores.items() if s.degraded]
        if degraded:
            logger.warning('decision_engine.degraded_states', relationship_ids=degraded)

        if best.action is not None:
            logger.info(
                'decision_engine.best_action_selected',
                user_id=snapshot.user_id,
                action_id=best.action.action_id,
                relationship_id=best.action.action.relationship_id,
                lane=best.action.lane_value,
                score=best.action.total,
                breakdown=best.action.score.to_dict() if best.action.score else None,
                reason=best.reason,
            )
        else:
            logger.info(
                'decision_engine.no_action_available',
                user_id=snapshot.user_id,
                reason=best.reason,
            )

        logger.debug(
            'decision_engine.top_actions',
            actions=[
                {'action_id': r.action_id, 'lane': r.lane_value, 'score': r.total}
                for r in ranked[:TOP_ACTIONS_LOGGED]
            ],
        )

        return DecisionEngineResult(
            user_id=snapshot.user_id,
            today=today,
            best=best,
            ranked_actions=ranked,
            relationship_scores=relationship_scores,
            urgency_value=urgency_value,
            decision_states=aggregated.decision_states,
        )
