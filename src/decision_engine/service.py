"""
DecisionService: async orchestration around the pure engine.

One call = one snapshot read, one engine run, and (optionally) one write-back
of lanes, scores and the next-move pointer. Data store errors propagate to the
caller unchanged.
"""

from __future__ import annotations

from datetime import date
from typing import Any

from .config import config
from .engine.engine import DecisionEngine, DecisionEngineResult
from .engine.selector import BestActionResult, RankedAction
from .engine.urgency_value import UrgencyValueResult
from .logging import StageTimer, get_logger, logging_context
from .models.action import ActionLane
from .repository import DecisionRepository

logger = get_logger(__name__)


def default_engine() -> DecisionEngine:
    """Engine wired with the configured weights and email lookback."""
    return DecisionEngine(
        weights=config.scoring_weights(),
        email_lookback_days=config.EMAIL_SIGNAL_LOOKBACK_DAYS,
    )


class DecisionService:
    """
    Loads a user's snapshot, runs the DecisionEngine and persists the outcome.

    Usage:
        service = DecisionService(DecisionRepository(postgres))
        best = await service.best_action('user_1', today, max_duration_minutes=10)
    """

    def __init__(
        self,
        repository: DecisionRepository,
        engine: DecisionEngine | None = None,
    ):
        self.repository = repository
        self.engine = engine or default_engine()

    async def run(
        self,
        user_id: str,
        today: date,
        max_duration_minutes: int | None = None,
        persist: bool = False,
    ) -> DecisionEngineResult:
        """
        Load, evaluate and optionally persist.

        Args:
            user_id: User to evaluate
            today: Reference day (never read from the clock here)
            max_duration_minutes: Optional ceiling for the best-action pick
            persist: Write lanes/scores and the next-move pointer back

        Returns:
            DecisionEngineResult
        """
        timer = StageTimer()
        with logging_context(user_id=user_id):
            with timer.stage('load_snapshot'):
                snapshot = await self.repository.load_user_snapshot(
                    user_id, today, email_lookback_days=self.engine.email_lookback_days
                )

            with timer.stage('evaluate'):
                result = self.engine.evaluate(
                    snapshot, today, max_duration_minutes=max_duration_minutes
                )

            if persist:
                with timer.stage('persist'):
                    await self._persist(result, [r.id for r in snapshot.relationships])

            logger.info(
                'decision_service.run_complete',
                ranked_actions=len(result.ranked_actions),
                relationships=len(result.relationship_scores),
                persisted=persist,
                **timer.summary(),
            )
        return result

    async def _persist(self, result: DecisionEngineResult, relationship_ids: list[str]) -> None:
        await self.repository.save_action_rankings(result.ranked_actions)

        best = result.best.action
        await self.repository.set_next_move(
            result.user_id,
            relationship_ids,
            relationship_id=best.action.relationship_id if best else None,
            action_id=best.action_id if best else None,
        )

    async def best_action(
        self,
        user_id: str,
        today: date,
        max_duration_minutes: int | None = None,
        persist: bool = True,
    ) -> BestActionResult:
        """The single best action for a user, or none with a reason."""
        result = await self.run(
            user_id, today, max_duration_minutes=max_duration_minutes, persist=persist
        )
        return result.best

    async def actions_by_lane(
        self,
        user_id: str,
        today: date,
        lane: ActionLane | None = None,
    ) -> dict[str, list[RankedAction]]:
        """Pending actions grouped by lane; a single group when ``lane`` is given."""
        result = await self.run(user_id, today)
        grouped = result.actions_by_lane()
        if lane is not None:
            return {lane.value: grouped.get(lane.value, [])}
        return grouped

    async def urgency_value_matrix(
        self,
        user_id: str,
        today: date,
    ) -> dict[str, Any]:
        """
        Relationships grouped by urgency/value quadrant.

        Returns:
            {'quadrants': {quadrant: [result, ...]}, 'relationships': {id: result}}
        """
        result = await self.run(user_id, today)
        quadrants: dict[str, list[UrgencyValueResult]] = {}
        for uv in result.urgency_value.values():
            quadrants.setdefault(uv.quadrant.value, []).append(uv)
        return {
            'quadrants': quadrants,
            'relationships': result.urgency_value,
        }
