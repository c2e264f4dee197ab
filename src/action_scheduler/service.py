"""
SchedulingService: serialized read → schedule → insert per relationship.

Two overlapping batches for the same (user, relationship) would otherwise both
see the same free slot. A per-relationship asyncio.Lock covers the whole
sequence; different relationships and users proceed concurrently.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from datetime import date, datetime, timezone
from typing import AsyncIterator, Sequence
from uuid import uuid4

from decision_engine.config import config
from decision_engine.logging import StageTimer, get_logger, logging_context
from decision_engine.models.action import Action, ActionState
from decision_engine.repository import DecisionRepository

from .errors import SchedulingValidationError
from .models import ProposedAction, ScheduledAction, ScheduleResult
from .scheduler import schedule_actions

logger = get_logger(__name__)


class SchedulingService:
    """
    Schedules batches of proposed actions against the data store.

    Usage:
        service = SchedulingService(DecisionRepository(postgres))
        result = await service.schedule_and_create('user_1', 'rel_9', proposals, today)
    """

    def __init__(
        self,
        repository: DecisionRepository,
        max_actions_per_day: int | None = None,
        horizon_days: int | None = None,
    ):
        """
        Initialize the service.

        Args:
            repository: Data store repository
            max_actions_per_day: Default cap (config MAX_ACTIONS_PER_DAY)
            horizon_days: Default horizon (config SCHEDULING_HORIZON_DAYS)
        """
        self.repository = repository
        self.max_actions_per_day = (
            max_actions_per_day if max_actions_per_day is not None else config.MAX_ACTIONS_PER_DAY
        )
        self.horizon_days = (
            horizon_days if horizon_days is not None else config.SCHEDULING_HORIZON_DAYS
        )
        # key -> (lock, callers holding or waiting on it)
        self._locks: dict[tuple[str, str], tuple[asyncio.Lock, int]] = {}

    @asynccontextmanager
    async def _relationship_lock(
        self, user_id: str, relationship_id: str
    ) -> AsyncIterator[None]:
        key = (user_id, relationship_id)
        lock, users = self._locks.get(key) or (asyncio.Lock(), 0)
        self._locks[key] = (lock, users + 1)
        try:
            async with lock:
                yield
        finally:
            lock, users = self._locks[key]
            if users == 1:
                del self._locks[key]
            else:
                self._locks[key] = (lock, users - 1)

    async def schedule(
        self,
        user_id: str,
        relationship_id: str,
        proposals: Sequence[ProposedAction],
        today: date,
        max_actions_per_day: int | None = None,
        horizon_days: int | None = None,
        create: bool = False,
    ) -> ScheduleResult:
        """
        Place a batch of proposals for one relationship.

        Args:
            user_id: Owning user
            relationship_id: Relationship the proposals belong to
            proposals: Proposed actions in priority order
            today: Reference day
            max_actions_per_day: Per-call cap override
            horizon_days: Per-call horizon override
            create: Insert the scheduled actions before releasing the lock

        Returns:
            ScheduleResult with one placement per proposal, in input order

        Raises:
            SchedulingValidationError: If the batch is empty or the cap or horizon is below 1
            DataStoreError: If the read or insert fails
        """
        max_per_day = (
            max_actions_per_day if max_actions_per_day is not None else self.max_actions_per_day
        )
        horizon = horizon_days if horizon_days is not None else self.horizon_days
        if not proposals:
            raise SchedulingValidationError(
                'proposals must not be empty', {'relationship_id': relationship_id}
            )
        if max_per_day < 1 or horizon < 1:
            raise SchedulingValidationError(
                'max_actions_per_day and horizon_days must be at least 1',
                {'max_actions_per_day': max_per_day, 'horizon_days': horizon},
            )

        timer = StageTimer()
        with logging_context(user_id=user_id, relationship_id=relationship_id):
            async with self._relationship_lock(user_id, relationship_id):
                with timer.stage('load_existing'):
                    existing = await self.repository.get_pending_actions(
                        user_id, relationship_id
                    )

                with timer.stage('schedule'):
                    scheduled = schedule_actions(
                        existing,
                        proposals,
                        today,
                        max_per_day=max_per_day,
                        horizon_days=horizon,
                    )

                if create:
                    with timer.stage('create_actions'):
                        actions = self._build_actions(
                            user_id, relationship_id, proposals, scheduled
                        )
                        await self.repository.create_actions(actions)
                        for placement, action in zip(scheduled, actions):
                            placement.action_id = action.id

            result = ScheduleResult(
                user_id=user_id,
                relationship_id=relationship_id,
                max_actions_per_day=max_per_day,
                horizon_days=horizon,
                scheduled=scheduled,
                created=create,
            )
            logger.info(
                'scheduling_service.batch_scheduled',
                proposals=len(proposals),
                existing_pending=len(existing),
                fallbacks=result.fallback_count,
                created=result.created,
                **timer.summary(),
            )
        return result

    async def schedule_and_create(
        self,
        user_id: str,
        relationship_id: str,
        proposals: Sequence[ProposedAction],
        today: date,
        max_actions_per_day: int | None = None,
        horizon_days: int | None = None,
    ) -> ScheduleResult:
        """Schedule a batch and insert the resulting actions under the same lock."""
        return await self.schedule(
            user_id,
            relationship_id,
            proposals,
            today,
            max_actions_per_day=max_actions_per_day,
            horizon_days=horizon_days,
            create=True,
        )

    @staticmethod
    def _build_actions(
        user_id: str,
        relationship_id: str,
        proposals: Sequence[ProposedAction],
        scheduled: list[ScheduledAction],
    ) -> list[Action]:
        created_at = datetime.now(timezone.utc)
        return [
            Action(
                id=str(uuid4()),
                user_id=user_id,
                relationship_id=relationship_id,
                action_type=proposal.action_type,
                state=ActionState.NEW,
                description=proposal.description,
                due_date=placement.scheduled_date,
                estimated_minutes=proposal.estimated_minutes,
                auto_created=True,
                created_at=created_at,
            )
            for proposal, placement in zip(proposals, scheduled)
        ]
