"""
Batch scheduler: conflict-free due dates for proposed actions.

Works over one pre-fetched snapshot of a relationship's existing actions:
1. Count pending actions per due date (today or later)
2. For each proposal, in order, walk forward from max(today, proposed_date)
   and take the first date whose existing + batch count is under the cap
3. If the horizon is exhausted, keep the proposed date and flag the fallback

Pure and deterministic: ``today`` is always passed in and nothing is
re-queried per proposal or per date.
"""

from collections import Counter
from datetime import date, timedelta
from typing import Iterable, Sequence

from decision_engine.logging import get_logger
from decision_engine.models.action import Action

from .models import ProposedAction, ScheduledAction

logger = get_logger(__name__)

DEFAULT_MAX_PER_DAY = 2
DEFAULT_HORIZON_DAYS = 30


def _proposed_date(proposal: ProposedAction | date) -> date:
    return proposal.proposed_date if isinstance(proposal, ProposedAction) else proposal


def build_capacity_map(existing_actions: Iterable[Action], today: date) -> Counter:
    """
    Count pending actions per due date.

    Terminal actions and anything due before ``today`` do not occupy a slot.
    """
    counts: Counter = Counter()
    for action in existing_actions:
        if action.is_pending and action.due_date >= today:
            counts[action.due_date] += 1
    return counts


def _find_slot(
    start: date,
    existing: Counter,
    batch: Counter,
    max_per_day: int,
    horizon_days: int,
) -> date | None:
    for offset in range(horizon_days):
        candidate = start + timedelta(days=offset)
        if existing[candidate] + batch[candidate] < max_per_day:
            return candidate
    return None


def schedule_actions(
    existing_actions: Iterable[Action],
    proposed_actions: Sequence[ProposedAction | date],
    today: date,
    max_per_day: int = DEFAULT_MAX_PER_DAY,
    horizon_days: int = DEFAULT_HORIZON_DAYS,
) -> list[ScheduledAction]:
    """
    Place a batch of proposals for one relationship.

    Args:
        existing_actions: The relationship's actions (any state)
        proposed_actions: Proposals or bare proposed dates, in priority order
        today: Reference day; nothing is scheduled before it
        max_per_day: Cap on pending actions per calendar day
        horizon_days: Number of candidate dates searched per proposal

    Returns:
        One ScheduledAction per proposal, in input order
    """
    existing = build_capacity_map(existing_actions, today)
    batch: Counter = Counter()
    results: list[ScheduledAction] = []

    for proposal in proposed_actions:
        proposed = _proposed_date(proposal)
        start = max(today, proposed)
        slot = _find_slot(start, existing, batch, max_per_day, horizon_days)

        if slot is None:
            logger.warning(
                'scheduler.fallback',
                proposed_date=proposed.isoformat(),
                horizon_days=horizon_days,
                max_per_day=max_per_day,
            )
            scheduled = ScheduledAction(
                scheduled_date=proposed, proposed_date=proposed, fell_back=True
            )
        else:
            logger.debug(
                'scheduler.slot_found',
                proposed_date=proposed.isoformat(),
                scheduled_date=slot.isoformat(),
            )
            scheduled = ScheduledAction(scheduled_date=slot, proposed_date=proposed)

        batch[scheduled.scheduled_date] += 1
        results.append(scheduled)

    return results


def schedule_one(
    existing_actions: Iterable[Action],
    proposed: ProposedAction | date,
    today: date,
    max_per_day: int = DEFAULT_MAX_PER_DAY,
    horizon_days: int = DEFAULT_HORIZON_DAYS,
) -> ScheduledAction:
    """Place a single proposal."""
    return schedule_actions(
        existing_actions, [proposed], today, max_per_day=max_per_day, horizon_days=horizon_days
    )[0]
