"""
Data store repository for relationships, actions and email signals.

Provides:
- Row → model mapping (the store keeps upper-case state names)
- Snapshot loading for one user in a fixed number of queries
- Persistence of lanes/scores, the next-move pointer and new actions
"""

from datetime import date, datetime, timedelta
from typing import Any, Iterable

from .clients.postgres_client import PostgresClient
from .engine.selector import RankedAction
from .engine.signals import DEFAULT_EMAIL_LOOKBACK_DAYS
from .logging import get_logger
from .models.action import PENDING_STATES, TERMINAL_STATES, Action, ActionState, ActionType
from .models.relationship import EmailSignal, Relationship, RelationshipStage
from .models.snapshot import UserSnapshot

logger = get_logger(__name__)


def _to_store(value: ActionState | ActionType | RelationshipStage) -> str:
    return value.value.upper()


def _from_store(value: str | None) -> str | None:
    return value.lower() if value else None


def _as_date(value: date | datetime | None) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    return value


def _row_to_action(row: dict[str, Any]) -> Action:
    return Action(
        id=str(row['id']),
        user_id=str(row['user_id']),
        relationship_id=str(row['person_id']) if row.get('person_id') else None,
        action_type=_from_store(row.get('action_type')) or ActionType.OUTREACH,
        state=_from_store(row['state']),
        description=row.get('description'),
        due_date=row['due_date'],
        estimated_minutes=row.get('estimated_minutes'),
        completed_at=row.get('completed_at'),
        snooze_until=row.get('snooze_until'),
        auto_created=bool(row.get('auto_created', False)),
        created_at=row.get('created_at'),
    )


def _row_to_relationship(row: dict[str, Any]) -> Relationship:
    momentum = row.get('momentum_score')
    return Relationship(
        id=str(row['id']),
        user_id=str(row['user_id']),
        name=row.get('name') or '',
        tier=row.get('tier'),
        cadence=row.get('cadence'),
        cadence_days=row.get('cadence_days'),
        last_interaction_at=row.get('last_interaction_at'),
        next_touch_due_at=_as_date(row.get('next_touch_due_at')),
        earliest_relevant_insight_date=_as_date(row.get('earliest_relevant_insight_date')),
        momentum_score=float(momentum) if momentum is not None else None,
        momentum_trend=row.get('momentum_trend') or 'unknown',
        relationship_state=_from_store(row.get('relationship_state')),
        next_move_action_id=(
            str(row['next_move_action_id']) if row.get('next_move_action_id') else None
        ),
    )


def _row_to_email_signal(row: dict[str, Any]) -> EmailSignal:
    return EmailSignal(
        relationship_id=str(row['person_id']),
        sentiment=row.get('sentiment'),
        open_loops=list(row.get('open_loops') or []),
        received_at=row['received_at'],
    )


class DecisionRepository:
    """
    High-level reads and writes around the decision engine.

    Handles:
    - Loading relationships, actions and email signals for a user
    - Writing back action lanes/scores and the next-move pointer
    - Inserting newly scheduled actions
    """

    def __init__(self, postgres_client: PostgresClient):
        """
        Initialize the repository.

        Args:
            postgres_client: Connected Postgres client
        """
        self.postgres = postgres_client

    # =========================================================================
    # Reads
    # =========================================================================

    async def get_relationships(self, user_id: str) -> list[Relationship]:
        """Active relationships for a user."""
        rows = await self.postgres.fetch_all(
            """
            SELECT * FROM leads
            WHERE user_id = :user_id AND status = 'ACTIVE'
            ORDER BY id
            """,
            {'user_id': user_id},
        )
        return [_row_to_relationship(r) for r in rows]

    async def get_actions(
        self,
        user_id: str,
        relationship_ids: list[str] | None = None,
        states: Iterable[ActionState] | None = None,
    ) -> list[Action]:
        """
        Actions for a user, optionally filtered by relationship and state.

        Args:
            user_id: Owning user
            relationship_ids: Restrict to these relationships (None = all)
            states: Restrict to these states (None = all)
        """
        clauses = ['user_id = :user_id']
        params: dict[str, Any] = {'user_id': user_id}
        if relationship_ids is not None:
            clauses.append('person_id = ANY(:relationship_ids)')
            params['relationship_ids'] = list(relationship_ids)
        if states is not None:
            clauses.append('state = ANY(:states)')
            params['states'] = sorted(_to_store(s) for s in states)

        rows = await self.postgres.fetch_all(
            f"SELECT * FROM actions WHERE {' AND '.join(clauses)} ORDER BY due_date, id",
            params,
        )
        return [_row_to_action(r) for r in rows]

    async def get_pending_actions(self, user_id: str, relationship_id: str) -> list[Action]:
        """Pending actions of one relationship: the scheduler's capacity snapshot."""
        return await self.get_actions(
            user_id, relationship_ids=[relationship_id], states=PENDING_STATES
        )

    async def get_email_signals(
        self,
        user_id: str,
        relationship_ids: list[str],
        since: date,
    ) -> list[EmailSignal]:
        """Email signals received on or after ``since``."""
        if not relationship_ids:
            return []
        rows = await self.postgres.fetch_all(
            """
            SELECT person_id, sentiment, open_loops, received_at FROM email_metadata
            WHERE user_id = :user_id
              AND person_id = ANY(:relationship_ids)
              AND received_at >= :since
            ORDER BY received_at DESC
            """,
            {'user_id': user_id, 'relationship_ids': relationship_ids, 'since': since},
        )
        return [_row_to_email_signal(r) for r in rows]

    async def load_user_snapshot(
        self,
        user_id: str,
        today: date,
        email_lookback_days: int = DEFAULT_EMAIL_LOOKBACK_DAYS,
    ) -> UserSnapshot:
        """
        Load everything one engine run needs.

        Pending actions are loaded for the whole user (including unattached
        ones); terminal actions only for active relationships, where they feed
        the response rate and last-contact fallback.
        """
        relationships = await self.get_relationships(user_id)
        relationship_ids = [r.id for r in relationships]

        pending = await self.get_actions(user_id, states=PENDING_STATES)
        terminal = (
            await self.get_actions(
                user_id, relationship_ids=relationship_ids, states=TERMINAL_STATES
            )
            if relationship_ids
            else []
        )
        email_signals = await self.get_email_signals(
            user_id, relationship_ids, today - timedelta(days=email_lookback_days)
        )

        logger.debug(
            'repository.snapshot_loaded',
            user_id=user_id,
            relationships=len(relationships),
            pending_actions=len(pending),
            terminal_actions=len(terminal),
            email_signals=len(email_signals),
        )
        return UserSnapshot(
            user_id=user_id,
            relationships=relationships,
            actions=pending + terminal,
            email_signals=email_signals,
        )

    # =========================================================================
    # Writes
    # =========================================================================

    async def save_action_rankings(self, ranked: list[RankedAction]) -> None:
        """Persist each action's lane and total score."""
        await self.postgres.execute_many(
            """
            UPDATE actions SET lane = :lane, next_move_score = :next_move_score
            WHERE id = :id AND user_id = :user_id
            """,
            [
                {
                    'id': r.action.id,
                    'user_id': r.action.user_id,
                    'lane': r.lane_value,
                    'next_move_score': r.total,
                }
                for r in ranked
            ],
        )

    async def set_next_move(
        self,
        user_id: str,
        relationship_ids: list[str],
        relationship_id: str | None,
        action_id: str | None,
    ) -> None:
        """Point exactly one relationship at the best action and clear the rest."""
        if not relationship_ids:
            return
        await self.postgres.execute(
            """
            UPDATE leads
            SET next_move_action_id = CASE WHEN id = :relationship_id THEN :action_id END
            WHERE user_id = :user_id AND id = ANY(:relationship_ids)
            """,
            {
                'user_id': user_id,
                'relationship_ids': relationship_ids,
                'relationship_id': relationship_id,
                'action_id': action_id,
            },
        )

    async def create_actions(self, actions: list[Action]) -> None:
        """Insert new actions."""
        await self.postgres.execute_many(
            """
            INSERT INTO actions (
                id, user_id, person_id, action_type, state, description,
                due_date, estimated_minutes, auto_created, created_at
            ) VALUES (
                :id, :user_id, :person_id, :action_type, :state, :description,
                :due_date, :estimated_minutes, :auto_created, :created_at
            )
            """,
            [
                {
                    'id': a.id,
                    'user_id': a.user_id,
                    'person_id': a.relationship_id,
                    'action_type': _to_store(a.action_type),
                    'state': _to_store(a.state),
                    'description': a.description,
                    'due_date': a.due_date,
                    'estimated_minutes': a.estimated_minutes,
                    'auto_created': a.auto_created,
                    'created_at': a.created_at,
                }
                for a in actions
            ],
        )
