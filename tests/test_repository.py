"""
Tests for DecisionRepository.

Tests cover:
- Row → model mapping, including upper-case store states
- Snapshot loading query plan
- Write-back parameter mapping (rankings, next move, new actions)
"""

from datetime import date, datetime, timezone
from unittest.mock import AsyncMock

import pytest

from decision_engine.engine.scoring import ScoreBreakdown
from decision_engine.engine.selector import RankedAction
from decision_engine.models import (
    Action,
    ActionLane,
    ActionState,
    ActionType,
    MomentumTrend,
    RelationshipStage,
    RelationshipTier,
)
from decision_engine.repository import DecisionRepository

TODAY = date(2025, 1, 6)

LEAD_ROW = {
    'id': 'rel_1',
    'user_id': 'user_1',
    'name': 'Ada Lovelace',
    'tier': 'inner',
    'cadence': 'moderate',
    'cadence_days': None,
    'last_interaction_at': datetime(2025, 1, 1, 10, 0, tzinfo=timezone.utc),
    'next_touch_due_at': date(2025, 1, 8),
    'momentum_score': 0.4,
    'momentum_trend': 'declining',
    'relationship_state': 'OPPORTUNITY',
    'next_move_action_id': None,
    'status': 'ACTIVE',
}

ACTION_ROW = {
    'id': 'a1',
    'user_id': 'user_1',
    'person_id': 'rel_1',
    'action_type': 'FOLLOW_UP',
    'state': 'SENT',
    'description': 'Send the deck',
    'due_date': date(2025, 1, 7),
    'estimated_minutes': 10,
    'completed_at': None,
    'snooze_until': None,
    'auto_created': False,
    'created_at': None,
}

EMAIL_ROW = {
    'person_id': 'rel_1',
    'sentiment': 'urgent',
    'open_loops': ['pricing'],
    'received_at': datetime(2025, 1, 5, 9, 0, tzinfo=timezone.utc),
}


@pytest.fixture
def postgres():
    pg = AsyncMock()
    pg.fetch_all = AsyncMock(return_value=[])
    return pg


@pytest.fixture
def repository(postgres) -> DecisionRepository:
    return DecisionRepository(postgres)


class TestReads:
    @pytest.mark.asyncio
    async def test_relationship_mapping(self, repository, postgres):
        postgres.fetch_all.return_value = [LEAD_ROW]

        [rel] = await repository.get_relationships('user_1')

        assert rel.id == 'rel_1'
        assert rel.tier == RelationshipTier.INNER
        assert rel.momentum_trend == MomentumTrend.DECLINING
        assert rel.relationship_state == RelationshipStage.OPPORTUNITY
        assert postgres.fetch_all.await_args.args[1] == {'user_id': 'user_1'}

    @pytest.mark.asyncio
    async def test_relationship_timestamp_columns_become_dates(self, repository, postgres):
        postgres.fetch_all.return_value = [
            {
                **LEAD_ROW,
                'next_touch_due_at': datetime(2025, 1, 8, 14, 30, tzinfo=timezone.utc),
                'earliest_relevant_insight_date': datetime(2025, 1, 9, 8, 15),
            }
        ]

        [rel] = await repository.get_relationships('user_1')

        assert rel.next_touch_due_at == date(2025, 1, 8)
        assert rel.earliest_relevant_insight_date == date(2025, 1, 9)

    @pytest.mark.asyncio
    async def test_action_mapping(self, repository, postgres):
        postgres.fetch_all.return_value = [ACTION_ROW]

        [action] = await repository.get_actions('user_1')

        assert action.relationship_id == 'rel_1'
        assert action.state == ActionState.SENT
        assert action.action_type == ActionType.FOLLOW_UP
        assert action.estimated_minutes == 10

    @pytest.mark.asyncio
    async def test_pending_filter_uses_store_states(self, repository, postgres):
        await repository.get_pending_actions('user_1', 'rel_1')

        query, params = postgres.fetch_all.await_args.args
        assert 'person_id = ANY(:relationship_ids)' in query
        assert 'state = ANY(:states)' in query
        assert params['relationship_ids'] == ['rel_1']
        assert params['states'] == ['NEW', 'SENT', 'SNOOZED']

    @pytest.mark.asyncio
    async def test_email_signals_skip_query_without_relationships(self, repository, postgres):
        assert await repository.get_email_signals('user_1', [], TODAY) == []
        postgres.fetch_all.assert_not_called()

    @pytest.mark.asyncio
    async def test_load_user_snapshot(self, repository, postgres):
        done_row = {**ACTION_ROW, 'id': 'a0', 'state': 'DONE'}
        postgres.fetch_all.side_effect = [[LEAD_ROW], [ACTION_ROW], [done_row], [EMAIL_ROW]]

        snapshot = await repository.load_user_snapshot('user_1', TODAY)

        assert [r.id for r in snapshot.relationships] == ['rel_1']
        assert [a.id for a in snapshot.actions] == ['a1', 'a0']
        assert snapshot.email_signals[0].open_loops == ['pricing']
        email_params = postgres.fetch_all.await_args_list[3].args[1]
        assert email_params['since'] == date(2024, 12, 7)

    @pytest.mark.asyncio
    async def test_load_user_snapshot_without_relationships(self, repository, postgres):
        postgres.fetch_all.side_effect = [[], [{**ACTION_ROW, 'person_id': None}]]

        snapshot = await repository.load_user_snapshot('user_1', TODAY)

        assert snapshot.relationships == []
        assert snapshot.actions[0].relationship_id is None
        assert postgres.fetch_all.await_count == 2


class TestWrites:
    @pytest.mark.asyncio
    async def test_save_action_rankings(self, repository, postgres):
        action = Action(id='a1', user_id='user_1', due_date=TODAY)
        ranked = [
            RankedAction(
                action=action,
                lane=ActionLane.PRIORITY,
                score=ScoreBreakdown(
                    urgency=30, stall_risk=0, value=20, effort_bias=15, total=65
                ),
            )
        ]

        await repository.save_action_rankings(ranked)

        _, params = postgres.execute_many.await_args.args
        assert params == [
            {'id': 'a1', 'user_id': 'user_1', 'lane': 'priority', 'next_move_score': 65}
        ]

    @pytest.mark.asyncio
    async def test_set_next_move(self, repository, postgres):
        await repository.set_next_move('user_1', ['rel_1', 'rel_2'], 'rel_1', 'a1')

        query, params = postgres.execute.await_args.args
        assert 'CASE WHEN id = :relationship_id' in query
        assert params['relationship_id'] == 'rel_1'
        assert params['action_id'] == 'a1'

    @pytest.mark.asyncio
    async def test_set_next_move_without_relationships(self, repository, postgres):
        await repository.set_next_move('user_1', [], None, None)
        postgres.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_create_actions(self, repository, postgres):
        action = Action(
            id='new_1',
            user_id='user_1',
            relationship_id='rel_1',
            action_type=ActionType.POST_CALL,
            due_date=TODAY,
            auto_created=True,
        )

        await repository.create_actions([action])

        _, params = postgres.execute_many.await_args.args
        assert params[0]['person_id'] == 'rel_1'
        assert params[0]['action_type'] == 'POST_CALL'
        assert params[0]['state'] == 'NEW'
        assert params[0]['auto_created'] is True
