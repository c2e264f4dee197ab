"""Tests for relationship and action lane assignment."""

from datetime import date, timedelta

import pytest

from decision_engine.engine.lanes import (
    assign_action_lane,
    assign_relationship_lane,
    business_days_between,
)
from decision_engine.models import ActionLane, ActionState, ActionType, MomentumTrend


class TestBusinessDays:
    def test_inclusive_weekdays(self):
        assert business_days_between(date(2025, 1, 6), date(2025, 1, 10)) == 5
        assert business_days_between(date(2025, 1, 6), date(2025, 1, 13)) == 6

    def test_weekend_only(self):
        assert business_days_between(date(2025, 1, 11), date(2025, 1, 12)) == 0

    def test_end_before_start(self):
        assert business_days_between(date(2025, 1, 10), date(2025, 1, 6)) == 0


class TestRelationshipLane:
    def test_overdue_is_priority(self, make_state, today):
        result = assign_relationship_lane(make_state(overdue_actions_count=1), today)
        assert result.lane == ActionLane.PRIORITY
        assert 'overdue' in result.reason
        assert not result.degraded

    def test_insight_within_five_business_days(self, make_state, today):
        state = make_state(earliest_relevant_insight_date=today + timedelta(days=4))
        assert assign_relationship_lane(state, today).lane == ActionLane.PRIORITY

    def test_insight_beyond_window(self, make_state, today):
        state = make_state(earliest_relevant_insight_date=today + timedelta(days=7))
        assert assign_relationship_lane(state, today).lane == ActionLane.ON_DECK

    def test_declining_past_cadence(self, make_state, today):
        state = make_state(
            momentum_trend=MomentumTrend.DECLINING,
            days_since_last_interaction=20,
            cadence_days=14,
        )
        assert assign_relationship_lane(state, today).lane == ActionLane.PRIORITY

    def test_declining_within_cadence_is_not_priority(self, make_state, today):
        state = make_state(
            momentum_trend=MomentumTrend.DECLINING,
            days_since_last_interaction=10,
            cadence_days=14,
        )
        assert assign_relationship_lane(state, today).lane == ActionLane.ON_DECK

    def test_awaiting_response_after_a_week(self, make_state, today):
        state = make_state(
            awaiting_response=True, days_since_last_interaction=8, pending_actions_count=1
        )
        assert assign_relationship_lane(state, today).lane == ActionLane.PRIORITY

    def test_awaiting_response_within_a_week(self, make_state, today):
        state = make_state(
            awaiting_response=True, days_since_last_interaction=7, pending_actions_count=1
        )
        assert assign_relationship_lane(state, today).lane == ActionLane.IN_MOTION

    def test_pending_is_in_motion(self, make_state, today):
        result = assign_relationship_lane(make_state(pending_actions_count=2), today)
        assert result.lane == ActionLane.IN_MOTION
        assert result.reason == 'Has 2 pending action(s)'

    def test_next_touch_window(self, make_state, today):
        soon = make_state(next_touch_due_at=today + timedelta(days=7))
        later = make_state(next_touch_due_at=today + timedelta(days=8))
        assert assign_relationship_lane(soon, today).lane == ActionLane.IN_MOTION
        assert assign_relationship_lane(later, today).lane == ActionLane.ON_DECK

    def test_quiet_relationship_is_on_deck(self, make_state, today):
        assert assign_relationship_lane(make_state(), today).lane == ActionLane.ON_DECK


class TestDegradedState:
    def test_none(self, today):
        result = assign_relationship_lane(None, today)
        assert result.lane == ActionLane.ON_DECK
        assert result.degraded

    def test_missing_counts(self, today):
        result = assign_relationship_lane({'relationship_id': 'rel_1'}, today)
        assert result.lane == ActionLane.ON_DECK
        assert result.degraded

    def test_missing_counts_never_promoted(self, today):
        state = {'relationship_id': 'rel_1', 'overdue_actions_count': 3}
        result = assign_relationship_lane(state, today)
        assert result.lane == ActionLane.ON_DECK
        assert result.degraded

    @pytest.mark.parametrize(
        'state',
        [
            {'pending_actions_count': 1, 'overdue_actions_count': 0},
            {'relationship_id': 'rel_1', 'pending_actions_count': 'many'},
            {'relationship_id': 'rel_1', 'overdue_actions_count': -1},
        ],
    )
    def test_malformed_mapping(self, today, state):
        result = assign_relationship_lane(state, today)
        assert result.lane == ActionLane.ON_DECK
        assert result.degraded

    def test_valid_mapping(self, today):
        state = {'relationship_id': 'rel_1', 'pending_actions_count': 1, 'overdue_actions_count': 0}
        assert assign_relationship_lane(state, today).lane == ActionLane.IN_MOTION


class TestActionLane:
    def test_due_within_two_days(self, make_action, today):
        action = make_action(due_date=today + timedelta(days=2))
        assert assign_action_lane(action, ActionLane.ON_DECK, today).lane == ActionLane.PRIORITY

    def test_overdue(self, make_action, today):
        action = make_action(due_date=today - timedelta(days=3))
        result = assign_action_lane(action, ActionLane.ON_DECK, today)
        assert result.lane == ActionLane.PRIORITY
        assert 'overdue' in result.reason

    def test_high_priority_type_in_active_state(self, make_action, today):
        action = make_action(
            due_date=today + timedelta(days=10),
            action_type=ActionType.FOLLOW_UP,
            state=ActionState.SENT,
        )
        assert assign_action_lane(action, ActionLane.ON_DECK, today).lane == ActionLane.PRIORITY

    def test_high_priority_type_snoozed(self, make_action, today):
        action = make_action(
            due_date=today + timedelta(days=10),
            action_type=ActionType.CALL_PREP,
            state=ActionState.SNOOZED,
        )
        result = assign_action_lane(action, ActionLane.PRIORITY, today)
        assert result.lane == ActionLane.IN_MOTION

    def test_in_motion_needs_active_relationship(self, make_action, today):
        action = make_action(due_date=today + timedelta(days=14))
        assert assign_action_lane(action, ActionLane.IN_MOTION, today).lane == ActionLane.IN_MOTION
        assert assign_action_lane(action, ActionLane.ON_DECK, today).lane == ActionLane.ON_DECK

    def test_long_range(self, make_action, today):
        action = make_action(due_date=today + timedelta(days=15))
        assert assign_action_lane(action, ActionLane.PRIORITY, today).lane == ActionLane.ON_DECK
