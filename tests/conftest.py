"""
Pytest configuration and shared fixtures.

Key fixtures:
- today: Fixed reference day (a Monday) so every test is deterministic
- make_action / make_relationship / make_state: Model factories

All tests run offline; the data store is replaced with mocks.
"""

import sys
from datetime import date, datetime, timezone
from pathlib import Path

import pytest

# Add src to path for imports
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

# Load environment variables
from dotenv import load_dotenv

env_file = Path(__file__).parent.parent / '.env'
if env_file.exists():
    load_dotenv(env_file)

from decision_engine.models import (  # noqa: E402
    Action,
    ActionState,
    ActionType,
    DecisionState,
    Relationship,
)

TODAY = date(2025, 1, 6)  # Monday
USER_ID = 'user_1'


@pytest.fixture
def today() -> date:
    """Fixed reference day."""
    return TODAY


@pytest.fixture
def user_id() -> str:
    return USER_ID


def _action(
    action_id: str = 'a1',
    relationship_id: str | None = 'rel_1',
    due_date: date = TODAY,
    state: ActionState = ActionState.NEW,
    action_type: ActionType = ActionType.OUTREACH,
    estimated_minutes: int | None = 15,
    **kwargs,
) -> Action:
    return Action(
        id=action_id,
        user_id=kwargs.pop('user_id', USER_ID),
        relationship_id=relationship_id,
        due_date=due_date,
        state=state,
        action_type=action_type,
        estimated_minutes=estimated_minutes,
        **kwargs,
    )


def _relationship(rel_id: str = 'rel_1', **kwargs) -> Relationship:
    kwargs.setdefault('name', f'Contact {rel_id}')
    return Relationship(id=rel_id, user_id=kwargs.pop('user_id', USER_ID), **kwargs)


def _state(relationship_id: str = 'rel_1', **kwargs) -> DecisionState:
    kwargs.setdefault('pending_actions_count', 0)
    kwargs.setdefault('overdue_actions_count', 0)
    return DecisionState(
        relationship_id=relationship_id, user_id=kwargs.pop('user_id', USER_ID), **kwargs
    )


def _interaction(days_ago: int) -> datetime:
    d = date.fromordinal(TODAY.toordinal() - days_ago)
    return datetime(d.year, d.month, d.day, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_action():
    """Factory for Action instances (defaults: due today, new, 15 minutes)."""
    return _action


@pytest.fixture
def make_relationship():
    """Factory for Relationship instances."""
    return _relationship


@pytest.fixture
def make_state():
    """Factory for complete DecisionState instances (zero counts by default)."""
    return _state


@pytest.fixture
def interaction_at():
    """Timestamp for an interaction ``days_ago`` days before TODAY, at noon UTC."""
    return _interaction
