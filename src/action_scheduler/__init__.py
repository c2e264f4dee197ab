"""
Action Scheduler

Assigns conflict-free due dates to a batch of proposed actions for one
relationship, capped at a number of pending actions per day. Reuses the
decision_engine models, errors, logging and data store.
"""

__version__ = '0.1.0'

from .errors import SchedulingError, SchedulingValidationError
from .models import ProposedAction, ScheduledAction, ScheduleResult
from .scheduler import build_capacity_map, schedule_actions, schedule_one
from .service import SchedulingService

__all__ = [
    '__version__',
    'SchedulingError',
    'SchedulingValidationError',
    'ProposedAction',
    'ScheduledAction',
    'ScheduleResult',
    'build_capacity_map',
    'schedule_actions',
    'schedule_one',
    'SchedulingService',
]
