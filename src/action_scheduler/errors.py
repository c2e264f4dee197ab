"""
Custom exceptions for the Action Scheduler.

Subclasses the base error hierarchy from decision_engine.errors. The scheduling
algorithm itself never raises; these cover the service boundary.
"""

from decision_engine.errors import PipelineError


class SchedulingError(PipelineError):
    """Base exception for all scheduling errors."""

    pass


class SchedulingValidationError(SchedulingError):
    """Scheduling input was rejected (empty batch, cap or horizon below 1)."""

    pass
