"""
Relationship Decision Engine

Classifies a user's relationships and pending actions into lanes, scores each
action, and picks the single best next move. Pure core plus async services
around a Postgres data store.
"""

__version__ = '0.1.0'

# Re-export key classes for convenience
from .engine import (
    DecisionEngine,
    DecisionEngineResult,
    BestActionResult,
    RankedAction,
    ScoreBreakdown,
)
from .repository import DecisionRepository
from .service import DecisionService
from .logging import (
    configure_logging,
    get_logger,
    logging_context,
    StageTimer,
)
from .errors import (
    DecisionEngineError,
    DataStoreError,
    DataStoreConnectionError,
    DataStoreQueryError,
    PipelineError,
)

__all__ = [
    # Version
    '__version__',
    # Engine
    'DecisionEngine',
    'DecisionEngineResult',
    'BestActionResult',
    'RankedAction',
    'ScoreBreakdown',
    # Services
    'DecisionRepository',
    'DecisionService',
    # Logging
    'configure_logging',
    'get_logger',
    'logging_context',
    'StageTimer',
    # Errors
    'DecisionEngineError',
    'DataStoreError',
    'DataStoreConnectionError',
    'DataStoreQueryError',
    'PipelineError',
]
