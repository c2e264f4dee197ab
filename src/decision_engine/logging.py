"""
structlog setup for the decision engine and the scheduler.

Log lines carry the user and relationship a run is working on. Those IDs live
in structlog's own context variables, so they follow the current asyncio task
and are merged into every event by ``merge_contextvars``.
"""

import logging
import sys
import time
from contextlib import contextmanager
from typing import Any, Generator

import structlog
from structlog.types import Processor

from .config import config

RUN_CONTEXT_KEYS = ('user_id', 'relationship_id')


def configure_logging(
    json_output: bool = False,
    log_level: str | None = None,
) -> None:
    """
    Configure structlog.

    Args:
        json_output: JSON lines for deployed services, console rendering otherwise
        log_level: Overrides config.LOG_LEVEL
    """
    level_num = getattr(logging, (log_level or config.LOG_LEVEL).upper(), logging.INFO)
    logging.basicConfig(format='%(message)s', stream=sys.stdout, level=level_num)

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt='iso'),
    ]
    if json_output:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level_num),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def current_run_context() -> dict[str, str]:
    """The user/relationship IDs bound for the current task."""
    bound = structlog.contextvars.get_contextvars()
    return {k: bound[k] for k in RUN_CONTEXT_KEYS if bound.get(k) is not None}


@contextmanager
def logging_context(
    user_id: str | None = None,
    relationship_id: str | None = None,
) -> Generator[None, None, None]:
    """
    Bind run IDs for the duration of the block; outer values come back on exit.

    Usage:
        with logging_context(user_id='user_1', relationship_id='rel_9'):
            logger.info('scheduler.slot_found')
    """
    ids = {'user_id': user_id, 'relationship_id': relationship_id}
    with structlog.contextvars.bound_contextvars(
        **{k: v for k, v in ids.items() if v is not None}
    ):
        yield


class StageTimer:
    """
    Wall-clock milliseconds per named stage of a service call.

    Usage:
        timer = StageTimer()
        with timer.stage('load_snapshot'):
            ...
        logger.info('decision_service.run_complete', **timer.summary())
    """

    def __init__(self):
        self.started = time.perf_counter()
        self.stages: dict[str, float] = {}

    @contextmanager
    def stage(self, name: str) -> Generator[None, None, None]:
        begin = time.perf_counter()
        try:
            yield
        finally:
            self.stages[name] = (time.perf_counter() - begin) * 1000

    def summary(self) -> dict[str, Any]:
        return {
            'total_ms': round((time.perf_counter() - self.started) * 1000, 2),
            'stages': {name: round(ms, 2) for name, ms in self.stages.items()},
        }


configure_logging(json_output=False)
