"""
Structured logging for the guest automation pipeline.

structlog is configured once on import with console rendering; services call
``configure_logging(json_output=True)`` at startup to switch to JSON lines.
Every entry logged inside ``logging_context`` carries the run, session and
account identifiers of the automation run that produced it.
"""

import logging
import sys
import time
from contextlib import contextmanager
from contextvars import ContextVar, Token
from typing import Any, Generator

import structlog
from structlog.types import Processor

from .config import config

# Run-scoped identifiers, keyed by the name they are logged under
_run_id: ContextVar[str | None] = ContextVar('run_id', default=None)
_session_id: ContextVar[str | None] = ContextVar('session_id', default=None)
_account_id: ContextVar[str | None] = ContextVar('account_id', default=None)

_RUN_CONTEXT: dict[str, ContextVar[str | None]] = {
    'run_id': _run_id,
    'session_id': _session_id,
    'account_id': _account_id,
}

# Client libraries that are chatty at INFO
_QUIET_LIBRARIES = ('sqlalchemy.engine', 'asyncpg', 'openai', 'httpx', 'httpcore')


def get_run_id() -> str | None:
    return _run_id.get()


def get_session_id() -> str | None:
    return _session_id.get()


def get_account_id() -> str | None:
    return _account_id.get()


def add_run_context(
    logger: structlog.types.WrappedLogger,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Processor that stamps the current run identifiers onto each entry."""
    for key, var in _RUN_CONTEXT.items():
        value = var.get()
        if value and key not in event_dict:
            event_dict[key] = value
    return event_dict


def configure_logging(
    json_output: bool = False,
    log_level: str | None = None,
) -> None:
    """
    Configure structlog and the standard library root logger.

    Args:
        json_output: Render JSON lines instead of the colored console format
        log_level: Level name overriding config.LOG_LEVEL
    """
    level_num = getattr(logging, (log_level or config.LOG_LEVEL).upper(), logging.INFO)

    logging.basicConfig(format='%(message)s', stream=sys.stdout, level=level_num)
    library_level = level_num if level_num <= logging.DEBUG else logging.WARNING
    for name in _QUIET_LIBRARIES:
        logging.getLogger(name).setLevel(library_level)

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        add_run_context,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt='iso', utc=True),
        structlog.processors.StackInfoRenderer(),
    ]
    if json_output:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level_num),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger, usually named after the calling module."""
    return structlog.get_logger(name)


@contextmanager
def logging_context(
    run_id: str | None = None,
    session_id: str | None = None,
    account_id: str | None = None,
) -> Generator[None, None, None]:
    """
    Bind run identifiers for everything logged inside the block.

    Identifiers left as None keep whatever an enclosing block bound.

    Usage:
        with logging_context(run_id=run_id, session_id="42", account_id="7"):
            logger.info("summarizer.pending_messages", count=3)
    """
    values = {'run_id': run_id, 'session_id': session_id, 'account_id': account_id}
    tokens: list[tuple[ContextVar[str | None], Token]] = [
        (_RUN_CONTEXT[key], _RUN_CONTEXT[key].set(value))
        for key, value in values.items()
        if value is not None
    ]
    try:
        yield
    finally:
        for var, token in reversed(tokens):
            var.reset(token)


class PipelineTimer:
    """
    Wall-clock timings for the stages of one automation run.

    The name of the stage that raised is kept in ``failed_stage`` so the
    orchestrator can report where a run aborted.

    Usage:
        timer = PipelineTimer()
        with timer.stage("summarize"):
            ...
        logger.info("pipeline_complete", **timer.summary())
    """

    def __init__(self):
        self.started: float = time.perf_counter()
        self.stages: dict[str, float] = {}
        self.failed_stage: str | None = None

    @contextmanager
    def stage(self, name: str) -> Generator[None, None, None]:
        began = time.perf_counter()
        try:
            yield
        except BaseException:
            self.failed_stage = name
            raise
        finally:
            self.stages[name] = (time.perf_counter() - began) * 1000

    @property
    def total_ms(self) -> float:
        return (time.perf_counter() - self.started) * 1000

    def summary(self) -> dict[str, Any]:
        """Rounded total and per-stage milliseconds."""
        return {
            'total_ms': round(self.total_ms, 2),
            'stages': {name: round(ms, 2) for name, ms in self.stages.items()},
        }


configure_logging()
