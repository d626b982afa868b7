"""
Main pipeline orchestrator for sandbox guest automation.

Provides end-to-end processing for one session:
1. Load and validate the session
2. Summarize unprocessed inbound messages (oldest first)
3. Reply to actionable summaries
4. Create staff tasks for task-worthy summaries
5. Derive follow-up reminders for stale pending tasks
6. Flag urgent summaries for escalation
7. Return the aggregated result
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from ..clients.completion import CompletionClient, create_completion_client
from ..clients.postgres_client import PostgresClient
from ..config import config
from ..errors import (
    GuestAutomationError,
    PipelineError,
    ResponseGenerationError,
    SummarizationError,
    TaskGenerationError,
    ValidationError,
)
from ..logging import PipelineTimer, get_logger, logging_context
from ..models.results import Escalation, FollowUp, GeneratedResponse, SummarizedMessage
from ..models.session import Session
from ..models.task import Task
from ..repository import AutomationRepository
from .escalation import detect_escalations
from .follow_up import FollowUpEvaluator
from .responder import GuestResponder
from .summarizer import MessageSummarizer
from .task_generator import TaskGenerator

logger = get_logger(__name__)

# Error raised when a stage fails with an unclassified exception
STAGE_ERRORS: dict[str, type[PipelineError]] = {
    'summarize': SummarizationError,
    'respond': ResponseGenerationError,
    'create_tasks': TaskGenerationError,
}


def parse_session_id(session_id: UUID | str) -> UUID:
    """Accept a session id as UUID or text."""
    if isinstance(session_id, UUID):
        return session_id
    try:
        return UUID(str(session_id))
    except ValueError as e:
        raise ValidationError(
            'Invalid sandbox session id',
            context={'session_id': str(session_id)},
        ) from e


@dataclass
class PipelineResult:
    """Result of one automation run over a session."""

    session_id: UUID
    account_id: int | None
    run_id: str = field(default_factory=lambda: uuid4().hex[:12])

    summaries: list[SummarizedMessage] = field(default_factory=list)
    responses: list[GeneratedResponse] = field(default_factory=list)
    tasks: list[Task] = field(default_factory=list)
    follow_ups: list[FollowUp] = field(default_factory=list)
    escalations: list[Escalation] = field(default_factory=list)
    success: bool = False

    # Timing
    started_at: datetime = field(default_factory=datetime.now)
    completed_at: datetime | None = None
    processing_time_ms: int | None = None
    stage_timings: dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the dictionary returned to the external caller."""
        return {
            'runId': self.run_id,
            'sessionId': str(self.session_id),
            'accountId': self.account_id,
            'summaries': [s.to_dict() for s in self.summaries],
            'responses': [r.to_dict() for r in self.responses],
            'tasks': [t.model_dump(mode='json') for t in self.tasks],
            'followUps': [f.model_dump(mode='json') for f in self.follow_ups],
            'escalations': [e.to_dict() for e in self.escalations],
            'success': self.success,
            'processingTimeMs': self.processing_time_ms,
            'stageTimings': self.stage_timings,
        }


class AutomationPipeline:
    """
    End-to-end guest automation for one sandbox session.

    Orchestrates:
    - MessageSummarizer: summaries for unprocessed inbound messages
    - GuestResponder: replies to actionable summaries
    - TaskGenerator: staff tasks for task-worthy summaries
    - FollowUpEvaluator: reminders for stale pending tasks
    - detect_escalations: urgent summaries

    Usage:
        pipeline = AutomationPipeline(completion_client, repository)
        result = await pipeline.run_full_automation(session_id, account_id)
    """

    def __init__(
        self,
        completion_client: CompletionClient,
        repository: AutomationRepository,
        history_limit: int | None = None,
        follow_up_threshold_hours: float | None = None,
        temperature: float | None = None,
    ):
        """
        Initialize the pipeline with its collaborators.

        Args:
            completion_client: Completion capability (NullCompletionClient to
                               run on the rule-based fallbacks only)
            repository: Store access
            history_limit: Earlier messages included as summarizer context
            follow_up_threshold_hours: Pending age that triggers a reminder
            temperature: Sampling temperature override for completion calls
        """
        self.completion = completion_client
        self.repository = repository

        self.summarizer = MessageSummarizer(
            completion_client,
            repository,
            history_limit=history_limit or config.HISTORY_LIMIT,
            temperature=temperature,
        )
        self.responder = GuestResponder(completion_client, repository, temperature=temperature)
        self.task_generator = TaskGenerator(repository)
        self.follow_up_evaluator = FollowUpEvaluator(
            repository,
            threshold_hours=(
                follow_up_threshold_hours
                if follow_up_threshold_hours is not None
                else config.FOLLOW_UP_THRESHOLD_HOURS
            ),
        )

    @classmethod
    async def from_env(cls) -> AutomationPipeline:
        """
        Create pipeline from environment variables.

        Expects:
            DATABASE_URL: Postgres URL
            OPENAI_API_KEY: Optional; without it the rule-based fallbacks are used

        The processing-record unique index and lookup indexes are created if
        missing; the conflict-safe ledger insert depends on that index.

        Returns:
            Configured and connected AutomationPipeline
        """
        missing = config.validate()
        if missing:
            raise ValidationError(
                'Missing required configuration',
                context={'missing': missing},
            )

        completion = create_completion_client()
        if not config.completion_enabled():
            logger.warning('pipeline.completion_not_configured')

        postgres = PostgresClient(config.DATABASE_URL)
        await postgres.connect()
        try:
            await postgres.setup_schema()
        except GuestAutomationError:
            await postgres.close()
            await completion.close()
            raise
        return cls(completion, AutomationRepository(postgres))

    async def close(self) -> None:
        """Close all client connections."""
        await self.completion.close()
        await self.repository.postgres.close()

    async def _load_session(self, session_id: UUID, account_id: int | None) -> Session:
        async with self.repository.scope() as scope:
            session = await scope.get_session(session_id)

        if session is None:
            raise ValidationError(
                'Sandbox session not found',
                context={'session_id': str(session_id)},
            )
        if account_id is not None and session.account_id != account_id:
            raise ValidationError(
                'Sandbox session does not belong to account',
                context={'session_id': str(session_id), 'account_id': account_id},
            )
        return session

    async def run_full_automation(
        self,
        session_id: UUID | str,
        account_id: int | None = None,
    ) -> PipelineResult:
        """
        Run every stage for a session, strictly in order.

        Args:
            session_id: Sandbox session to process, as UUID or text
            account_id: Owning account; checked against the session when given

        Returns:
            PipelineResult with the output of every stage

        Raises:
            ValidationError: If the session id is malformed, or the session is
                             missing or owned by another account
            StoreError: If a store read or write fails
            PipelineError: If a stage fails for any other reason; the
                           summarize, respond and create_tasks stages raise
                           their own subclass
        """
        session_id = parse_session_id(session_id)
        timer = PipelineTimer()
        result = PipelineResult(session_id=session_id, account_id=account_id)

        with logging_context(
            run_id=result.run_id,
            session_id=str(session_id),
            account_id=str(account_id) if account_id is not None else None,
        ):
            logger.info('pipeline_started')

            try:
                with timer.stage('load_session'):
                    session = await self._load_session(session_id, account_id)
                result.account_id = session.account_id

                with timer.stage('summarize'):
                    result.summaries = await self.summarizer.summarize_pending(session)
                logger.info('summarize_complete', summaries=len(result.summaries))

                with timer.stage('respond'):
                    result.responses = await self.responder.respond_all(session, result.summaries)
                logger.info('respond_complete', responses=len(result.responses))

                with timer.stage('create_tasks'):
                    result.tasks = await self.task_generator.create_tasks(session, result.summaries)
                logger.info('create_tasks_complete', tasks=len(result.tasks))

                with timer.stage('evaluate_follow_ups'):
                    result.follow_ups = await self.follow_up_evaluator.evaluate_follow_ups(session.id)
                logger.info('evaluate_follow_ups_complete', follow_ups=len(result.follow_ups))

                with timer.stage('detect_escalations'):
                    result.escalations = detect_escalations(result.summaries)
                logger.info('detect_escalations_complete', escalations=len(result.escalations))

            except GuestAutomationError as e:
                logger.error(
                    'pipeline_failed',
                    stage=timer.failed_stage,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                raise
            except Exception as e:
                stage = timer.failed_stage
                logger.error(
                    'pipeline_failed',
                    stage=stage,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                error_class = STAGE_ERRORS.get(stage, PipelineError)
                raise error_class(
                    f'Pipeline failed: {e}', context={'stage': stage or 'unknown'}
                ) from e

            result.success = True
            result.completed_at = datetime.now()
            result.processing_time_ms = int(timer.total_ms)
            result.stage_timings = timer.stages.copy()

            logger.info(
                'pipeline_complete',
                summaries=len(result.summaries),
                responses=len(result.responses),
                tasks=len(result.tasks),
                follow_ups=len(result.follow_ups),
                escalations=len(result.escalations),
                **timer.summary(),
            )
            return result
