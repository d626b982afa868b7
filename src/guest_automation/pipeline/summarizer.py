"""
Guest message summarization service.

Summarizes unprocessed inbound messages with the completion service, falling
back to keyword rules, and records each summary in the processing ledger so
a message is summarized at most once.
"""

from __future__ import annotations

import json
from contextlib import asynccontextmanager
from typing import AsyncIterator

from ..clients.completion import FALLBACK_MODEL, CompletionClient
from ..errors import wrap_completion_error
from ..logging import get_logger
from ..models.context import MessageContext
from ..models.message import Message
from ..models.processing import ProcessingRecord, ProcessingStatus, ProcessingType
from ..models.results import SummarizedMessage
from ..models.session import Session
from ..models.summary import Summary
from ..prompts.summarize_message import build_summary_prompt
from ..repository import AutomationRepository, RepositoryScope
from .context_builder import DEFAULT_HISTORY_LIMIT, build_message_context
from .fallback import classify_message

logger = get_logger(__name__)


class MessageSummarizer:
    """
    Produces one Summary per inbound message.

    Uses the injected completion client; on any completion failure the
    keyword classifier produces the summary instead.
    """

    def __init__(
        self,
        completion_client: CompletionClient,
        repository: AutomationRepository,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
        temperature: float | None = None,
    ):
        """
        Initialize the summarizer.

        Args:
            completion_client: Completion capability (may be a null client)
            repository: Store access
            history_limit: Maximum earlier messages included as context
            temperature: Sampling temperature override for completion calls
        """
        self.completion = completion_client
        self.repository = repository
        self.history_limit = history_limit
        self.temperature = temperature

    @asynccontextmanager
    async def _scope(self, scope: RepositoryScope | None) -> AsyncIterator[RepositoryScope]:
        if scope is not None:
            yield scope
            return
        async with self.repository.scope() as own_scope:
            yield own_scope

    async def summarize_pending(self, session: Session) -> list[SummarizedMessage]:
        """
        Summarize every unprocessed inbound message of a session.

        Messages are handled one at a time, oldest first, on one connection.

        Args:
            session: The sandbox session

        Returns:
            Newly produced summaries in message timestamp order
        """
        summaries: list[SummarizedMessage] = []

        async with self.repository.scope() as scope:
            messages = await scope.get_pending_inbound_messages(session.id)
            logger.info('summarizer.pending_messages', count=len(messages))
            if not messages:
                return summaries

            prop = await scope.get_property_for_session(session)

            for message in messages:
                history = await scope.get_history(
                    session.id, message.timestamp, self.history_limit
                )
                context = build_message_context(
                    message, history, session, prop, limit=self.history_limit
                )
                summarized = await self.summarize(session, message, context, scope=scope)
                if summarized is not None:
                    summaries.append(summarized)

        return summaries

    async def summarize(
        self,
        session: Session,
        message: Message,
        context: MessageContext,
        scope: RepositoryScope | None = None,
    ) -> SummarizedMessage | None:
        """
        Summarize one message unless it has already been summarized.

        The summary is only returned once its processing record is committed.
        If another run committed first (existing record, or a conflicting
        insert) nothing is returned.

        Args:
            session: The sandbox session
            message: Inbound message to summarize
            context: Context built for the message
            scope: Open repository scope to reuse; a new one is opened if omitted

        Returns:
            SummarizedMessage, or None if the message was already processed
        """
        async with self._scope(scope) as active:
            already_done = await active.has_completed_record(
                session.id, message.message_uuid, ProcessingType.SUMMARIZATION
            )
            if already_done:
                logger.info('summarizer.skipped_processed', message_uuid=message.message_uuid)
                return None

            summary, model = await self.generate_summary(context, message)

            record = ProcessingRecord(
                session_id=session.id,
                message_uuid=message.message_uuid,
                processing_type=ProcessingType.SUMMARIZATION,
                input_data={
                    'message': message.body,
                    'context': json.loads(context.model_dump_json(by_alias=True)),
                },
                output_data=summary.to_output(),
                ai_model=model,
                processing_status=ProcessingStatus.COMPLETED,
            )
            inserted = await active.insert_processing_record(record)
            await active.commit()

        if not inserted:
            logger.info('summarizer.lost_race', message_uuid=message.message_uuid)
            return None

        logger.info(
            'summarizer.summarized',
            message_uuid=message.message_uuid,
            category=summary.category.value,
            priority=summary.priority.value,
            action_required=summary.action_required,
            model=model,
        )
        return SummarizedMessage(
            message_uuid=message.message_uuid,
            original_message=message.body,
            from_number=message.from_number,
            summary=summary,
        )

    async def generate_summary(
        self,
        context: MessageContext,
        message: Message,
    ) -> tuple[Summary, str]:
        """
        Summarize with the completion service, or the keyword rules on failure.

        Returns:
            Tuple of (summary, model identifier that produced it)
        """
        try:
            summary = await self.completion.complete_json(
                build_summary_prompt(context, message.body),
                Summary,
                temperature=self.temperature,
            )
            return summary, self.completion.model
        except Exception as e:
            error = wrap_completion_error(e)
            logger.warning(
                'summarizer.fallback',
                message_uuid=message.message_uuid,
                error_type=type(error).__name__,
                error=error.message,
            )
            return classify_message(message.body), FALLBACK_MODEL
