"""
Guest reply service.

Answers actionable summaries with the completion service, falling back to
category templates, and writes each reply as an outbound message plus its
processing record.
"""

from __future__ import annotations

import time
from datetime import datetime, timezone
from uuid import uuid4

from ..clients.completion import FALLBACK_MODEL, CompletionClient
from ..errors import wrap_completion_error
from ..logging import get_logger
from ..models.message import Message, MessageDirection
from ..models.processing import ProcessingRecord, ProcessingStatus, ProcessingType
from ..models.property import Property
from ..models.reply import Reply
from ..models.results import GeneratedResponse, SummarizedMessage
from ..models.session import Session
from ..models.summary import Summary
from ..prompts.generate_reply import build_reply_prompt
from ..repository import AutomationRepository, RepositoryScope
from .fallback import fallback_reply

logger = get_logger(__name__)

SYSTEM_SENDER = 'System'
DEFAULT_RECIPIENT = 'Guest'
AI_REQUESTOR_ROLE = 'ai'


def new_response_uuid() -> str:
    """Identity for an outbound reply, e.g. ``RESP_1700000000000_3f9a2c1be``."""
    return f'RESP_{int(time.time() * 1000)}_{uuid4().hex[:9]}'


class GuestResponder:
    """
    Generates guest replies for actionable summaries.

    Each summary gets its own completion attempt; a failure for one summary
    only sends that summary to the fallback templates.
    """

    def __init__(
        self,
        completion_client: CompletionClient,
        repository: AutomationRepository,
        temperature: float | None = None,
    ):
        self.completion = completion_client
        self.repository = repository
        self.temperature = temperature

    async def respond_all(
        self,
        session: Session,
        summaries: list[SummarizedMessage],
    ) -> list[GeneratedResponse]:
        """
        Reply to each actionable summary, in input order.

        Args:
            session: The sandbox session
            summaries: Summaries produced by this run

        Returns:
            Replies written during this call
        """
        responses: list[GeneratedResponse] = []
        actionable = [s for s in summaries if s.summary.action_required]
        skipped = len(summaries) - len(actionable)
        if skipped:
            logger.info('responder.skipped_no_action', count=skipped)
        if not actionable:
            return responses

        async with self.repository.scope() as scope:
            prop = await scope.get_property_for_session(session)
            for index, summarized in enumerate(actionable, start=1):
                logger.info(
                    'responder.processing',
                    index=index,
                    total=len(actionable),
                    message_uuid=summarized.message_uuid,
                    category=summarized.summary.category.value,
                    priority=summarized.summary.priority.value,
                )
                response = await self.respond(session, summarized, prop, scope=scope)
                if response is not None:
                    responses.append(response)

        return responses

    async def respond(
        self,
        session: Session,
        summarized: SummarizedMessage,
        prop: Property | None = None,
        scope: RepositoryScope | None = None,
    ) -> GeneratedResponse | None:
        """
        Generate and store a reply for one summary.

        The outbound message and its ``response_generation`` record are
        committed together.

        Args:
            session: The sandbox session
            summarized: Summary to answer
            prop: Property reference data, if the session has one
            scope: Open repository scope to reuse; a new one is opened if omitted

        Returns:
            GeneratedResponse, or None when no action is required
        """
        if not summarized.summary.action_required:
            return None

        reply, model = await self.generate_reply(summarized.summary, prop)

        outbound = Message(
            message_uuid=new_response_uuid(),
            session_id=session.id,
            direction=MessageDirection.OUTBOUND,
            body=reply.message,
            from_number=SYSTEM_SENDER,
            to_number=summarized.from_number or DEFAULT_RECIPIENT,
            timestamp=datetime.now(timezone.utc),
            requestor_role=AI_REQUESTOR_ROLE,
            metadata={
                'generated_from': summarized.message_uuid,
                'summary': summarized.summary.to_output(),
            },
        )
        record = ProcessingRecord(
            session_id=session.id,
            message_uuid=outbound.message_uuid,
            processing_type=ProcessingType.RESPONSE_GENERATION,
            input_data={'summary': summarized.summary.to_output()},
            output_data=reply.to_output(),
            ai_model=model,
            processing_status=ProcessingStatus.COMPLETED,
        )

        if scope is None:
            async with self.repository.scope() as own_scope:
                await self._persist(own_scope, outbound, record)
        else:
            await self._persist(scope, outbound, record)

        logger.info(
            'responder.replied',
            message_uuid=outbound.message_uuid,
            generated_from=summarized.message_uuid,
            model=model,
            escalation_needed=reply.escalation_needed,
        )
        return GeneratedResponse(
            message_uuid=outbound.message_uuid,
            generated_from=summarized.message_uuid,
            response=reply.message,
            metadata=reply,
        )

    async def _persist(
        self,
        scope: RepositoryScope,
        outbound: Message,
        record: ProcessingRecord,
    ) -> None:
        await scope.insert_outbound_message(outbound)
        await scope.insert_processing_record(record)
        await scope.commit()

    async def generate_reply(
        self,
        summary: Summary,
        prop: Property | None,
    ) -> tuple[Reply, str]:
        """
        Generate a reply with the completion service, or a template on failure.

        Returns:
            Tuple of (reply, model identifier that produced it)
        """
        try:
            reply = await self.completion.complete_json(
                build_reply_prompt(summary, prop),
                Reply,
                temperature=self.temperature,
            )
            return reply, self.completion.model
        except Exception as e:
            error = wrap_completion_error(e)
            logger.warning(
                'responder.fallback',
                category=summary.category.value,
                error_type=type(error).__name__,
                error=error.message,
            )
            return fallback_reply(summary), FALLBACK_MODEL
