"""
Repository for sandbox automation data in Postgres.

Provides:
- Session and property lookups
- Pending-message and history queries for the summarizer
- Idempotent processing-record inserts
- Outbound message and task inserts
- Open-task queries for follow-up evaluation

Every query runs on the single connection held by a RepositoryScope. Writes
are not committed until the caller calls ``commit()``, so a logical step that
spans several inserts (a reply message plus its processing record) lands
atomically or not at all.
"""

from __future__ import annotations

import json
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, AsyncIterator
from uuid import UUID

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection

from .clients.postgres_client import PostgresClient
from .errors import wrap_store_error
from .logging import get_logger
from .models.message import Message, MessageDirection
from .models.processing import ProcessingRecord, ProcessingType
from .models.property import Property, property_from_row
from .models.session import Session
from .models.task import OPEN_TASK_STATUSES, Task

logger = get_logger(__name__)

_MESSAGE_COLUMNS = """
    message_uuid, sandbox_session_id, message_body, message_type,
    from_number, to_number, timestamp, requestor_role, sandbox_metadata
"""


def _load_json(value: Any) -> dict[str, Any]:
    """Accept JSONB values whether the driver decoded them or not."""
    if value is None:
        return {}
    if isinstance(value, dict):
        return value
    if isinstance(value, (str, bytes)):
        try:
            loaded = json.loads(value)
        except ValueError:
            return {}
        return loaded if isinstance(loaded, dict) else {}
    return {}


def _row_to_message(row: dict[str, Any]) -> Message:
    direction = (
        MessageDirection.OUTBOUND
        if row.get('message_type') == MessageDirection.OUTBOUND.value
        else MessageDirection.INBOUND
    )
    return Message(
        message_uuid=row['message_uuid'],
        session_id=row['sandbox_session_id'],
        direction=direction,
        body=row.get('message_body') or '',
        from_number=row.get('from_number'),
        to_number=row.get('to_number'),
        timestamp=row['timestamp'],
        requestor_role=row.get('requestor_role'),
        metadata=_load_json(row.get('sandbox_metadata')),
    )


def _row_to_task(row: dict[str, Any]) -> Task:
    return Task(
        task_uuid=row['task_uuid'],
        session_id=row['sandbox_session_id'],
        task_type=row['task_type'],
        title=row.get('title') or '',
        description=row.get('description') or '',
        property_id=row.get('property_id'),
        assignee_name=row.get('assignee_name') or '',
        assignee_role=row.get('assignee_role') or '',
        status=row['status'],
        priority=row.get('priority') or 'medium',
        created_from_message_uuid=row.get('created_from_message_uuid'),
        created_at=row.get('created_at'),
        metadata=_load_json(row.get('metadata')),
    )


class RepositoryScope:
    """
    Repository operations bound to one borrowed connection.

    Obtain one through ``AutomationRepository.scope()``.
    """

    def __init__(self, conn: AsyncConnection):
        self._conn = conn

    async def _fetch_all(self, sql: str, params: dict[str, Any], operation: str) -> list[dict[str, Any]]:
        try:
            result = await self._conn.execute(text(sql), params)
            return [dict(row) for row in result.mappings().all()]
        except SQLAlchemyError as e:
            raise wrap_store_error(e, context={'operation': operation}) from e

    async def _fetch_one(self, sql: str, params: dict[str, Any], operation: str) -> dict[str, Any] | None:
        rows = await self._fetch_all(sql, params, operation)
        return rows[0] if rows else None

    async def commit(self) -> None:
        """Commit the writes issued since the last commit."""
        try:
            await self._conn.commit()
        except SQLAlchemyError as e:
            raise wrap_store_error(e, context={'operation': 'commit'}) from e

    # =========================================================================
    # Sessions and properties
    # =========================================================================

    async def get_session(self, session_id: UUID) -> Session | None:
        """Load a sandbox session by id."""
        row = await self._fetch_one(
            """
            SELECT id, account_id, scenario_data, is_active, created_at, updated_at
            FROM sandbox_sessions
            WHERE id = :session_id
            """,
            {'session_id': session_id},
            'get_session',
        )
        if row is None:
            return None
        row['scenario_data'] = _load_json(row.get('scenario_data'))
        return Session.from_row(row)

    async def get_property_for_session(self, session: Session) -> Property | None:
        """
        Resolve the property referenced by the session's scenario, with FAQs.

        Returns None when the scenario has no usable property reference or the
        property row no longer exists.
        """
        if session.property_id is None:
            return None

        row = await self._fetch_one(
            'SELECT * FROM properties WHERE id = :property_id',
            {'property_id': session.property_id},
            'get_property',
        )
        if row is None:
            logger.warning('repository.property_not_found', property_id=session.property_id)
            return None

        faqs = await self._fetch_all(
            """
            SELECT question, answer
            FROM faqs
            WHERE property_id = :property_id
            ORDER BY id ASC
            """,
            {'property_id': session.property_id},
            'get_faqs',
        )
        return property_from_row(row, faqs)

    # =========================================================================
    # Messages
    # =========================================================================

    async def get_pending_inbound_messages(self, session_id: UUID) -> list[Message]:
        """Inbound messages without a completed summarization record, oldest first."""
        rows = await self._fetch_all(
            f"""
            SELECT {_MESSAGE_COLUMNS}
            FROM message_log ml
            WHERE ml.sandbox_session_id = :session_id
            AND ml.is_sandbox = TRUE
            AND ml.message_type = 'Inbound'
            AND NOT EXISTS (
                SELECT 1 FROM sandbox_ai_processing sap
                WHERE sap.sandbox_session_id = ml.sandbox_session_id
                AND sap.message_uuid = ml.message_uuid
                AND sap.processing_type = 'summarization'
                AND sap.processing_status = 'completed'
            )
            ORDER BY ml.timestamp ASC
            """,
            {'session_id': session_id},
            'get_pending_inbound_messages',
        )
        return [_row_to_message(r) for r in rows]

    async def get_history(
        self,
        session_id: UUID,
        before: datetime,
        limit: int = 10,
    ) -> list[Message]:
        """Up to ``limit`` messages strictly before ``before``, newest first."""
        rows = await self._fetch_all(
            f"""
            SELECT {_MESSAGE_COLUMNS}
            FROM message_log
            WHERE sandbox_session_id = :session_id
            AND timestamp < :before
            ORDER BY timestamp DESC
            LIMIT :limit
            """,
            {'session_id': session_id, 'before': before, 'limit': limit},
            'get_history',
        )
        return [_row_to_message(r) for r in rows]

    async def insert_outbound_message(self, message: Message) -> Message:
        """Insert a reply into message_log; account and timestamp are assigned by the database."""
        row = await self._fetch_one(
            """
            INSERT INTO message_log (
                account_id, message_uuid, timestamp, from_number, to_number,
                message_body, message_type, requestor_role, is_sandbox,
                sandbox_session_id, sandbox_metadata
            ) VALUES (
                (SELECT account_id FROM sandbox_sessions WHERE id = :session_id),
                :message_uuid, NOW(), :from_number, :to_number,
                :message_body, :message_type, :requestor_role, TRUE,
                :session_id, :sandbox_metadata
            )
            RETURNING timestamp
            """,
            {
                'session_id': message.session_id,
                'message_uuid': message.message_uuid,
                'from_number': message.from_number,
                'to_number': message.to_number,
                'message_body': message.body,
                'message_type': message.direction.value,
                'requestor_role': message.requestor_role,
                'sandbox_metadata': json.dumps(message.metadata),
            },
            'insert_outbound_message',
        )
        logger.debug('repository.insert_outbound_message', message_uuid=message.message_uuid)
        if row and row.get('timestamp') is not None:
            return message.model_copy(update={'timestamp': row['timestamp']})
        return message

    # =========================================================================
    # Processing records
    # =========================================================================

    async def has_completed_record(
        self,
        session_id: UUID,
        message_uuid: str,
        processing_type: ProcessingType,
    ) -> bool:
        """True if the stage already completed for this message."""
        row = await self._fetch_one(
            """
            SELECT 1 AS found
            FROM sandbox_ai_processing
            WHERE sandbox_session_id = :session_id
            AND message_uuid = :message_uuid
            AND processing_type = :processing_type
            AND processing_status = 'completed'
            LIMIT 1
            """,
            {
                'session_id': session_id,
                'message_uuid': message_uuid,
                'processing_type': processing_type.value,
            },
            'has_completed_record',
        )
        return row is not None

    async def insert_processing_record(self, record: ProcessingRecord) -> bool:
        """
        Insert a processing record.

        Completed records are guarded by the unique processing key: a
        conflicting insert is skipped and reported as False, meaning another
        run already completed this stage for the message.

        Returns:
            True if the row was inserted
        """
        row = await self._fetch_one(
            """
            INSERT INTO sandbox_ai_processing (
                sandbox_session_id, message_uuid, processing_type,
                input_data, output_data, ai_model, processing_status, processed_at
            ) VALUES (
                :session_id, :message_uuid, :processing_type,
                :input_data, :output_data, :ai_model, :processing_status, NOW()
            )
            ON CONFLICT (sandbox_session_id, message_uuid, processing_type)
                WHERE processing_status = 'completed'
            DO NOTHING
            RETURNING processed_at
            """,
            {
                'session_id': record.session_id,
                'message_uuid': record.message_uuid,
                'processing_type': record.processing_type.value,
                'input_data': json.dumps(record.input_data),
                'output_data': json.dumps(record.output_data),
                'ai_model': record.ai_model,
                'processing_status': record.processing_status.value,
            },
            'insert_processing_record',
        )
        inserted = row is not None
        logger.debug(
            'repository.insert_processing_record',
            message_uuid=record.message_uuid,
            processing_type=record.processing_type.value,
            inserted=inserted,
        )
        return inserted

    # =========================================================================
    # Tasks
    # =========================================================================

    async def insert_task(self, task: Task) -> Task:
        """Insert a staff task and return it with its stored creation time."""
        row = await self._fetch_one(
            """
            INSERT INTO sandbox_tasks (
                sandbox_session_id, task_uuid, task_type, title, description,
                property_id, assignee_name, assignee_role, status, priority,
                created_from_message_uuid, metadata
            ) VALUES (
                :session_id, :task_uuid, :task_type, :title, :description,
                :property_id, :assignee_name, :assignee_role, :status, :priority,
                :created_from_message_uuid, :metadata
            )
            RETURNING created_at
            """,
            {
                'session_id': task.session_id,
                'task_uuid': task.task_uuid,
                'task_type': task.task_type.value,
                'title': task.title,
                'description': task.description,
                'property_id': task.property_id,
                'assignee_name': task.assignee_name,
                'assignee_role': task.assignee_role,
                'status': task.status.value,
                'priority': task.priority.value,
                'created_from_message_uuid': task.created_from_message_uuid,
                'metadata': json.dumps(task.metadata),
            },
            'insert_task',
        )
        logger.debug('repository.insert_task', task_uuid=task.task_uuid)
        if row and row.get('created_at') is not None:
            return task.model_copy(update={'created_at': row['created_at']})
        return task

    async def get_open_tasks(self, session_id: UUID) -> list[Task]:
        """Pending and in-progress tasks, oldest first."""
        rows = await self._fetch_all(
            """
            SELECT *
            FROM sandbox_tasks
            WHERE sandbox_session_id = :session_id
            AND status IN (:pending, :in_progress)
            ORDER BY created_at ASC
            """,
            {
                'session_id': session_id,
                'pending': OPEN_TASK_STATUSES[0].value,
                'in_progress': OPEN_TASK_STATUSES[1].value,
            },
            'get_open_tasks',
        )
        return [_row_to_task(r) for r in rows]


class AutomationRepository:
    """
    Entry point to the store for pipeline stages.

    Usage:
        repository = AutomationRepository(postgres_client)
        async with repository.scope() as scope:
            messages = await scope.get_pending_inbound_messages(session_id)
    """

    def __init__(self, postgres_client: PostgresClient):
        self.postgres = postgres_client

    @asynccontextmanager
    async def scope(self) -> AsyncIterator[RepositoryScope]:
        """Borrow one connection; it is released on exit even if the body raises."""
        async with self.postgres.connection() as conn:
            yield RepositoryScope(conn)
