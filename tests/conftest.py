"""
Pytest configuration and shared fixtures.

Key fixtures:
- store / repository: in-memory stand-in for the Postgres repository
- session: sandbox session referencing a property
- sample_property: property record with FAQs
- null_completion / completion_client: completion capability doubles

Live tests create their own clients and skip when OPENAI_API_KEY or
DATABASE_URL is not set.
"""

import os
import sys
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock
from uuid import UUID

import pytest

# Add src to path for imports
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

# Load environment variables
from dotenv import load_dotenv

env_file = Path(__file__).parent.parent / '.env'
if env_file.exists():
    load_dotenv(env_file)

from guest_automation.clients.completion import NullCompletionClient
from guest_automation.models.message import Message, MessageDirection
from guest_automation.models.processing import ProcessingRecord, ProcessingStatus, ProcessingType
from guest_automation.models.property import Faq, Property
from guest_automation.models.session import ScenarioData, Session
from guest_automation.models.task import OPEN_TASK_STATUSES, Task

SESSION_ID = UUID('6f1c2a9e-4b7d-4e0a-9c3f-2d8e5b1a7c40')
ACCOUNT_ID = 7
PROPERTY_ID = 3
BASE_TIME = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


# =============================================================================
# In-memory store
# =============================================================================


class InMemoryStore:
    """
    Tables of the automation schema, held in lists.

    Writes made through a scope are staged and only land on ``commit()``.
    Set ``fail_on[<operation>]`` to an exception to make that operation raise.
    """

    def __init__(self):
        self.sessions: dict[UUID, Session] = {}
        self.properties: dict[int, Property] = {}
        self.messages: list[Message] = []
        self.records: list[ProcessingRecord] = []
        self.tasks: list[Task] = []
        self.fail_on: dict[str, Exception] = {}
        self.commits = 0
        self.scopes_opened = 0
        self.now = BASE_TIME + timedelta(hours=1)

    def add_inbound(self, uuid: str, body: str, minutes: int, session_id: UUID = SESSION_ID) -> Message:
        message = Message(
            message_uuid=uuid,
            session_id=session_id,
            direction=MessageDirection.INBOUND,
            body=body,
            from_number='+15550100',
            to_number='+15550199',
            timestamp=BASE_TIME + timedelta(minutes=minutes),
        )
        self.messages.append(message)
        return message

    def records_of(self, processing_type: ProcessingType) -> list[ProcessingRecord]:
        return [r for r in self.records if r.processing_type == processing_type]

    def outbound(self) -> list[Message]:
        return [m for m in self.messages if m.direction == MessageDirection.OUTBOUND]


class InMemoryScope:
    """Mirrors RepositoryScope over an InMemoryStore."""

    def __init__(self, store: InMemoryStore):
        self.store = store
        self._staged_messages: list[Message] = []
        self._staged_records: list[ProcessingRecord] = []
        self._staged_tasks: list[Task] = []

    def _maybe_fail(self, operation: str) -> None:
        error = self.store.fail_on.get(operation)
        if error is not None:
            raise error

    async def commit(self) -> None:
        self._maybe_fail('commit')
        self.store.messages.extend(self._staged_messages)
        self.store.records.extend(self._staged_records)
        self.store.tasks.extend(self._staged_tasks)
        self._staged_messages.clear()
        self._staged_records.clear()
        self._staged_tasks.clear()
        self.store.commits += 1

    async def get_session(self, session_id: UUID) -> Session | None:
        self._maybe_fail('get_session')
        return self.store.sessions.get(session_id)

    async def get_property_for_session(self, session: Session) -> Property | None:
        self._maybe_fail('get_property')
        if session.property_id is None:
            return None
        return self.store.properties.get(session.property_id)

    async def get_pending_inbound_messages(self, session_id: UUID) -> list[Message]:
        self._maybe_fail('get_pending_inbound_messages')
        done = {
            r.message_uuid
            for r in self.store.records
            if r.session_id == session_id
            and r.processing_type == ProcessingType.SUMMARIZATION
            and r.processing_status == ProcessingStatus.COMPLETED
        }
        pending = [
            m
            for m in self.store.messages
            if m.session_id == session_id
            and m.direction == MessageDirection.INBOUND
            and m.message_uuid not in done
        ]
        return sorted(pending, key=lambda m: m.timestamp)

    async def get_history(self, session_id: UUID, before: datetime, limit: int = 10) -> list[Message]:
        self._maybe_fail('get_history')
        earlier = [
            m for m in self.store.messages if m.session_id == session_id and m.timestamp < before
        ]
        return sorted(earlier, key=lambda m: m.timestamp, reverse=True)[:limit]

    async def has_completed_record(
        self, session_id: UUID, message_uuid: str, processing_type: ProcessingType
    ) -> bool:
        self._maybe_fail('has_completed_record')
        return any(
            r.key == (session_id, message_uuid, processing_type.value)
            and r.processing_status == ProcessingStatus.COMPLETED
            for r in self.store.records
        )

    async def insert_processing_record(self, record: ProcessingRecord) -> bool:
        self._maybe_fail('insert_processing_record')
        existing = self.store.records + self._staged_records
        if record.processing_status == ProcessingStatus.COMPLETED and any(
            r.key == record.key and r.processing_status == ProcessingStatus.COMPLETED
            for r in existing
        ):
            return False
        self._staged_records.append(record.model_copy(update={'processed_at': self.store.now}))
        return True

    async def insert_outbound_message(self, message: Message) -> Message:
        self._maybe_fail('insert_outbound_message')
        stored = message.model_copy(update={'timestamp': self.store.now})
        self._staged_messages.append(stored)
        return stored

    async def insert_task(self, task: Task) -> Task:
        self._maybe_fail('insert_task')
        stored = task.model_copy(update={'created_at': task.created_at or self.store.now})
        self._staged_tasks.append(stored)
        return stored

    async def get_open_tasks(self, session_id: UUID) -> list[Task]:
        self._maybe_fail('get_open_tasks')
        open_tasks = [
            t
            for t in self.store.tasks
            if t.session_id == session_id and t.status in OPEN_TASK_STATUSES
        ]
        return sorted(open_tasks, key=lambda t: t.created_at)


class InMemoryRepository:
    """Mirrors AutomationRepository; uncommitted writes are dropped on scope exit."""

    def __init__(self, store: InMemoryStore):
        self.store = store
        self.postgres = AsyncMock()

    @asynccontextmanager
    async def scope(self):
        self.store.scopes_opened += 1
        yield InMemoryScope(self.store)


# =============================================================================
# Completion doubles
# =============================================================================


class ScriptedCompletion:
    """
    Completion client answering per response model.

    ``responses`` maps a model class name to either a payload dict (validated
    the way OpenAIClient validates JSON), an exception to raise, or a callable
    taking the prompt messages and returning one of those.
    """

    def __init__(self, responses: dict[str, Any], model: str = 'gpt-4o-mini'):
        self.model = model
        self.responses = responses
        self.calls: list[tuple[str, list[dict[str, str]]]] = []
        self.closed = False

    async def complete_json(self, messages, response_model, temperature=None):
        name = response_model.__name__
        self.calls.append((name, messages))
        answer = self.responses[name]
        if callable(answer) and not isinstance(answer, type):
            answer = answer(messages)
        if isinstance(answer, Exception):
            raise answer
        return response_model.model_validate(answer)

    async def close(self) -> None:
        self.closed = True


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def openai_api_key() -> str:
    """Get OpenAI API key from environment."""
    key = os.getenv('OPENAI_API_KEY')
    if not key:
        pytest.skip('OPENAI_API_KEY not set')
    return key


@pytest.fixture
def database_url() -> str:
    """Get the Postgres URL from environment."""
    url = os.getenv('DATABASE_URL')
    if not url:
        pytest.skip('DATABASE_URL not set')
    return url


@pytest.fixture
def sample_property() -> Property:
    return Property(
        id=PROPERTY_ID,
        property_title='Seaside Loft',
        property_location='12 Harbour Road',
        check_in_time='15:00',
        check_out_time='11:00',
        wifi_network_name='Loft-Guest',
        wifi_password='sunny-days',
        bedrooms=2,
        extra_attributes={'hot_tub_hours': '8am-10pm'},
        faqs=[
            Faq(question='Is parking available?', answer='Yes, one space in the garage.'),
            Faq(question='Can I bring a pet?', answer=''),
        ],
    )


@pytest.fixture
def session() -> Session:
    return Session(
        id=SESSION_ID,
        account_id=ACCOUNT_ID,
        scenario_data=ScenarioData(
            property_id=PROPERTY_ID,
            guest_name='Alex Morgan',
            check_in_date='2026-03-01',
            check_out_date='2026-03-04',
        ),
    )


@pytest.fixture
def store(session, sample_property) -> InMemoryStore:
    store = InMemoryStore()
    store.sessions[session.id] = session
    store.properties[sample_property.id] = sample_property
    return store


@pytest.fixture
def repository(store) -> InMemoryRepository:
    return InMemoryRepository(store)


@pytest.fixture
def null_completion() -> NullCompletionClient:
    return NullCompletionClient()


@pytest.fixture
def summary_payload() -> dict[str, Any]:
    """A completion-style summary (camelCase keys)."""
    return {
        'language': 'en',
        'sentiment': 'negative',
        'tone': 'frustrated',
        'actionRequired': True,
        'actionTitle': 'Fix the shower',
        'category': 'maintenance',
        'priority': 'high',
        'keyInformation': ['Shower has no hot water'],
        'suggestedResponse': 'We will send someone today.',
    }


@pytest.fixture
def reply_payload() -> dict[str, Any]:
    return {
        'message': 'So sorry about the shower. A technician is on the way.',
        'requiresFollowUp': True,
        'escalationNeeded': False,
        'taskType': 'maintenance',
    }
