"""
Staff task model.

Tasks are created by the task generator. Status transitions belong to the
task-management routes; the pipeline only reads status and creation time.
"""

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

from .summary import Priority


class TaskType(str, Enum):
    """Kind of staff work."""

    MAINTENANCE = 'maintenance'
    CLEANING = 'cleaning'
    INSPECTION = 'inspection'
    GENERAL = 'general'


class TaskStatus(str, Enum):
    """Task lifecycle: pending -> in-progress -> completed, or cancelled."""

    PENDING = 'pending'
    IN_PROGRESS = 'in-progress'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'


OPEN_TASK_STATUSES = (TaskStatus.PENDING, TaskStatus.IN_PROGRESS)


class Task(BaseModel):
    """A unit of staff work derived from a guest message."""

    task_uuid: str
    session_id: UUID
    task_type: TaskType
    title: str
    description: str = ''
    property_id: str | None = Field(default=None, description='Stored as text in sandbox_tasks')
    assignee_name: str
    assignee_role: str
    status: TaskStatus = TaskStatus.PENDING
    priority: Priority = Priority.MEDIUM
    created_from_message_uuid: str | None = None
    created_at: datetime | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
