"""
Staff task generation from actionable summaries.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from uuid import uuid4

from ..logging import get_logger
from ..models.results import SummarizedMessage
from ..models.session import Session
from ..models.summary import Category, Priority, Summary
from ..models.task import Task, TaskStatus, TaskType
from ..repository import AutomationRepository, RepositoryScope

logger = get_logger(__name__)

TASK_CATEGORIES = frozenset({Category.MAINTENANCE, Category.CLEANING})
DEFAULT_TASK_TITLE = 'Guest Request'


@dataclass(frozen=True)
class Assignment:
    """Task type and assignee for a summary category."""

    task_type: TaskType
    assignee_name: str
    assignee_role: str


CATEGORY_ASSIGNMENTS: dict[Category, Assignment] = {
    Category.MAINTENANCE: Assignment(TaskType.MAINTENANCE, 'Maintenance Team', 'Maintenance Staff'),
    Category.CLEANING: Assignment(TaskType.CLEANING, 'Cleaning Team', 'Cleaning Staff'),
    Category.COMPLAINT: Assignment(TaskType.INSPECTION, 'Property Manager', 'Management'),
}
DEFAULT_ASSIGNMENT = Assignment(TaskType.GENERAL, 'Support Team', 'Support Staff')


def needs_task(summary: Summary) -> bool:
    """Task-worthy: actionable, and either a task category or urgent."""
    if not summary.action_required:
        return False
    return summary.category in TASK_CATEGORIES or summary.priority == Priority.URGENT


def assignment_for(category: Category | str) -> Assignment:
    """Look up who handles a category; unknown categories go to support."""
    return CATEGORY_ASSIGNMENTS.get(category, DEFAULT_ASSIGNMENT)


def describe_task(summary: Summary) -> str:
    return (
        f'Category: {summary.category.value}\n'
        f'Priority: {summary.priority.value}\n'
        f"Details: {', '.join(summary.key_information)}"
    )


def new_task_uuid() -> str:
    return f'TASK_{int(time.time() * 1000)}_{uuid4().hex[:9]}'


def build_task(session: Session, summarized: SummarizedMessage) -> Task:
    """Build the (unsaved) task for a task-worthy summary."""
    summary = summarized.summary
    assignment = assignment_for(summary.category)
    return Task(
        task_uuid=new_task_uuid(),
        session_id=session.id,
        task_type=assignment.task_type,
        title=summary.action_title or DEFAULT_TASK_TITLE,
        description=describe_task(summary),
        property_id=str(session.property_id) if session.property_id is not None else None,
        assignee_name=assignment.assignee_name,
        assignee_role=assignment.assignee_role,
        status=TaskStatus.PENDING,
        priority=summary.priority,
        created_from_message_uuid=summarized.message_uuid,
        metadata={'summary': summary.to_output()},
    )


class TaskGenerator:
    """Creates staff tasks for summaries that need hands-on work."""

    def __init__(self, repository: AutomationRepository):
        self.repository = repository

    async def create_tasks(
        self,
        session: Session,
        summaries: list[SummarizedMessage],
    ) -> list[Task]:
        """
        Create a task for each task-worthy summary, in input order.

        Returns:
            Tasks created during this call
        """
        tasks: list[Task] = []
        candidates = [s for s in summaries if needs_task(s.summary)]
        if not candidates:
            return tasks

        async with self.repository.scope() as scope:
            for summarized in candidates:
                task = await self.maybe_create_task(session, summarized, scope=scope)
                if task is not None:
                    tasks.append(task)
        return tasks

    async def maybe_create_task(
        self,
        session: Session,
        summarized: SummarizedMessage,
        scope: RepositoryScope | None = None,
    ) -> Task | None:
        """
        Create and store a task if the summary calls for one.

        Args:
            session: The sandbox session
            summarized: Summary produced by this run
            scope: Open repository scope to reuse; a new one is opened if omitted

        Returns:
            The stored Task, or None when the summary is not task-worthy
        """
        if not needs_task(summarized.summary):
            return None

        task = build_task(session, summarized)
        if scope is None:
            async with self.repository.scope() as own_scope:
                stored = await own_scope.insert_task(task)
                await own_scope.commit()
        else:
            stored = await scope.insert_task(task)
            await scope.commit()

        logger.info(
            'task_generator.created',
            task_uuid=stored.task_uuid,
            task_type=stored.task_type.value,
            assignee=stored.assignee_name,
            message_uuid=summarized.message_uuid,
        )
        return stored
