"""
Follow-up reminders for tasks left pending too long.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from uuid import UUID

from ..logging import get_logger
from ..models.results import FollowUp
from ..models.task import Task, TaskStatus
from ..repository import AutomationRepository

logger = get_logger(__name__)

DEFAULT_THRESHOLD_HOURS = 2.0


def _as_utc(value: datetime) -> datetime:
    # Naive timestamps from the store are UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def hours_pending(task: Task, now: datetime) -> float:
    """Hours between task creation and ``now``; 0 when creation time is unknown."""
    if task.created_at is None:
        return 0.0
    return (_as_utc(now) - _as_utc(task.created_at)).total_seconds() / 3600


def follow_ups_for(
    tasks: list[Task],
    now: datetime,
    threshold_hours: float = DEFAULT_THRESHOLD_HOURS,
) -> list[FollowUp]:
    """Reminders for pending tasks older than the threshold, in task order."""
    follow_ups = []
    for task in tasks:
        if task.status != TaskStatus.PENDING:
            continue
        age = hours_pending(task, now)
        if age > threshold_hours:
            follow_ups.append(
                FollowUp(
                    task_uuid=task.task_uuid,
                    message=(
                        f'Following up on {task.title} - this task has been pending '
                        f'for {math.floor(age + 0.5)} hours.'
                    ),
                )
            )
    return follow_ups


class FollowUpEvaluator:
    """Reads open tasks and derives reminders; writes nothing."""

    def __init__(
        self,
        repository: AutomationRepository,
        threshold_hours: float = DEFAULT_THRESHOLD_HOURS,
    ):
        self.repository = repository
        self.threshold_hours = threshold_hours

    async def evaluate_follow_ups(
        self,
        session_id: UUID,
        now: datetime | None = None,
    ) -> list[FollowUp]:
        """
        Evaluate the open tasks of a session.

        Args:
            session_id: The sandbox session id
            now: Evaluation time (defaults to the current UTC time)

        Returns:
            One reminder per stale pending task
        """
        async with self.repository.scope() as scope:
            tasks = await scope.get_open_tasks(session_id)

        follow_ups = follow_ups_for(tasks, now or datetime.now(timezone.utc), self.threshold_hours)
        logger.info('follow_up.evaluated', open_tasks=len(tasks), reminders=len(follow_ups))
        return follow_ups
