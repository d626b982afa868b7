"""
Tests for follow-up reminders.
"""

from datetime import datetime, timedelta, timezone

import pytest

from conftest import SESSION_ID

from guest_automation.models.task import Task, TaskStatus, TaskType
from guest_automation.pipeline.follow_up import FollowUpEvaluator, follow_ups_for, hours_pending

NOW = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)


def _task(uuid: str, hours_ago: float, status: TaskStatus = TaskStatus.PENDING) -> Task:
    return Task(
        task_uuid=uuid,
        session_id=SESSION_ID,
        task_type=TaskType.MAINTENANCE,
        title=f'Fix {uuid}',
        assignee_name='Maintenance Team',
        assignee_role='Maintenance Staff',
        status=status,
        created_at=NOW - timedelta(hours=hours_ago),
    )


class TestFollowUpsFor:
    """Test reminder derivation."""

    def test_recent_task_gets_no_reminder(self):
        assert follow_ups_for([_task('T1', 1)], NOW) == []

    def test_stale_pending_task_gets_one_reminder(self):
        follow_ups = follow_ups_for([_task('T1', 3)], NOW)

        assert len(follow_ups) == 1
        assert follow_ups[0].task_uuid == 'T1'
        assert follow_ups[0].type == 'reminder'
        assert follow_ups[0].message == (
            'Following up on Fix T1 - this task has been pending for 3 hours.'
        )

    @pytest.mark.parametrize('hours_ago, shown', [(2.5, 3), (3.5, 4), (2.4, 2)])
    def test_hours_round_half_up(self, hours_ago, shown):
        follow_ups = follow_ups_for([_task('T1', hours_ago)], NOW)
        assert follow_ups[0].message.endswith(f'pending for {shown} hours.')

    def test_in_progress_task_never_reminded(self):
        assert follow_ups_for([_task('T1', 30, TaskStatus.IN_PROGRESS)], NOW) == []

    def test_threshold_is_exclusive(self):
        assert follow_ups_for([_task('T1', 2)], NOW) == []

    def test_custom_threshold(self):
        assert len(follow_ups_for([_task('T1', 1)], NOW, threshold_hours=0.5)) == 1

    def test_naive_created_at_treated_as_utc(self):
        task = _task('T1', 0).model_copy(update={'created_at': datetime(2026, 3, 2, 9, 0)})
        assert hours_pending(task, NOW) == pytest.approx(3.0)

    def test_unknown_creation_time(self):
        task = _task('T1', 0).model_copy(update={'created_at': None})
        assert follow_ups_for([task], NOW) == []


class TestFollowUpEvaluator:
    @pytest.mark.asyncio
    async def test_reads_open_tasks_without_writing(self, store, repository):
        store.tasks.extend([
            _task('T_OLD', 5),
            _task('T_NEW', 0.5),
            _task('T_WORKING', 5, TaskStatus.IN_PROGRESS),
            _task('T_DONE', 10, TaskStatus.COMPLETED),
        ])

        follow_ups = await FollowUpEvaluator(repository).evaluate_follow_ups(SESSION_ID, now=NOW)

        assert [f.task_uuid for f in follow_ups] == ['T_OLD']
        assert store.commits == 0
        assert len(store.tasks) == 4
