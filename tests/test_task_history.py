"""Task history rendering and read gates."""

from datetime import datetime

import pytest

from pm_api.entities import Task, TaskHistory, TaskStatus, User
from pm_api.exceptions import AppError, ErrorCode
from pm_api.services import task_history_service, task_service


def _entry(old, new):
    return TaskHistory(
        task=Task(title="Login page"),
        changed_by=User(name="Dan Developer"),
        old_status=old,
        new_status=new,
        changed_at=datetime(2024, 5, 1, 9, 30, 5),
    )


class TestRenderMessage:
    def test_completed_message(self):
        msg = task_history_service.render_message(_entry(TaskStatus.IN_PROGRESS, TaskStatus.COMPLETED))
        assert msg == "Dan Developer has completed Login page at 2024-05-01 09:30:05"

    def test_status_update_message(self):
        msg = task_history_service.render_message(_entry(TaskStatus.TODO, TaskStatus.IN_PROGRESS))
        assert msg == "Dan Developer has updated Login page's status from TODO to IN_PROGRESS at 2024-05-01 09:30:05"


@pytest.fixture
def worked_task(db, project, dev, membership, make_task):
    task = make_task("T1", assignee=dev)
    task_service.update_task_status(db, dev.id, task.id, project.id, TaskStatus.IN_PROGRESS)
    task_service.update_task_status(db, dev.id, task.id, project.id, TaskStatus.COMPLETED)
    return task


class TestReadGates:
    def test_assignee_reads_newest_first(self, db, dev, worked_task):
        rows = task_history_service.get_task_history(db, dev.id, worked_task.id)
        assert len(rows) == 2
        assert "has completed T1" in rows[0].message
        assert "from TODO to IN_PROGRESS" in rows[1].message

    def test_owner_reads(self, db, pm, worked_task):
        assert len(task_history_service.get_task_history(db, pm.id, worked_task.id)) == 2

    def test_other_developer_rejected(self, db, outsider, worked_task):
        with pytest.raises(AppError) as exc:
            task_history_service.get_task_history(db, outsider.id, worked_task.id)
        assert exc.value.code is ErrorCode.UNAUTHORIZED

    def test_other_manager_rejected(self, db, make_user, worked_task):
        other_pm = make_user("Other PM", "other-pm@example.com", "PROJECT_MANAGER")
        with pytest.raises(AppError) as exc:
            task_history_service.get_task_history(db, other_pm.id, worked_task.id)
        assert exc.value.code is ErrorCode.UNAUTHORIZED

    def test_missing_task(self, db, pm):
        with pytest.raises(AppError) as exc:
            task_history_service.get_task_history(db, pm.id, 404)
        assert exc.value.code is ErrorCode.NOT_FOUND


class TestRecent:
    def test_limit_is_inclusive_cap(self, db, pm, dev, worked_task):
        assert len(task_history_service.get_recent_history_for_my_projects(db, pm.id, limit=1)) == 1
        assert len(task_history_service.get_recent_history_for_my_projects(db, pm.id)) == 2

    def test_my_recent(self, db, dev, outsider, worked_task):
        assert len(task_history_service.get_my_recent_history(db, dev.id)) == 2
        assert task_history_service.get_my_recent_history(db, outsider.id) == []
