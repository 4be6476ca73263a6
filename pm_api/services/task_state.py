# pm_api/services/task_state.py
"""
Task status rules.

UNASSIGNED -> TODO -> IN_PROGRESS -> COMPLETED, ARCHIVED from any active
state, and back to UNASSIGNED only from ARCHIVED (or through the
team-member removal override). A task has an assignee iff its status is not
UNASSIGNED.
"""
from __future__ import annotations

from typing import Optional

from pm_api.entities import Task, TaskStatus
from pm_api.exceptions import AppError, ErrorCode


def initial_status(assignee_id: Optional[int]) -> TaskStatus:
    return TaskStatus.UNASSIGNED if assignee_id is None else TaskStatus.TODO


def check_assignable(task: Task) -> None:
    if task.assignee_id is not None:
        raise AppError(ErrorCode.INVALID_KEY, "This task already has an assignee")


def assign(task: Task, user_id: int) -> None:
    check_assignable(task)
    task.assignee_id = user_id
    task.status = TaskStatus.TODO


def check_status_change(task: Task, project_id: int, new_status: TaskStatus) -> None:
    if task.project_id != project_id:
        raise AppError(ErrorCode.INVALID_KEY, "Task does not belong to the specified project")
    if task.assignee_id is None:
        raise AppError(ErrorCode.INVALID_KEY, "Cannot update status of an unassigned task")
    if new_status == TaskStatus.UNASSIGNED and task.status != TaskStatus.ARCHIVED:
        raise AppError(
            ErrorCode.INVALID_KEY,
            "Task status can only be changed to UNASSIGNED from ARCHIVED status",
        )


def change_status(task: Task, project_id: int, new_status: TaskStatus) -> TaskStatus:
    """Validate and apply a status change. Returns the previous status."""
    check_status_change(task, project_id, new_status)
    old_status = task.status
    if new_status == TaskStatus.UNASSIGNED:
        task.assignee_id = None
    task.status = new_status
    return old_status


def force_unassign(task: Task) -> TaskStatus:
    """Administrative override used when the assignee leaves the project."""
    old_status = task.status
    task.assignee_id = None
    task.status = TaskStatus.UNASSIGNED
    return old_status


def is_consistent(task: Task) -> bool:
    return (task.status == TaskStatus.UNASSIGNED) == (task.assignee_id is None)
