# pm_api/services/task_history_service.py
from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from pm_api.entities import Task, TaskHistory, TaskStatus, User
from pm_api.exceptions import AppError, ErrorCode
from pm_api.models.task_history import TaskHistoryResponse
from pm_api.repositories.task_repository import TaskHistoryRepository, TaskRepository
from pm_api.services.authorization_service import has_role
from pm_api.services.permission_service import DEVELOPER, PROJECT_MANAGER

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
DEFAULT_RECENT_LIMIT = 7


# ---------- Write (append-only) ----------

def record_transition(
    db: Session,
    task: Task,
    old_status: Optional[TaskStatus],
    new_status: TaskStatus,
    changed_by: User,
) -> TaskHistory:
    entry = TaskHistoryRepository(db).add(TaskHistory(
        task=task,
        old_status=old_status,
        new_status=new_status,
        changed_by=changed_by,
    ))
    logger.info("Task history ID %s: task ID %s %s -> %s by user ID %s",
                entry.id, task.id, old_status, new_status, changed_by.id)
    return entry


def record_bulk_transition(db: Session, tasks: List[Task], new_status: TaskStatus, changed_by: User) -> int:
    """One row per task; old status is read from each task, so call this before mutating them."""
    if not tasks:
        return 0
    entries = [
        TaskHistory(task=t, old_status=t.status, new_status=new_status, changed_by=changed_by)
        for t in tasks
    ]
    TaskHistoryRepository(db).add_all(entries)
    logger.info("Created %d task history records for bulk transition to %s", len(entries), new_status)
    return len(entries)


# ---------- Presentation ----------

def render_message(entry: TaskHistory) -> str:
    actor = entry.changed_by.name
    title = entry.task.title
    ts = entry.changed_at.strftime(TIMESTAMP_FORMAT)
    if entry.new_status == TaskStatus.COMPLETED:
        return f"{actor} has completed {title} at {ts}"
    return (
        f"{actor} has updated {title}'s status from "
        f"{_status_name(entry.old_status)} to {_status_name(entry.new_status)} at {ts}"
    )


def _status_name(status: Optional[TaskStatus]) -> str:
    return status.value if status is not None else "null"


def to_response(entry: TaskHistory) -> TaskHistoryResponse:
    return TaskHistoryResponse(id=entry.id, message=render_message(entry), changed_at=entry.changed_at)


# ---------- Read ----------

def get_task_history(db: Session, actor_id: int, task_id: int) -> List[TaskHistoryResponse]:
    task = TaskRepository(db).get(task_id)
    if task is None:
        raise AppError(ErrorCode.NOT_FOUND, "Task not found")

    if has_role(db, actor_id, DEVELOPER):
        if task.assignee_id != actor_id:
            logger.warning("Developer ID %s attempted to read history of task ID %s not assigned to them",
                           actor_id, task_id)
            raise AppError(ErrorCode.UNAUTHORIZED, "You can only view history of tasks assigned to you")
    elif has_role(db, actor_id, PROJECT_MANAGER):
        if task.project.created_by_id != actor_id:
            logger.warning("Manager ID %s attempted to read history of task ID %s outside their projects",
                           actor_id, task_id)
            raise AppError(ErrorCode.UNAUTHORIZED, "You can only view history of tasks in your projects")
    else:
        raise AppError(ErrorCode.UNAUTHORIZED)

    rows = TaskHistoryRepository(db).find_by_task(task_id)
    logger.info("Retrieved %d task history records for task ID %s", len(rows), task_id)
    return [to_response(r) for r in rows]


def get_recent_history_for_my_projects(
    db: Session, actor_id: int, limit: int = DEFAULT_RECENT_LIMIT
) -> List[TaskHistoryResponse]:
    rows = TaskHistoryRepository(db).find_recent_for_projects_created_by(actor_id, limit)
    return [to_response(r) for r in rows]


def get_my_recent_history(
    db: Session, actor_id: int, limit: int = DEFAULT_RECENT_LIMIT
) -> List[TaskHistoryResponse]:
    rows = TaskHistoryRepository(db).find_recent_for_assignee(actor_id, limit)
    return [to_response(r) for r in rows]
