# pm_api/services/task_service.py
"""
Task use cases. Each mutation runs read -> validate -> write task -> write
history inside the caller's session and commits once; any error rolls the
whole sequence back.
"""
from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from pm_api.core.database import unit_of_work
from pm_api.entities import Task, TaskPriority, TaskStatus, User
from pm_api.exceptions import AppError, ErrorCode
from pm_api.models.common import PagedResponse, paged
from pm_api.models.task import (
    CreateTaskRequest, TaskResponse, UpcomingDueTaskResponse, UpdateTaskRequest,
)
from pm_api.repositories.task_repository import TaskRepository
from pm_api.repositories.user_repository import UserRepository
from pm_api.services import task_history_service, task_state
from pm_api.services.authorization_service import (
    can_view_member_tasks, get_project_or_404, is_team_member, require_project_owner,
    require_team_member,
)

logger = logging.getLogger(__name__)

UPCOMING_DUE_DAYS = 3
DUPLICATE_TITLE_MESSAGE = "Task with this title already exists in the project"


def _get_user_or_404(db: Session, user_id: int) -> User:
    user = UserRepository(db).get(user_id)
    if user is None:
        raise AppError(ErrorCode.USER_NOT_FOUND, f"User not found with ID: {user_id}")
    return user


def _get_task_or_404(db: Session, task_id: int, for_update: bool = False) -> Task:
    task = TaskRepository(db).get(task_id, for_update=for_update)
    if task is None:
        raise AppError(ErrorCode.NOT_FOUND, f"Task not found with ID: {task_id}")
    return task


def _check_dates(start: Optional[date], due: Optional[date]) -> None:
    if start is not None and due is not None and start > due:
        raise AppError(ErrorCode.INVALID_REQUEST, "Start date cannot be after due date")


# ===== CREATE =====
def create_task(db: Session, actor_id: int, project_id: int, req: CreateTaskRequest) -> TaskResponse:
    with unit_of_work(db):
        project = get_project_or_404(db, project_id)
        require_project_owner(project, actor_id, "You are not authorized to create tasks in this project")

        tasks = TaskRepository(db)
        if tasks.exists_by_title(req.title, project_id):
            logger.warning("Duplicate task title '%s' in project ID %s", req.title, project_id)
            raise AppError(ErrorCode.DUPLICATE_ENTITY, DUPLICATE_TITLE_MESSAGE)
        _check_dates(req.start_date, req.due_date)

        if req.assignee_id is not None:
            _get_user_or_404(db, req.assignee_id)
            require_team_member(db, req.assignee_id, project_id,
                                "Cannot assign task to a user who is not a member of the project")

        try:
            task = tasks.add(Task(
                title=req.title,
                description=req.description,
                priority=req.priority or TaskPriority.MEDIUM,
                status=task_state.initial_status(req.assignee_id),
                start_date=req.start_date,
                due_date=req.due_date,
                project_id=project_id,
                assignee_id=req.assignee_id,
                created_by_id=actor_id,
            ))
        except IntegrityError as e:
            raise AppError(ErrorCode.DUPLICATE_ENTITY, DUPLICATE_TITLE_MESSAGE) from e

    db.refresh(task)
    logger.info("Created task ID %s in project ID %s by user ID %s", task.id, project_id, actor_id)
    return TaskResponse.from_entity(task)


# ===== ASSIGN =====
def assign_task(db: Session, actor_id: int, task_id: int, user_id: int) -> TaskResponse:
    logger.info("Assigning task ID %s to user ID %s", task_id, user_id)
    with unit_of_work(db):
        task = _get_task_or_404(db, task_id, for_update=True)
        task_state.check_assignable(task)

        project = task.project
        require_project_owner(project, actor_id, "You are not authorized to assign tasks in this project")
        _get_user_or_404(db, user_id)
        require_team_member(db, user_id, project.id,
                            "Cannot assign task to a user who is not a member of the project")

        task_state.assign(task, user_id)

    db.refresh(task)
    logger.info("Assigned task ID %s to user ID %s", task_id, user_id)
    return TaskResponse.from_entity(task)


# ===== STATUS =====
def update_task_status(
    db: Session, actor_id: int, task_id: int, project_id: int, new_status: TaskStatus
) -> TaskResponse:
    logger.info("Updating status of task ID %s in project ID %s to %s", task_id, project_id, new_status)
    with unit_of_work(db):
        task = _get_task_or_404(db, task_id, for_update=True)
        actor = _get_user_or_404(db, actor_id)

        old_status = task_state.change_status(task, project_id, new_status)
        db.flush()
        task_history_service.record_transition(db, task, old_status, new_status, actor)

    db.refresh(task)
    logger.info("Task ID %s status %s -> %s", task_id, old_status, new_status)
    return TaskResponse.from_entity(task)


# ===== EDIT =====
def update_task(
    db: Session, actor_id: int, task_id: int, project_id: int, req: UpdateTaskRequest
) -> TaskResponse:
    with unit_of_work(db):
        task = _get_task_or_404(db, task_id, for_update=True)
        if task.project_id != project_id:
            raise AppError(ErrorCode.INVALID_KEY, "Task does not belong to the specified project")
        require_project_owner(task.project, actor_id, "You are not authorized to edit tasks in this project")

        if req.title is not None and req.title != task.title:
            if TaskRepository(db).exists_by_title(req.title, project_id, exclude_task_id=task_id):
                raise AppError(ErrorCode.DUPLICATE_ENTITY, DUPLICATE_TITLE_MESSAGE)
            task.title = req.title

        start = req.start_date if req.start_date is not None else task.start_date
        due = req.due_date if req.due_date is not None else task.due_date
        _check_dates(start, due)
        task.start_date, task.due_date = start, due

        if req.description is not None:
            task.description = req.description
        if req.priority is not None:
            task.priority = req.priority
        try:
            db.flush()
        except IntegrityError as e:
            raise AppError(ErrorCode.DUPLICATE_ENTITY, DUPLICATE_TITLE_MESSAGE) from e

    db.refresh(task)
    logger.info("Edited task ID %s by user ID %s", task_id, actor_id)
    return TaskResponse.from_entity(task)


# ===== READ =====
def get_task_detail(db: Session, actor_id: int, task_id: int) -> TaskResponse:
    task = _get_task_or_404(db, task_id)
    require_project_owner(task.project, actor_id, "You are not authorized to view this task")
    return TaskResponse.from_entity(task)


def get_unassigned_tasks(
    db: Session,
    actor_id: int,
    project_id: int,
    search: Optional[str] = None,
    priority: Optional[TaskPriority] = None,
    page: int = 0,
    size: int = 10,
) -> PagedResponse:
    project = get_project_or_404(db, project_id)
    require_project_owner(project, actor_id, "You are not authorized to view tasks in this project")
    rows, total = TaskRepository(db).find_unassigned(project_id, search, priority, page, size)
    return paged([TaskResponse.from_entity(t) for t in rows], page, size, total)


def get_project_tasks(
    db: Session,
    actor_id: int,
    project_id: int,
    search: Optional[str] = None,
    status: Optional[TaskStatus] = None,
    priority: Optional[TaskPriority] = None,
    sort_by: str = "dueDate",
    sort_direction: str = "asc",
    page: int = 0,
    size: int = 10,
) -> PagedResponse:
    project = get_project_or_404(db, project_id)
    require_project_owner(project, actor_id, "You are not authorized to view tasks in this project")
    rows, total = TaskRepository(db).find_by_project(
        project_id, search, status, priority, sort_by, sort_direction, page, size
    )
    logger.info("Retrieved %d tasks for project ID %s", total, project_id)
    return paged([TaskResponse.from_entity(t) for t in rows], page, size, total)


def get_my_tasks_in_project(db: Session, actor_id: int, project_id: int) -> List[TaskResponse]:
    get_project_or_404(db, project_id)
    if not is_team_member(db, actor_id, project_id):
        logger.warning("User ID %s is not a member of project ID %s", actor_id, project_id)
        raise AppError(ErrorCode.UNAUTHORIZED, "You are not authorized to view tasks in this project")
    rows = TaskRepository(db).find_by_project_and_assignee(project_id, actor_id)
    return [TaskResponse.from_entity(t) for t in rows]


def get_member_tasks_in_project(
    db: Session, actor_id: int, project_id: int, user_id: int
) -> List[TaskResponse]:
    if not can_view_member_tasks(db, actor_id, project_id, user_id):
        raise AppError(ErrorCode.UNAUTHORIZED)
    _get_user_or_404(db, user_id)
    rows = TaskRepository(db).find_by_project_and_assignee(project_id, user_id)
    logger.info("Retrieved %d tasks of user ID %s in project ID %s", len(rows), user_id, project_id)
    return [TaskResponse.from_entity(t) for t in rows]


def get_my_upcoming_due_tasks(
    db: Session, actor_id: int, today: Optional[date] = None
) -> List[UpcomingDueTaskResponse]:
    today = today or date.today()
    rows = TaskRepository(db).find_upcoming_due(actor_id, today, today + timedelta(days=UPCOMING_DUE_DAYS))
    return [UpcomingDueTaskResponse.from_entity(t) for t in rows]
