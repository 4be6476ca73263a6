from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from pm_api.deps import get_db, require_access
from pm_api.entities import TaskPriority, TaskStatus
from pm_api.exceptions import AppError, ErrorCode
from pm_api.models.auth import Actor
from pm_api.models.common import ApiResponse, success
from pm_api.models.task import (
    AssignTaskRequest, CreateTaskRequest, UpdateTaskRequest, UpdateTaskStatusRequest,
)
from pm_api.services import task_service
from pm_api.services.authorization_service import can_update_task_status
from pm_api.services.permission_service import PROJECT_MANAGER

router = APIRouter(prefix="/api/tasks", tags=["tasks"])


@router.post("/projects/{project_id}", response_model=ApiResponse, summary="Create a task in a project")
def create_task(
    project_id: int,
    req: CreateTaskRequest,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_access(role=PROJECT_MANAGER, authority="TASK_CREATE")),
):
    return success(task_service.create_task(db, actor.id, project_id, req), "Task created successfully")


@router.get("/projects/{project_id}/unassigned", response_model=ApiResponse)
def unassigned_tasks(
    project_id: int,
    search: Optional[str] = None,
    priority: Optional[TaskPriority] = None,
    page: int = Query(0, ge=0),
    size: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_access(role=PROJECT_MANAGER, authority="TASK_VIEW")),
):
    return success(task_service.get_unassigned_tasks(db, actor.id, project_id, search, priority, page, size))


@router.get("/projects/{project_id}/all-tasks", response_model=ApiResponse)
def all_project_tasks(
    project_id: int,
    search: Optional[str] = None,
    status: Optional[TaskStatus] = None,
    priority: Optional[TaskPriority] = None,
    sort_by: str = Query("dueDate", alias="sortBy"),
    sort_direction: str = Query("asc", alias="sortDirection"),
    page: int = Query(0, ge=0),
    size: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_access(role=PROJECT_MANAGER, authority="TASK_VIEW")),
):
    return success(task_service.get_project_tasks(
        db, actor.id, project_id, search, status, priority, sort_by, sort_direction, page, size
    ))


@router.put("/{task_id}/assign", response_model=ApiResponse, summary="Assign an unassigned task")
def assign_task(
    task_id: int,
    req: AssignTaskRequest,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_access(role=PROJECT_MANAGER, authority="TASK_UPDATE")),
):
    return success(task_service.assign_task(db, actor.id, task_id, req.user_id), "Task assigned successfully")


@router.get("/projects/{project_id}/my-tasks", response_model=ApiResponse)
def my_tasks(
    project_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_access(authority="TASK_VIEW")),
):
    return success(task_service.get_my_tasks_in_project(db, actor.id, project_id))


@router.get("/projects/{project_id}/members/{user_id}/tasks", response_model=ApiResponse)
def member_tasks(
    project_id: int,
    user_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_access(authority="TASK_VIEW")),
):
    return success(task_service.get_member_tasks_in_project(db, actor.id, project_id, user_id))


@router.get("/upcoming-due", response_model=ApiResponse, summary="My tasks due within three days")
def upcoming_due(
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_access(authority="TASK_VIEW")),
):
    return success(task_service.get_my_upcoming_due_tasks(db, actor.id))


@router.put("/projects/{project_id}/{task_id}/status", response_model=ApiResponse)
def update_status(
    project_id: int,
    task_id: int,
    req: UpdateTaskStatusRequest,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_access(authority="TASK_UPDATE")),
):
    if not can_update_task_status(db, actor.id, task_id, project_id):
        raise AppError(ErrorCode.UNAUTHORIZED)
    return success(
        task_service.update_task_status(db, actor.id, task_id, project_id, req.status),
        "Task status updated successfully",
    )


@router.put("/projects/{project_id}/{task_id}", response_model=ApiResponse, summary="Edit task details")
def update_task(
    project_id: int,
    task_id: int,
    req: UpdateTaskRequest,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_access(role=PROJECT_MANAGER, authority="TASK_UPDATE")),
):
    return success(task_service.update_task(db, actor.id, task_id, project_id, req), "Task updated successfully")


@router.get("/{task_id}", response_model=ApiResponse)
def task_detail(
    task_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_access(role=PROJECT_MANAGER, authority="TASK_VIEW")),
):
    return success(task_service.get_task_detail(db, actor.id, task_id))
