from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from pm_api.deps import get_db, require_access
from pm_api.models.auth import Actor
from pm_api.models.common import ApiResponse, success
from pm_api.services import task_history_service
from pm_api.services.permission_service import DEVELOPER, PROJECT_MANAGER

router = APIRouter(prefix="/api/task-history", tags=["task-history"])


@router.get("/recent", response_model=ApiResponse, summary="Latest changes across my projects")
def recent(
    limit: int = Query(task_history_service.DEFAULT_RECENT_LIMIT, ge=1, le=100),
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_access(role=PROJECT_MANAGER, authority="TASK_HISTORY_VIEW")),
):
    return success(task_history_service.get_recent_history_for_my_projects(db, actor.id, limit))


@router.get("/my-recent", response_model=ApiResponse, summary="Latest changes on tasks assigned to me")
def my_recent(
    limit: int = Query(task_history_service.DEFAULT_RECENT_LIMIT, ge=1, le=100),
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_access(role=DEVELOPER, authority="TASK_HISTORY_VIEW")),
):
    return success(task_history_service.get_my_recent_history(db, actor.id, limit))


@router.get("/tasks/{task_id}", response_model=ApiResponse)
def task_history(
    task_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_access(role=PROJECT_MANAGER, authority="TASK_HISTORY_VIEW")),
):
    return success(task_history_service.get_task_history(db, actor.id, task_id))


@router.get("/my-tasks/{task_id}", response_model=ApiResponse)
def my_task_history(
    task_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_access(role=DEVELOPER, authority="TASK_HISTORY_VIEW")),
):
    return success(task_history_service.get_task_history(db, actor.id, task_id))
