from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from pm_api.deps import get_db, require_access
from pm_api.entities import ProjectStatus
from pm_api.models.auth import Actor
from pm_api.models.common import ApiResponse, success
from pm_api.models.project import CreateProjectRequest, UpdateProjectRequest
from pm_api.services import project_service
from pm_api.services.permission_service import DEVELOPER, PROJECT_MANAGER

router = APIRouter(prefix="/api/projects", tags=["projects"])


@router.post("", response_model=ApiResponse, summary="Create a project owned by the caller")
def create_project(
    req: CreateProjectRequest,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_access(role=PROJECT_MANAGER, authority="PROJECT_CREATE")),
):
    return success(project_service.create_project(db, actor.id, req), "Project created successfully")


@router.get("", response_model=ApiResponse, summary="Projects owned by the caller")
def list_projects(
    name: Optional[str] = None,
    status: Optional[ProjectStatus] = None,
    page: int = Query(0, ge=0),
    size: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_access(role=PROJECT_MANAGER, authority="PROJECT_VIEW")),
):
    return success(project_service.list_owned_projects(db, actor.id, name, status, page, size))


@router.get("/my-projects", response_model=ApiResponse, summary="Projects the caller is a member of")
def my_projects(
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_access(authority="PROJECT_VIEW")),
):
    return success(project_service.list_my_projects(db, actor.id))


@router.get("/dropdown", response_model=ApiResponse, summary="Owned projects as id/name pairs, sorted by name")
def projects_dropdown(
    search: Optional[str] = None,
    page: int = Query(0, ge=0),
    size: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_access(role=PROJECT_MANAGER, authority="PROJECT_VIEW")),
):
    return success(project_service.get_projects_for_dropdown(db, actor.id, search, page, size))


@router.get("/my-projects/dropdown", response_model=ApiResponse, summary="Member projects as id/name pairs")
def my_projects_dropdown(
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_access(role=DEVELOPER, authority="PROJECT_VIEW")),
):
    return success(project_service.get_my_projects_for_dropdown(db, actor.id))


@router.get("/{project_id}/detail", response_model=ApiResponse, summary="Project with its latest members")
def project_detail(
    project_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_access(role=PROJECT_MANAGER, authority="PROJECT_VIEW")),
):
    return success(project_service.get_project_detail(db, actor.id, project_id))


@router.get("/{project_id}", response_model=ApiResponse)
def get_project(
    project_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_access(role=PROJECT_MANAGER, authority="PROJECT_VIEW")),
):
    return success(project_service.get_project(db, actor.id, project_id))


@router.put("/{project_id}", response_model=ApiResponse)
def update_project(
    project_id: int,
    req: UpdateProjectRequest,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_access(role=PROJECT_MANAGER, authority="PROJECT_UPDATE")),
):
    return success(project_service.update_project(db, actor.id, project_id, req), "Project updated successfully")
