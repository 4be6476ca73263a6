# pm_api/services/project_service.py
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from pm_api.core.database import unit_of_work
from pm_api.entities import Project, ProjectStatus
from pm_api.exceptions import AppError, ErrorCode
from pm_api.models.common import PagedResponse, paged
from pm_api.models.project import (
    CreateProjectRequest, ProjectDetailResponse, ProjectDropdownResponse, ProjectResponse, UpdateProjectRequest,
)
from pm_api.models.team_member import TeamMemberResponse
from pm_api.repositories.project_repository import ProjectRepository, TeamMemberRepository
from pm_api.services.authorization_service import get_project_or_404, require_project_owner

logger = logging.getLogger(__name__)

DETAIL_RECENT_MEMBERS = 4


def _check_dates(project: Project) -> None:
    if project.start_date and project.end_date and project.start_date > project.end_date:
        raise AppError(ErrorCode.INVALID_REQUEST, "Start date cannot be after end date")


def create_project(db: Session, actor_id: int, req: CreateProjectRequest) -> ProjectResponse:
    with unit_of_work(db):
        project = Project(
            name=req.name,
            description=req.description,
            start_date=req.start_date,
            end_date=req.end_date,
            status=ProjectStatus.ACTIVE,
            created_by_id=actor_id,
        )
        _check_dates(project)
        ProjectRepository(db).add(project)
    logger.info("Created project ID %s by user ID %s", project.id, actor_id)
    return ProjectResponse.model_validate(project)


def get_project(db: Session, actor_id: int, project_id: int) -> ProjectResponse:
    project = get_project_or_404(db, project_id)
    require_project_owner(project, actor_id)
    return ProjectResponse.model_validate(project)


def update_project(db: Session, actor_id: int, project_id: int, req: UpdateProjectRequest) -> ProjectResponse:
    with unit_of_work(db):
        project = get_project_or_404(db, project_id)
        require_project_owner(project, actor_id, "Only the project owner can update this project")
        for field, value in req.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(project, field, value)
        _check_dates(project)
    logger.info("Updated project ID %s", project_id)
    return ProjectResponse.model_validate(project)


def list_owned_projects(
    db: Session,
    actor_id: int,
    name: Optional[str] = None,
    status: Optional[ProjectStatus] = None,
    page: int = 0,
    size: int = 10,
) -> PagedResponse:
    rows, total = ProjectRepository(db).find_by_owner(actor_id, name, status, page, size)
    return paged([ProjectResponse.model_validate(p) for p in rows], page, size, total)


def list_my_projects(db: Session, actor_id: int) -> List[ProjectResponse]:
    return [ProjectResponse.model_validate(p) for p in ProjectRepository(db).find_by_member(actor_id)]


def get_project_detail(db: Session, actor_id: int, project_id: int) -> ProjectDetailResponse:
    project = get_project_or_404(db, project_id)
    require_project_owner(project, actor_id, "You are not authorized to view this project")
    recent = TeamMemberRepository(db).find_recent(project_id, DETAIL_RECENT_MEMBERS)
    return ProjectDetailResponse(
        id=project.id,
        name=project.name,
        description=project.description,
        start_date=project.start_date,
        end_date=project.end_date,
        status=project.status,
        team_members=[TeamMemberResponse.from_entity(m) for m in recent],
    )


def get_projects_for_dropdown(
    db: Session, actor_id: int, search: Optional[str] = None, page: int = 0, size: int = 10
) -> PagedResponse:
    rows, total = ProjectRepository(db).find_dropdown_by_owner(actor_id, search, page, size)
    return paged([ProjectDropdownResponse.model_validate(p) for p in rows], page, size, total)


def get_my_projects_for_dropdown(db: Session, actor_id: int) -> List[ProjectDropdownResponse]:
    return [ProjectDropdownResponse.model_validate(p) for p in ProjectRepository(db).find_by_member(actor_id)]
