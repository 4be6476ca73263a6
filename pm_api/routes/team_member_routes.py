from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from pm_api.deps import get_db, require_access
from pm_api.models.auth import Actor
from pm_api.models.common import ApiResponse, success
from pm_api.models.team_member import AddTeamMemberRequest
from pm_api.services import team_member_service
from pm_api.services.permission_service import PROJECT_MANAGER

router = APIRouter(prefix="/api/team-members", tags=["team-members"])


@router.post("/projects/{project_id}", response_model=ApiResponse, summary="Add members to a project")
def add_members(
    project_id: int,
    req: List[AddTeamMemberRequest],
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_access(role=PROJECT_MANAGER, authority="TEAM_CREATE")),
):
    return success(
        team_member_service.add_team_members(db, actor.id, project_id, req),
        "Team members added successfully",
    )


@router.get("/projects/{project_id}", response_model=ApiResponse)
def list_members(
    project_id: int,
    search: Optional[str] = None,
    specialization_id: Optional[int] = Query(None, alias="specializationId"),
    page: int = Query(0, ge=0),
    size: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_access(role=PROJECT_MANAGER, authority="TEAM_VIEW")),
):
    return success(team_member_service.list_team_members(
        db, actor.id, project_id, search, specialization_id, page, size
    ))


@router.get("/projects/{project_id}/workload", response_model=ApiResponse)
def members_with_workload(
    project_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_access(role=PROJECT_MANAGER, authority="TEAM_VIEW")),
):
    return success(team_member_service.list_team_members_with_workload(db, actor.id, project_id))


@router.get("/projects/{project_id}/my-team", response_model=ApiResponse, summary="Other members of my project")
def my_team(
    project_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_access(authority="TEAM_VIEW")),
):
    return success(team_member_service.get_my_team(db, actor.id, project_id))


@router.delete("/{team_member_id}", response_model=ApiResponse)
def remove_member(
    team_member_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_access(role=PROJECT_MANAGER, authority="TEAM_DELETE")),
):
    count = team_member_service.remove_team_member(db, actor.id, team_member_id)
    return success({"unassigned_tasks": count}, "Team member removed successfully")
