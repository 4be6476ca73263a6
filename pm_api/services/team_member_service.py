# pm_api/services/team_member_service.py
from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from pm_api.core.database import unit_of_work
from pm_api.entities import Specialization, TaskStatus, TeamMember
from pm_api.exceptions import AppError, ErrorCode
from pm_api.models.common import PagedResponse, paged
from pm_api.models.team_member import (
    AddTeamMemberRequest, SpecializationResponse, TeamMemberResponse, TeamMemberWithWorkloadResponse,
)
from pm_api.repositories.project_repository import TeamMemberRepository
from pm_api.repositories.task_repository import TaskRepository
from pm_api.repositories.user_repository import SpecializationRepository, UserRepository
from pm_api.services import task_history_service, task_state
from pm_api.services.authorization_service import (
    get_project_or_404, require_project_owner, require_team_member,
)

logger = logging.getLogger(__name__)


def _resolve_specialization(db: Session, specialization_id: Optional[int]) -> Optional[Specialization]:
    if specialization_id is None:
        return None
    specialization = SpecializationRepository(db).get(specialization_id)
    if specialization is None:
        raise AppError(ErrorCode.NOT_FOUND, f"Specialization not found with ID: {specialization_id}")
    return specialization


def add_team_members(
    db: Session, actor_id: int, project_id: int, requests: List[AddTeamMemberRequest]
) -> List[TeamMemberResponse]:
    with unit_of_work(db):
        project = get_project_or_404(db, project_id)
        require_project_owner(project, actor_id, "Only the project owner can add team members")

        users = UserRepository(db)
        members = TeamMemberRepository(db)
        seen = set()
        created: List[TeamMember] = []
        for req in requests:
            user = users.get(req.user_id)
            if user is None:
                raise AppError(ErrorCode.USER_NOT_FOUND, f"User not found with ID: {req.user_id}")
            if req.user_id in seen or members.exists(req.user_id, project_id):
                raise AppError(
                    ErrorCode.DUPLICATE_ENTITY,
                    f"User {user.name} is already a member of this project",
                )
            seen.add(req.user_id)
            created.append(TeamMember(
                user=user,
                project=project,
                specialization=_resolve_specialization(db, req.specialization_id),
            ))
        try:
            members.add_all(created)
        except IntegrityError as e:
            logger.warning("Concurrent membership insert for project ID %s", project_id)
            raise AppError(ErrorCode.DUPLICATE_ENTITY, "One of these users is already a member of this project") from e

    logger.info("Added %d team members to project ID %s", len(created), project_id)
    return [TeamMemberResponse.from_entity(m) for m in created]


def list_team_members(
    db: Session,
    actor_id: int,
    project_id: int,
    search: Optional[str] = None,
    specialization_id: Optional[int] = None,
    page: int = 0,
    size: int = 10,
) -> PagedResponse:
    project = get_project_or_404(db, project_id)
    require_project_owner(project, actor_id, "You are not authorized to view members of this project")
    rows, total = TeamMemberRepository(db).find_by_project(
        project_id, search, specialization_id, page=page, size=size
    )
    return paged([TeamMemberResponse.from_entity(m) for m in rows], page, size, total)


def list_team_members_with_workload(db: Session, actor_id: int, project_id: int) -> List[TeamMemberWithWorkloadResponse]:
    """Workload counts every task assigned to the member across all projects."""
    project = get_project_or_404(db, project_id)
    require_project_owner(project, actor_id, "You are not authorized to view members of this project")
    tasks = TaskRepository(db)
    rows, _ = TeamMemberRepository(db).find_by_project(project_id, size=10_000)
    return [
        TeamMemberWithWorkloadResponse(
            **TeamMemberResponse.from_entity(m).model_dump(),
            task_count=tasks.count_by_assignee(m.user_id),
        )
        for m in rows
    ]


def remove_team_member(db: Session, actor_id: int, team_member_id: int) -> int:
    """
    Removes a membership and unassigns every task the member holds in the
    project. Returns the number of tasks that were unassigned.
    """
    with unit_of_work(db):
        members = TeamMemberRepository(db)
        member = members.get(team_member_id)
        if member is None:
            raise AppError(ErrorCode.NOT_FOUND, f"Team member not found with ID: {team_member_id}")

        project = member.project
        require_project_owner(project, actor_id, "Only the project owner can remove team members")
        actor = UserRepository(db).get(actor_id)
        if actor is None:
            raise AppError(ErrorCode.USER_NOT_FOUND)

        assigned = TaskRepository(db).find_by_project_and_assignee(project.id, member.user_id, for_update=True)
        count = task_history_service.record_bulk_transition(db, assigned, TaskStatus.UNASSIGNED, actor)
        for task in assigned:
            task_state.force_unassign(task)
        members.delete(member)

    for task in assigned:
        db.refresh(task)
    logger.info("Removed team member ID %s from project ID %s, unassigned %d tasks",
                team_member_id, project.id, count)
    return count


def get_my_team(db: Session, actor_id: int, project_id: int) -> List[TeamMemberResponse]:
    get_project_or_404(db, project_id)
    require_team_member(db, actor_id, project_id, "You are not a member of this project")
    rows, _ = TeamMemberRepository(db).find_by_project(project_id, exclude_user_id=actor_id, size=10_000)
    return [TeamMemberResponse.from_entity(m) for m in rows]


def list_specializations(db: Session) -> List[SpecializationResponse]:
    return [SpecializationResponse(id=s.id, name=s.name) for s in SpecializationRepository(db).list_all()]
