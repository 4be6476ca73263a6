# pm_api/services/authorization_service.py
"""
Relational authorization checks.

Ownership, membership and assignment can change faster than a token lives,
so every check here re-reads the database instead of trusting token claims.
Step-style gates raise AppError; predicates used inline return a bool.
"""
from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.orm import Session

from pm_api.entities import Project
from pm_api.exceptions import AppError, ErrorCode
from pm_api.repositories.project_repository import ProjectRepository, TeamMemberRepository
from pm_api.repositories.task_repository import TaskRepository
from pm_api.repositories.user_repository import UserRepository
from pm_api.services.permission_service import DEVELOPER, PROJECT_MANAGER

logger = logging.getLogger(__name__)


# ---------- Primitive facts ----------

def has_role(db: Session, user_id: int, role_name: str) -> bool:
    user = UserRepository(db).get(user_id)
    if user is None:
        logger.warning("Role check for unknown user ID %s", user_id)
        return False
    if user.role is None:
        logger.warning("User ID %s has no role assigned", user_id)
        return False
    return user.role.name == role_name


def is_project_owner(project: Project, user_id: int) -> bool:
    return project.created_by_id is not None and project.created_by_id == user_id


def is_team_member(db: Session, user_id: int, project_id: int) -> bool:
    return TeamMemberRepository(db).exists(user_id, project_id)


# ---------- Gates ----------

def get_project_or_404(db: Session, project_id: int) -> Project:
    project = ProjectRepository(db).get(project_id)
    if project is None:
        logger.warning("Project ID %s not found", project_id)
        raise AppError(ErrorCode.NOT_FOUND, f"Project not found with ID: {project_id}")
    return project


def require_project_owner(project: Project, actor_id: int, message: Optional[str] = None) -> None:
    if not is_project_owner(project, actor_id):
        logger.warning("User ID %s is not the owner of project ID %s (owner %s)",
                       actor_id, project.id, project.created_by_id)
        raise AppError(ErrorCode.UNAUTHORIZED, message or "You are not the owner of this project")


def require_team_member(db: Session, user_id: int, project_id: int, message: Optional[str] = None) -> None:
    if not is_team_member(db, user_id, project_id):
        logger.warning("User ID %s is not a member of project ID %s", user_id, project_id)
        raise AppError(ErrorCode.UNAUTHORIZED, message or "You are not a member of this project")


# ---------- Endpoint predicates ----------

def can_view_member_tasks(db: Session, actor_id: int, project_id: int, target_user_id: int) -> bool:
    logger.info("Checking authorization: user ID %s requesting tasks of user ID %s in project ID %s",
                actor_id, target_user_id, project_id)

    project = get_project_or_404(db, project_id)

    if actor_id == target_user_id:
        logger.warning("User ID %s attempted to view own tasks through the member tasks path", actor_id)
        raise AppError(
            ErrorCode.UNAUTHORIZED,
            "Developers should use the /my-tasks endpoint to view their own tasks",
        )

    is_manager = has_role(db, actor_id, PROJECT_MANAGER)
    has_project_access = (is_manager and is_project_owner(project, actor_id)) \
        or is_team_member(db, actor_id, project_id)
    if not has_project_access:
        logger.warning("User ID %s does not have access to project ID %s", actor_id, project_id)
        raise AppError(ErrorCode.UNAUTHORIZED, "You don't have access to this project")

    require_team_member(db, target_user_id, project_id,
                        "The specified user is not a member of this project")

    return is_manager or actor_id != target_user_id


def can_update_task_status(db: Session, actor_id: int, task_id: int, project_id: int) -> bool:
    tasks = TaskRepository(db)

    if has_role(db, actor_id, PROJECT_MANAGER):
        allowed = tasks.exists_in_project_owned_by(task_id, project_id, actor_id)
        logger.info("Manager status-update check for task ID %s by user ID %s: %s", task_id, actor_id, allowed)
        return allowed

    if has_role(db, actor_id, DEVELOPER):
        allowed = tasks.exists_in_project_assigned_to(task_id, project_id, actor_id)
        logger.info("Developer status-update check for task ID %s by user ID %s: %s", task_id, actor_id, allowed)
        return allowed

    logger.warning("User ID %s with unknown role attempted to update task ID %s", actor_id, task_id)
    return False
