from __future__ import annotations

from typing import List, Optional, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from pm_api.entities import Project, ProjectStatus, TeamMember, User


class ProjectRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, project_id: int) -> Optional[Project]:
        return self.db.get(Project, project_id)

    def add(self, project: Project) -> Project:
        self.db.add(project)
        self.db.flush()
        return project

    def find_by_owner(
        self,
        owner_id: int,
        name: Optional[str] = None,
        status: Optional[ProjectStatus] = None,
        page: int = 0,
        size: int = 10,
    ) -> Tuple[List[Project], int]:
        q = select(Project).where(Project.created_by_id == owner_id)
        if name:
            q = q.where(Project.name.ilike(f"%{name}%"))
        if status:
            q = q.where(Project.status == status)
        total = self.db.scalar(select(func.count()).select_from(q.subquery())) or 0
        rows = self.db.scalars(
            q.order_by(Project.created_at.desc(), Project.id.desc()).offset(page * size).limit(size)
        )
        return list(rows), total

    def find_dropdown_by_owner(
        self, owner_id: int, search: Optional[str] = None, page: int = 0, size: int = 10
    ) -> Tuple[List[Project], int]:
        q = select(Project).where(Project.created_by_id == owner_id)
        if search:
            q = q.where(Project.name.ilike(f"%{search}%"))
        total = self.db.scalar(select(func.count()).select_from(q.subquery())) or 0
        rows = self.db.scalars(q.order_by(Project.name, Project.id).offset(page * size).limit(size))
        return list(rows), total

    def find_by_member(self, user_id: int) -> List[Project]:
        q = (
            select(Project)
            .join(TeamMember, TeamMember.project_id == Project.id)
            .where(TeamMember.user_id == user_id)
            .order_by(Project.name)
        )
        return list(self.db.scalars(q))


class TeamMemberRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, team_member_id: int) -> Optional[TeamMember]:
        return self.db.get(TeamMember, team_member_id)

    def exists(self, user_id: int, project_id: int) -> bool:
        q = select(TeamMember.id).where(
            TeamMember.user_id == user_id, TeamMember.project_id == project_id
        )
        return self.db.scalar(q) is not None

    def find_recent(self, project_id: int, limit: int) -> List[TeamMember]:
        q = (
            select(TeamMember)
            .where(TeamMember.project_id == project_id)
            .order_by(TeamMember.added_at.desc(), TeamMember.id.desc())
            .limit(limit)
        )
        return list(self.db.scalars(q))

    def add_all(self, members: List[TeamMember]) -> List[TeamMember]:
        self.db.add_all(members)
        self.db.flush()
        return members

    def delete(self, member: TeamMember) -> None:
        self.db.delete(member)
        self.db.flush()

    def find_by_project(
        self,
        project_id: int,
        search: Optional[str] = None,
        specialization_id: Optional[int] = None,
        exclude_user_id: Optional[int] = None,
        page: int = 0,
        size: int = 10,
    ) -> Tuple[List[TeamMember], int]:
        q = (
            select(TeamMember)
            .join(User, User.id == TeamMember.user_id)
            .where(TeamMember.project_id == project_id)
        )
        if search:
            like = f"%{search}%"
            q = q.where(or_(User.name.ilike(like), User.email.ilike(like)))
        if specialization_id is not None:
            q = q.where(TeamMember.specialization_id == specialization_id)
        if exclude_user_id is not None:
            q = q.where(TeamMember.user_id != exclude_user_id)
        total = self.db.scalar(select(func.count()).select_from(q.subquery())) or 0
        rows = self.db.scalars(q.order_by(User.name, TeamMember.id).offset(page * size).limit(size))
        return list(rows), total
