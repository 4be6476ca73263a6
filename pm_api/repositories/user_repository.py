from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from pm_api.entities import Module, Permission, Role, Specialization, TeamMember, User

SORTABLE_FIELDS = {
    "name": User.name,
    "email": User.email,
    "createdAt": User.created_at,
    "id": User.id,
}


class UserRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: int) -> Optional[User]:
        return self.db.get(User, user_id)

    def get_by_email(self, email: str) -> Optional[User]:
        return self.db.scalar(select(User).where(User.email == email))

    def exists_by_email(self, email: str) -> bool:
        return self.get_by_email(email) is not None

    def add(self, user: User) -> User:
        self.db.add(user)
        self.db.flush()
        return user

    def find_for_selection(
        self,
        roles: Sequence[str],
        excluded_roles: Sequence[str] = (),
        search: Optional[str] = None,
        exclude_project_id: Optional[int] = None,
        sort_by: str = "name",
        sort_direction: str = "asc",
        page: int = 0,
        size: int = 10,
    ) -> Tuple[List[User], int]:
        q = select(User).join(Role, Role.id == User.role_id).where(Role.name.in_(roles))
        if excluded_roles:
            q = q.where(Role.name.not_in(excluded_roles))
        if search:
            like = f"%{search}%"
            q = q.where(or_(User.name.ilike(like), User.email.ilike(like)))
        if exclude_project_id is not None:
            members = select(TeamMember.user_id).where(TeamMember.project_id == exclude_project_id)
            q = q.where(User.id.not_in(members))
        total = self.db.scalar(select(func.count()).select_from(q.subquery())) or 0
        column = SORTABLE_FIELDS.get(sort_by, User.name)
        order = column.asc() if sort_direction.lower() == "asc" else column.desc()
        rows = self.db.scalars(q.order_by(order, User.id).offset(page * size).limit(size))
        return list(rows), total


class RoleRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_name(self, name: str) -> Optional[Role]:
        return self.db.scalar(select(Role).where(Role.name == name))

    def get_module_by_name(self, name: str) -> Optional[Module]:
        return self.db.scalar(select(Module).where(Module.name == name))

    def get_permission(self, role_id: int, module_id: int) -> Optional[Permission]:
        return self.db.scalar(
            select(Permission).where(Permission.role_id == role_id, Permission.module_id == module_id)
        )


class SpecializationRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, specialization_id: int) -> Optional[Specialization]:
        return self.db.get(Specialization, specialization_id)

    def get_by_name(self, name: str) -> Optional[Specialization]:
        return self.db.scalar(select(Specialization).where(Specialization.name == name))

    def list_all(self) -> List[Specialization]:
        return list(self.db.scalars(select(Specialization).order_by(Specialization.name)))
