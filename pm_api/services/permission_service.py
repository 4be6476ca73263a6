# pm_api/services/permission_service.py
from __future__ import annotations

import logging
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from pm_api.config import settings
from pm_api.core.security import hash_password
from pm_api.entities import Module, Permission, Role, Specialization, User
from pm_api.exceptions import AppError, ErrorCode
from pm_api.models.auth import PermissionClaim
from pm_api.repositories.user_repository import RoleRepository, SpecializationRepository, UserRepository

logger = logging.getLogger(__name__)

ADMIN = "ADMIN"
PROJECT_MANAGER = "PROJECT_MANAGER"
DEVELOPER = "DEVELOPER"

MODULES = ("PROJECT", "TASK", "TEAM", "TASK_HISTORY", "USER")

# role -> module -> (view, create, update, delete); a missing module means no row
DEFAULT_PERMISSIONS: Dict[str, Dict[str, tuple]] = {
    ADMIN: {
        "USER": (True, True, True, True),
    },
    PROJECT_MANAGER: {
        "PROJECT": (True, True, True, True),
        "TASK": (True, True, True, True),
        "TEAM": (True, True, True, True),
        "TASK_HISTORY": (True, False, False, False),
        "USER": (True, False, False, False),
    },
    DEVELOPER: {
        "PROJECT": (True, False, False, False),
        "TASK": (True, False, True, False),
        "TEAM": (True, False, False, False),
        "TASK_HISTORY": (True, False, False, False),
    },
}

DEFAULT_SPECIALIZATIONS = ("Backend", "Frontend", "Mobile", "QA", "DevOps", "UI/UX")


def seed_defaults(db: Session) -> None:
    """Insert missing roles, modules, permissions and specializations. Existing rows are left alone."""
    roles = RoleRepository(db)

    modules: Dict[str, Module] = {}
    for name in MODULES:
        module = roles.get_module_by_name(name)
        if module is None:
            module = Module(name=name)
            db.add(module)
            db.flush()
        modules[name] = module

    for role_name, matrix in DEFAULT_PERMISSIONS.items():
        role = roles.get_by_name(role_name)
        if role is None:
            role = Role(name=role_name)
            db.add(role)
            db.flush()
        for module_name, (view, create, update, delete) in matrix.items():
            module = modules[module_name]
            if roles.get_permission(role.id, module.id) is None:
                db.add(Permission(
                    role_id=role.id, module_id=module.id,
                    can_view=view, can_create=create, can_update=update, can_delete=delete,
                ))

    specializations = SpecializationRepository(db)
    for name in DEFAULT_SPECIALIZATIONS:
        if specializations.get_by_name(name) is None:
            db.add(Specialization(name=name))

    db.commit()
    logger.info("Seeded roles %s and modules %s", list(DEFAULT_PERMISSIONS), list(MODULES))


def seed_admin(
    db: Session,
    email: Optional[str] = None,
    password: Optional[str] = None,
    name: Optional[str] = None,
) -> Optional[User]:
    """
    Create the bootstrap administrator when credentials are configured and
    the email is free. Registration never yields an admin, so this is the
    only way the first one appears.
    """
    email = email or settings.ADMIN_EMAIL
    password = password or settings.ADMIN_PASSWORD
    if not email or not password:
        return None

    users = UserRepository(db)
    if users.exists_by_email(email):
        return None
    role = RoleRepository(db).get_by_name(ADMIN)
    if role is None:
        raise AppError(ErrorCode.INTERNAL_ERROR, f"Role {ADMIN} is not seeded")

    admin = users.add(User(
        name=name or settings.ADMIN_NAME,
        email=email,
        password_hash=hash_password(password),
        role=role,
    ))
    db.commit()
    logger.info("Created bootstrap administrator ID %s", admin.id)
    return admin


def permission_claims(role: Optional[Role]) -> List[PermissionClaim]:
    if role is None:
        return []
    return [
        PermissionClaim(
            module=p.module.name,
            can_view=p.can_view,
            can_create=p.can_create,
            can_update=p.can_update,
            can_delete=p.can_delete,
        )
        for p in role.permissions
    ]


def set_permission(
    db: Session,
    role_name: str,
    module_name: str,
    *,
    can_view: bool = False,
    can_create: bool = False,
    can_update: bool = False,
    can_delete: bool = False,
) -> Permission:
    """Create or overwrite the single permission row of a role/module pair."""
    roles = RoleRepository(db)
    role = roles.get_by_name(role_name)
    module = roles.get_module_by_name(module_name)
    if role is None or module is None:
        raise AppError(ErrorCode.NOT_FOUND, f"Unknown role or module: {role_name}/{module_name}")

    permission = roles.get_permission(role.id, module.id)
    if permission is None:
        permission = Permission(role_id=role.id, module_id=module.id)
        db.add(permission)
    permission.can_view = can_view
    permission.can_create = can_create
    permission.can_update = can_update
    permission.can_delete = can_delete
    db.commit()
    db.refresh(role)
    logger.info("Permission %s/%s set to V=%s C=%s U=%s D=%s",
                role_name, module_name, can_view, can_create, can_update, can_delete)
    return permission


def change_user_role(db: Session, user_id: int, role_name: str) -> User:
    user = UserRepository(db).get(user_id)
    if user is None:
        raise AppError(ErrorCode.USER_NOT_FOUND)
    role = RoleRepository(db).get_by_name(role_name)
    if role is None:
        raise AppError(ErrorCode.NOT_FOUND, f"Role not found: {role_name}")
    user.role = role
    db.commit()
    logger.info("User ID %s now has role %s", user_id, role_name)
    return user
