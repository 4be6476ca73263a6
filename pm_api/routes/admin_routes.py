from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from pm_api.deps import get_db, require_access
from pm_api.models.auth import Actor
from pm_api.models.common import ApiResponse, success
from pm_api.models.user import ChangeRoleRequest, PermissionResponse, UpdatePermissionRequest, UserResponse
from pm_api.services import permission_service
from pm_api.services.permission_service import ADMIN

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.put("/users/{user_id}/role", response_model=ApiResponse, summary="Change a user's role")
def change_user_role(
    user_id: int,
    req: ChangeRoleRequest,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_access(role=ADMIN, authority="USER_UPDATE")),
):
    user = permission_service.change_user_role(db, user_id, req.role)
    return success(UserResponse.from_entity(user), "Role updated successfully")


@router.put("/permissions/{role}/{module}", response_model=ApiResponse, summary="Overwrite one role/module permission")
def set_permission(
    role: str,
    module: str,
    req: UpdatePermissionRequest,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_access(role=ADMIN, authority="USER_UPDATE")),
):
    permission = permission_service.set_permission(db, role, module, **req.model_dump())
    return success(PermissionResponse(
        role=role,
        module=module,
        can_view=permission.can_view,
        can_create=permission.can_create,
        can_update=permission.can_update,
        can_delete=permission.can_delete,
    ), "Permission updated successfully")
