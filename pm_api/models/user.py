# pm_api/models/user.py
from typing import Optional
from pydantic import BaseModel, Field

from pm_api.entities import User


class UserResponse(BaseModel):
    id: int
    name: str
    email: str
    role: Optional[str] = None

    @classmethod
    def from_entity(cls, user: User) -> "UserResponse":
        return cls(id=user.id, name=user.name, email=user.email, role=user.role.name if user.role else None)


# ==== Administration ====

class ChangeRoleRequest(BaseModel):
    role: str = Field(..., min_length=1)

class UpdatePermissionRequest(BaseModel):
    can_view: bool = False
    can_create: bool = False
    can_update: bool = False
    can_delete: bool = False

class PermissionResponse(BaseModel):
    role: str
    module: str
    can_view: bool
    can_create: bool
    can_update: bool
    can_delete: bool
