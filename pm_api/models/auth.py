from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import Optional, List, FrozenSet


class PermissionClaim(BaseModel):
    """One module's CRUD flags as carried inside an access token."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    module: str
    can_view: bool = Field(False, alias="canView")
    can_create: bool = Field(False, alias="canCreate")
    can_update: bool = Field(False, alias="canUpdate")
    can_delete: bool = Field(False, alias="canDelete")

    def authorities(self) -> List[str]:
        flags = (
            ("VIEW", self.can_view),
            ("CREATE", self.can_create),
            ("UPDATE", self.can_update),
            ("DELETE", self.can_delete),
        )
        return [f"{self.module}_{name}" for name, on in flags if on]


class TokenClaims(BaseModel):
    model_config = ConfigDict(extra="ignore")

    sub: str
    iat: Optional[int] = None
    exp: Optional[int] = None
    id: Optional[int] = None
    email: Optional[str] = None
    role: Optional[str] = None
    type: Optional[str] = None
    permissions: List[PermissionClaim] = []


class Actor(BaseModel):
    """Authenticated identity for the current request, rebuilt from the access token."""
    model_config = ConfigDict(frozen=True)

    id: int
    email: str
    role: str
    permissions: List[PermissionClaim] = []

    @property
    def authorities(self) -> FrozenSet[str]:
        granted = {f"ROLE_{self.role}"}
        for p in self.permissions:
            granted.update(p.authorities())
        return frozenset(granted)

    def has_role(self, role: str) -> bool:
        return self.role == role

    def has_authority(self, authority: str) -> bool:
        return authority in self.authorities


# ==== Requests ====

class LoginRequest(BaseModel):
    email: str
    password: str

class RegisterRequest(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    email: EmailStr
    password: str

class RefreshRequest(BaseModel):
    refresh_token: str

class IntrospectRequest(BaseModel):
    token: str

class ResetPasswordRequest(BaseModel):
    token: str
    new_password: str

class SendOtpRequest(BaseModel):
    email: str

class VerifyOtpRequest(BaseModel):
    email: str
    otp: str = Field(..., min_length=1)


# ==== Responses ====

class AuthResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "Bearer"

class RefreshResponse(BaseModel):
    access_token: str
    token_type: str = "Bearer"

class IntrospectResponse(BaseModel):
    valid: bool

class VerificationTokenResponse(BaseModel):
    token: str

class MeResponse(BaseModel):
    id: int
    email: str
    role: str
    authorities: List[str] = []
