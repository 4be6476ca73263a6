from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from pm_api.core.database import get_db  # noqa: F401
from pm_api.exceptions import AppError, ErrorCode
from pm_api.models.auth import Actor
from pm_api.services.token_service import TokenService, get_token_service

security = HTTPBearer(auto_error=False)


def get_current_actor(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    tokens: TokenService = Depends(get_token_service),
) -> Actor:
    if credentials is None or not credentials.credentials:
        raise AppError(ErrorCode.UNAUTHENTICATED)
    return tokens.decode(credentials.credentials)


def require_access(role: Optional[str] = None, authority: Optional[str] = None):
    """
    Dependency generator: coarse gate on the token-borne role and authority.
    Example: Depends(require_access(role="PROJECT_MANAGER", authority="TASK_CREATE"))
    """
    def _checker(actor: Actor = Depends(get_current_actor)) -> Actor:
        if role is not None and not actor.has_role(role):
            raise AppError(ErrorCode.UNAUTHORIZED)
        if authority is not None and not actor.has_authority(authority):
            raise AppError(ErrorCode.UNAUTHORIZED)
        return actor
    return _checker
