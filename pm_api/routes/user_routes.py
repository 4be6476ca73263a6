from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from pm_api.deps import get_db, require_access
from pm_api.models.auth import Actor
from pm_api.models.common import ApiResponse, success
from pm_api.services import user_service
from pm_api.services.permission_service import PROJECT_MANAGER

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("/select-member", response_model=ApiResponse, summary="Search users to add to a team")
def select_member(
    search: Optional[str] = None,
    roles: Optional[List[str]] = Query(None),
    exclude_project_id: Optional[int] = Query(None, alias="excludeProjectId"),
    sort_by: str = Query("name", alias="sortBy"),
    sort_direction: str = Query("asc", alias="sortDirection"),
    page: int = Query(0, ge=0),
    size: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_access(role=PROJECT_MANAGER, authority="USER_VIEW")),
):
    return success(user_service.get_users_for_team_selection(
        db, search, roles, exclude_project_id, sort_by, sort_direction, page, size,
    ))
