# pm_api/services/user_service.py
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from pm_api.models.common import PagedResponse, paged
from pm_api.models.user import UserResponse
from pm_api.repositories.user_repository import UserRepository
from pm_api.services.permission_service import ADMIN, DEVELOPER, PROJECT_MANAGER

logger = logging.getLogger(__name__)

INCLUDED_ROLES = (PROJECT_MANAGER, DEVELOPER)
EXCLUDED_ROLES = (ADMIN,)


def get_users_for_team_selection(
    db: Session,
    search: Optional[str] = None,
    roles: Optional[List[str]] = None,
    exclude_project_id: Optional[int] = None,
    sort_by: str = "name",
    sort_direction: str = "asc",
    page: int = 0,
    size: int = 10,
) -> PagedResponse:
    """
    Candidates for team membership. Administrators never appear, even when
    asked for by role; an empty role filter falls back to managers and
    developers.
    """
    rows, total = UserRepository(db).find_for_selection(
        roles or INCLUDED_ROLES,
        EXCLUDED_ROLES,
        search,
        exclude_project_id,
        sort_by,
        sort_direction,
        page,
        size,
    )
    logger.info("Retrieved %d users for team selection", total)
    return paged([UserResponse.from_entity(u) for u in rows], page, size, total)
